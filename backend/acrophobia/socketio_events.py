from flask import current_app, request
from flask_socketio import emit, join_room, leave_room
from acrophobia import socketio
from acrophobia.services.games import GameError
from typing import Dict, Any, Tuple


def _room(arena: str) -> str:
    return f"arena:{arena}"


class SocketIOSink:
    """Delivers a game's messages: public text to the arena room, private text to one socket."""

    def __init__(self, sio, arena: str):
        self._sio = sio
        self.arena = arena

    def say_public(self, text: str) -> None:
        self._sio.emit('public_message', {'arena': self.arena, 'text': text}, to=_room(self.arena), namespace='/ws')

    def say_private(self, name: str, text: str) -> None:
        sid = _name_to_sid.get((self.arena, name))
        if sid is None:
            return
        self._sio.emit('private_message', {'arena': self.arena, 'text': text}, to=sid, namespace='/ws')


def notify_game_ended(arena: str, game) -> None:
    socketio.emit(
        'game_ended',
        {'arena': arena, 'completed': game.completed, 'winner': game.to_dict()['winner']},
        to=_room(arena),
        namespace='/ws',
    )


def handle_connect():
    emit('connected', {'message': 'Connected to /ws'})


def handle_disconnect(reason=None):
    # A player who drops out loses their score, like leaving the arena
    ctx = _sid_to_ctx.pop(_get_sid(), None)
    if not ctx:
        return
    _forget_player(ctx['arena'], ctx['name'])


def handle_join_arena(data):
    arena = _registry().normalize((data or {}).get('arena'))
    name = ((data or {}).get('name') or '').strip()
    if not arena or not name:
        emit('error', {'message': 'arena and name are required'})
        return
    taken_by = _name_to_sid.get((arena, name))
    if taken_by is not None and taken_by != _get_sid():
        emit('error', {'message': f'{name} is already playing in {arena}'})
        return
    previous = _sid_to_ctx.get(_get_sid())
    if previous:
        _name_to_sid.pop((previous['arena'], previous['name']), None)
        leave_room(_room(previous['arena']))
    join_room(_room(arena))
    _sid_to_ctx[_get_sid()] = {'arena': arena, 'name': name}
    _name_to_sid[(arena, name)] = _get_sid()
    emit('joined', {'room': _room(arena), 'arena': arena, 'name': name})


def handle_leave_arena(data):
    ctx = _sid_to_ctx.pop(_get_sid(), None)
    if not ctx:
        emit('error', {'message': 'Not in an arena'})
        return
    leave_room(_room(ctx['arena']))
    _forget_player(ctx['arena'], ctx['name'])
    emit('left', {'room': _room(ctx['arena'])})


def handle_rename(data):
    ctx = _sid_to_ctx.get(_get_sid())
    new_name = ((data or {}).get('name') or '').strip()
    if not ctx or not new_name:
        emit('error', {'message': 'Join an arena and provide a name'})
        return
    arena, old_name = ctx['arena'], ctx['name']
    if (arena, new_name) in _name_to_sid:
        emit('error', {'message': f'{new_name} is already playing in {arena}'})
        return
    if _registry().get(arena):
        try:
            accepted = _registry().dispatch(arena, 'change_user', old_name, new_name)
        except GameError as exc:
            emit('error', {'message': str(exc)})
            return
        if not accepted:
            emit('error', {'message': f'{new_name} already has a score in {arena}'})
            return
    _name_to_sid.pop((arena, old_name), None)
    _name_to_sid[(arena, new_name)] = _get_sid()
    ctx['name'] = new_name
    emit('renamed', {'arena': arena, 'name': new_name})


def handle_acro(data):
    ctx = _sid_to_ctx.get(_get_sid())
    if not ctx:
        emit('error', {'message': 'Join an arena first'})
        return
    text = (data or {}).get('text')
    if not isinstance(text, str):
        emit('error', {'message': 'text is required'})
        return
    try:
        _registry().dispatch(ctx['arena'], 'user_input', ctx['name'], text)
    except GameError as exc:
        emit('error', {'message': str(exc)})


def handle_start_game(data):
    arena = _registry().normalize((data or {}).get('arena'))
    if not arena:
        emit('error', {'message': 'arena is required'})
        return
    try:
        _registry().create(arena)
    except GameError as exc:
        emit('error', {'message': str(exc)})
        return
    current_app.logger.info(f"[ws-start] arena={arena} sid={_get_sid()}")


def handle_stop_game(data):
    arena = _registry().normalize((data or {}).get('arena'))
    try:
        _registry().stop(arena)
    except GameError as exc:
        emit('error', {'message': str(exc)})
        return
    emit('stopped', {'arena': arena})


def handle_ping(data):
    emit('pong', data or {})

# ---- Player presence helpers ----

_sid_to_ctx: Dict[str, Dict[str, Any]] = {}
_name_to_sid: Dict[Tuple[str, str], str] = {}

def _get_sid() -> str:
    # type: ignore: request.sid exists in Socket.IO context
    return request.sid  # type: ignore

def _registry():
    return current_app.extensions['arenas']

def _forget_player(arena: str, name: str) -> None:
    _name_to_sid.pop((arena, name), None)
    if _registry().get(arena):
        _registry().dispatch(arena, 'delete_user', name)


def register_socketio_handlers(testing: bool = False) -> None:
    """Register Socket.IO event handlers.

    Always register on namespace '/ws'. When testing is True, also mirror
    handlers on the default namespace '/' to accommodate the test harness.
    """
    handlers = {
        'connect': handle_connect,
        'disconnect': handle_disconnect,
        'join_arena': handle_join_arena,
        'leave_arena': handle_leave_arena,
        'rename': handle_rename,
        'acro': handle_acro,
        'start_game': handle_start_game,
        'stop_game': handle_stop_game,
        'ping': handle_ping,
    }
    namespaces = ['/ws', '/'] if testing else ['/ws']
    for namespace in namespaces:
        for event, handler in handlers.items():
            socketio.on_event(event, handler, namespace=namespace)
