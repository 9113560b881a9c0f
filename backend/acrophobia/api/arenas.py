from dataclasses import fields, replace
from flask import Blueprint, jsonify, request, current_app
from acrophobia.services.games import ArenaBusy, ArenaNotFound, GameOptions, GameRegistry


arenas = Blueprint('arenas', __name__)

_OPTION_FIELDS = {f.name: type(f.default) for f in fields(GameOptions)}


def _registry() -> GameRegistry:
    return current_app.extensions['arenas']


def _options_from_request(data: dict) -> GameOptions:
    """Apply per-game overrides from the request body on top of the app's options."""
    if not isinstance(data, dict):
        raise ValueError('Request body must be a JSON object')
    requested = data.get('options') or {}
    if not isinstance(requested, dict):
        raise ValueError('options must be a JSON object')
    overrides = {}
    for key, value in requested.items():
        if key not in _OPTION_FIELDS:
            raise ValueError(f'Unknown option: {key}')
        overrides[key] = _OPTION_FIELDS[key](value)
    return replace(_registry().options, **overrides)


@arenas.route('/', methods=['GET'], strict_slashes=False)
def list_arenas():
    return jsonify({'arenas': _registry().codes()})


@arenas.route('/<string:code>/state', methods=['GET'])
def get_arena_state(code):
    entry = _registry().get(code)
    if entry is None:
        return jsonify({'error': 'No game is running in this arena'}), 404
    payload = entry.scheduler.run(entry.game.to_dict)
    options = entry.game.options
    # Include phase durations so clients can show countdowns
    payload['durations'] = {
        'acro': options.secs_per_acro_round,
        'vote': options.secs_per_vote_round,
        'face_off': options.secs_per_face_off_round,
    }
    payload['point_cap'] = options.point_cap
    return jsonify(payload)


@arenas.route('/<string:code>/start', methods=['POST'])
def start_arena_game(code):
    data = request.get_json(silent=True) or {}
    try:
        options = _options_from_request(data)
    except (TypeError, ValueError) as exc:
        return jsonify({'error': str(exc)}), 400
    try:
        game = _registry().create(code, options=options)
    except ArenaBusy as exc:
        return jsonify({'error': str(exc)}), 409
    current_app.logger.info(f"[http-start] arena={game.arena} start_delay={_registry().start_delay}s")
    return jsonify(game.to_dict()), 201


@arenas.route('/<string:code>/stop', methods=['POST'])
def stop_arena_game(code):
    try:
        _registry().stop(code)
    except ArenaNotFound as exc:
        return jsonify({'error': str(exc)}), 404
    return jsonify({'message': f'Acrophobia stopped for {GameRegistry.normalize(code)}'})


@arenas.route('/<string:code>/input', methods=['POST'])
def submit_input(code):
    data = request.get_json(silent=True) or {}
    if not isinstance(data, dict):
        return jsonify({'error': 'name and text are required'}), 400
    name = data.get('name')
    text = data.get('text')
    if not name or not isinstance(text, str):
        return jsonify({'error': 'name and text are required'}), 400
    try:
        _registry().dispatch(code, 'user_input', name, text)
    except ArenaNotFound as exc:
        return jsonify({'error': str(exc)}), 404
    return jsonify({'message': 'Input received'}), 202
