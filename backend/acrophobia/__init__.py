import logging

from flask import Flask, jsonify
from flask_cors import CORS
from flask_socketio import SocketIO
from config import Config

allowed_origins = [
    "http://localhost:5173",
    "http://127.0.0.1:5173",
    "http://localhost:5174",
    "http://127.0.0.1:5174",
]
socketio = SocketIO(cors_allowed_origins=allowed_origins, async_mode=None)


def create_app(config_class=Config):
    flask_app = Flask(__name__)
    flask_app.config.from_object(config_class)

    logging.getLogger('acrophobia').setLevel(str(flask_app.config.get('LOG_LEVEL', 'INFO')).upper())

    CORS(flask_app, supports_credentials=True, origins=allowed_origins)

    # Initialize Socket.IO after app is created
    socketio.init_app(flask_app, cors_allowed_origins=allowed_origins)

    # One registry per app: arena code -> running game
    from acrophobia.services.games import GameOptions, GameRegistry, ManualScheduler, SocketIOScheduler
    from acrophobia.socketio_events import SocketIOSink, notify_game_ended, register_socketio_handlers

    heartbeat = int(flask_app.config.get('TIMER_HEARTBEAT_SEC', 0))
    if flask_app.config.get('TESTING') and not flask_app.config.get('ENABLE_SCHEDULER_IN_TESTS'):
        # Tests drive the clock themselves
        def scheduler_factory(code):
            return ManualScheduler()
    else:
        def scheduler_factory(code):
            return SocketIOScheduler(socketio, name=code, heartbeat=heartbeat)

    registry = GameRegistry(
        GameOptions.from_config(flask_app.config),
        scheduler_factory=scheduler_factory,
        sink_factory=lambda code: SocketIOSink(socketio, code),
        start_delay=float(flask_app.config.get('START_DELAY_SEC', 15)),
    )
    registry.on_teardown(notify_game_ended)
    flask_app.extensions['arenas'] = registry

    from acrophobia.api.arenas import arenas
    flask_app.register_blueprint(arenas, url_prefix='/api/arenas')

    @flask_app.route('/')
    def index():
        return jsonify({'message': 'Welcome to the Acrophobia game server!'})

    register_socketio_handlers(testing=flask_app.config.get('TESTING', False))

    return flask_app
