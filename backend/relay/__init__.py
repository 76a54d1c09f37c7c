from flask import Flask
from flask_cors import CORS
from flask_socketio import SocketIO
from config import Config

socketio = SocketIO(async_mode=None)


def _allowed_origins(value):
    if not value or value == '*':
        return '*'
    return [origin.strip() for origin in value.split(',') if origin.strip()]


def create_app(config_class=Config):
    flask_app = Flask(__name__)
    flask_app.config.from_object(config_class)
    allowed_origins = _allowed_origins(flask_app.config.get('CORS_ALLOWED_ORIGINS'))

    # send_wildcard keeps a literal "*" instead of echoing the request origin
    CORS(flask_app, origins=allowed_origins, send_wildcard=(allowed_origins == '*'))

    # always_connect lets a refused client read the error frame before the close;
    # async_handlers=False keeps each connection's frames in arrival order
    socketio.init_app(
        flask_app,
        cors_allowed_origins=allowed_origins,
        always_connect=True,
        async_handlers=False,
    )

    from relay.services.hub import RelayHub
    hub = RelayHub(
        capacity=flask_app.config.get('MAX_PLAYERS', 20),
        heartbeat_interval=flask_app.config.get('HEARTBEAT_INTERVAL_SEC', 15),
        heartbeat_timeout=flask_app.config.get('HEARTBEAT_TIMEOUT_SEC', 30),
        logger=flask_app.logger,
    )
    flask_app.extensions['relay_hub'] = hub

    from relay.main import main
    flask_app.register_blueprint(main)

    # Register Socket.IO event handlers against this app's hub
    from relay.socketio_events import register_socketio_handlers, start_heartbeat
    register_socketio_handlers(namespace=flask_app.config.get('RELAY_NAMESPACE', '/'))

    # Heartbeat runs in the background outside of tests; tests drive sweep() directly
    if not flask_app.config.get('TESTING'):
        start_heartbeat(hub)

    return flask_app
