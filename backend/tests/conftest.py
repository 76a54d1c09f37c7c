import json
import os
import sys
import pytest

# Ensure the backend root (containing the `relay` package) is on sys.path
CURRENT_DIR = os.path.dirname(__file__)
BACKEND_ROOT = os.path.abspath(os.path.join(CURRENT_DIR, '..'))
if BACKEND_ROOT not in sys.path:
    sys.path.insert(0, BACKEND_ROOT)

from relay import create_app, socketio
from relay.services.hub import RelayHub


class TestConfig:
    TESTING = True
    SECRET_KEY = os.environ.get('SECRET_KEY', 'test-secret')
    MAX_PLAYERS = 3
    HEARTBEAT_INTERVAL_SEC = 15
    HEARTBEAT_TIMEOUT_SEC = 30
    RELAY_NAMESPACE = '/'
    CORS_ALLOWED_ORIGINS = '*'


class FakeConnection:
    """In-memory connection handle recording decoded outbound frames."""

    def __init__(self, key):
        self.key = key
        self.open = True
        self.closed = False
        self.terminated = False
        self.sent = []

    @property
    def is_open(self):
        return self.open

    def send(self, text):
        self.sent.append(json.loads(text))

    def close(self):
        self.closed = True
        self.open = False

    def terminate(self):
        self.terminated = True
        self.open = False

    def frames(self, msg_type=None):
        if msg_type is None:
            return list(self.sent)
        return [f for f in self.sent if f['type'] == msg_type]

    def clear(self):
        self.sent = []


class FakeClock:
    def __init__(self, now=1000.0):
        self.now = now

    def __call__(self):
        return self.now

    def advance(self, seconds):
        self.now += seconds


def frame(**fields):
    return json.dumps(fields)


@pytest.fixture()
def clock():
    return FakeClock()


@pytest.fixture()
def hub(clock):
    return RelayHub(capacity=3, heartbeat_interval=15, heartbeat_timeout=30, clock=clock)


@pytest.fixture()
def make_conn():
    counter = {'n': 0}

    def _make(key=None):
        counter['n'] += 1
        return FakeConnection(key or f"conn-{counter['n']}")
    return _make


@pytest.fixture()
def join(hub, make_conn):
    """Admit a fake connection and join it under `name`."""
    def _join(name):
        conn = make_conn()
        assert hub.admit(conn)
        assert hub.receive(conn, frame(type='join', name=name))
        return conn
    return _join


@pytest.fixture()
def flask_app():
    application = create_app(TestConfig)
    yield application
    application.extensions['relay_hub'].shutdown()


@pytest.fixture()
def client(flask_app):
    return flask_app.test_client()


@pytest.fixture()
def sio_connect(flask_app):
    clients = []

    def _connect():
        test_client = socketio.test_client(flask_app, flask_test_client=flask_app.test_client())
        clients.append(test_client)
        return test_client
    yield _connect
    for test_client in clients:
        try:
            if test_client.is_connected():
                test_client.disconnect()
        except Exception:
            pass
