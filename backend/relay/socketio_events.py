from flask import current_app, request
from relay import socketio

# Disconnect reasons reported by python-socketio that mean the link failed
_TRANSPORT_FAILURES = {'transport error', 'ping timeout'}


class SocketIOConnection:
    """Non-owning handle on one Socket.IO client, as seen by the relay hub.

    Frames go out on the ``message`` event as JSON text. Closing a handle
    whose handshake is still in progress is a no-op: the connect handler
    refuses the handshake instead.
    """

    def __init__(self, sid: str, namespace: str, established: bool = True):
        self.sid = sid
        self.namespace = namespace
        self.established = established

    @property
    def key(self) -> str:
        return self.sid

    @property
    def is_open(self) -> bool:
        return socketio.server.manager.is_connected(self.sid, self.namespace)

    def send(self, text: str) -> None:
        socketio.send(text, to=self.sid, namespace=self.namespace)

    def close(self) -> None:
        if not self.established:
            return
        socketio.server.disconnect(self.sid, namespace=self.namespace)

    def terminate(self) -> None:
        # Socket.IO has no abortive close; the server-side disconnect drops the client
        self.close()


def _hub():
    return current_app.extensions['relay_hub']


def _connection(established: bool = True) -> SocketIOConnection:
    # type: ignore: request.sid exists in Socket.IO context
    return SocketIOConnection(request.sid, request.namespace, established)  # type: ignore


def handle_connect(auth=None):
    if not _hub().admit(_connection(established=False)):
        return False


def handle_message(data):
    _hub().receive(_connection(), data)


def handle_disconnect(reason=None):
    _hub().release(_connection(), error=reason in _TRANSPORT_FAILURES)


def start_heartbeat(hub):
    """Run the hub's heartbeat loop as a Socket.IO background task."""
    return socketio.start_background_task(hub.heartbeat.run, socketio.sleep)


def register_socketio_handlers(namespace: str = '/') -> None:
    """Register the relay's Socket.IO event handlers on `namespace`.

    Game clients speak raw JSON frames over the ``message`` event, so there
    is one inbound handler; dispatch by ``type`` happens in the hub.
    """
    socketio.on_event('connect', handle_connect, namespace=namespace)
    socketio.on_event('disconnect', handle_disconnect, namespace=namespace)
    socketio.on_event('message', handle_message, namespace=namespace)
