import logging
import threading
import time
from typing import Any, Dict

from relay.models import Session
from relay.services import protocol
from relay.services.broadcast import Broadcaster
from relay.services.heartbeat import HeartbeatMonitor
from relay.services.registry import RegistryFull, SessionRegistry
from relay.services.router import MessageRouter


class RelayHub:
    """Connection lifecycle for the relay: Pending -> Joined -> Closed.

    A connection is any object exposing ``key``, ``is_open``, ``send(text)``,
    ``close()`` and ``terminate()``. The transport calls admit() on connect,
    receive() per inbound frame and release() on close or error. All registry
    access goes through ``lock``.
    """

    def __init__(self, capacity: int = 20, heartbeat_interval: float = 15.0,
                 heartbeat_timeout: float = 30.0, clock=time.time, logger=None):
        self.logger = logger or logging.getLogger(__name__)
        self.clock = clock
        self.lock = threading.RLock()
        self.registry = SessionRegistry(capacity)
        self.broadcaster = Broadcaster(self.registry, self.logger)
        self.router = MessageRouter(self)
        self.heartbeat = HeartbeatMonitor(self, heartbeat_interval, heartbeat_timeout)
        self.started_at = clock()
        self._pending: Dict[str, Any] = {}

    @property
    def capacity(self) -> int:
        return self.registry.capacity

    def is_pending(self, conn) -> bool:
        return conn.key in self._pending

    def admit(self, conn) -> bool:
        """Accept a new connection as Pending, or refuse it when full."""
        with self.lock:
            if self.registry.is_full():
                self._refuse(conn)
                return False
            self._pending[conn.key] = conn
            return True

    def receive(self, conn, raw) -> bool:
        with self.lock:
            try:
                return self.router.dispatch(conn, raw)
            except Exception:
                self.logger.exception(f"[handler-error] conn={conn.key}")
                return False

    def join(self, conn, msg: Dict[str, Any]) -> bool:
        """Pending -> Joined. Called by the router with the lock held."""
        if conn.key not in self._pending:
            return False
        session = Session(self.registry.new_id(), protocol.sanitize_name(msg.get('name')), self.clock())
        try:
            self.registry.add(conn, session)
        except RegistryFull:
            self._refuse(conn)
            return False
        del self._pending[conn.key]

        players = [s.to_dict() for s in self.registry.sessions() if s.id != session.id]
        self.broadcaster.send_to(conn, {'type': protocol.WELCOME, 'id': session.id, 'players': players})
        self.broadcaster.broadcast({'type': protocol.JOIN, 'id': session.id, 'name': session.name}, exclude=conn)
        self.logger.info(
            f"[join] id={session.id} name={session.name} players={len(self.registry)}/{self.capacity}"
        )
        return True

    def release(self, conn, error: bool = False) -> bool:
        """Joined -> Closed on transport close or error. Safe to call twice."""
        with self.lock:
            self._pending.pop(conn.key, None)
            session = self.registry.remove(conn)
            if session is None:
                return False
            self.broadcaster.broadcast({'type': protocol.LEAVE, 'id': session.id})
        if error:
            self.logger.warning(f"[transport-error] id={session.id} name={session.name}")
        self.logger.info(
            f"[leave] id={session.id} name={session.name} players={len(self.registry)}/{self.capacity}"
        )
        return True

    def evict(self, conn) -> bool:
        """Forcibly drop an unresponsive session; other clients still get ``leave``."""
        with self.lock:
            session = self.registry.remove(conn)
            if session is None:
                return False
            try:
                conn.terminate()
            except Exception as exc:
                self.logger.warning(f"[terminate-failed] id={session.id} error={exc}")
            self.broadcaster.broadcast({'type': protocol.LEAVE, 'id': session.id})
        self.logger.info(f"[evict] id={session.id} name={session.name} reason=heartbeat_timeout")
        return True

    def status(self) -> Dict[str, Any]:
        return {
            'status': 'ok',
            'players': len(self.registry),
            'maxPlayers': self.capacity,
            'uptime': int(self.clock() - self.started_at),
        }

    def shutdown(self) -> None:
        self.heartbeat.stop()
        with self.lock:
            self._pending.clear()
            self.registry.clear()
        self.logger.info("[shutdown] registry cleared")

    def _refuse(self, conn) -> None:
        self._pending.pop(conn.key, None)
        self.broadcaster.send_to(conn, protocol.error_notice(protocol.SERVER_FULL))
        conn.close()
        self.logger.warning(f"[reject] conn={conn.key} reason=server_full capacity={self.capacity}")
