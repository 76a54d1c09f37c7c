import time
from typing import List, Optional

from relay.services import protocol


class HeartbeatMonitor:
    """Periodic liveness probe over every joined session.

    Each tick evicts sessions whose last ``pong`` is older than `timeout` and
    pings the rest. ``last_seen`` only moves when a ``pong`` arrives.
    """

    def __init__(self, hub, interval: float = 15.0, timeout: float = 30.0):
        self.hub = hub
        self.interval = interval
        self.timeout = timeout
        self._running = False

    @property
    def running(self) -> bool:
        return self._running

    def sweep(self, now: Optional[float] = None) -> List[str]:
        """Run one tick; returns the ids of evicted sessions."""
        if now is None:
            now = self.hub.clock()
        evicted = []
        with self.hub.lock:
            for conn, session in self.hub.registry.entries():
                if session.is_stale(now, self.timeout):
                    if self.hub.evict(conn):
                        evicted.append(session.id)
                else:
                    self.hub.broadcaster.send_to(conn, {'type': protocol.PING})
        return evicted

    def run(self, sleep=time.sleep) -> None:
        """Tick every `interval` seconds until stop() is called."""
        self._running = True
        self.hub.logger.info(f"[heartbeat-start] interval={self.interval}s timeout={self.timeout}s")
        while self._running:
            sleep(self.interval)
            if not self._running:
                break
            try:
                evicted = self.sweep()
            except Exception:
                self.hub.logger.exception("[heartbeat-error] sweep failed")
                continue
            if evicted:
                self.hub.logger.info(f"[heartbeat] evicted={len(evicted)} players={len(self.hub.registry)}")

    def stop(self) -> None:
        self._running = False
