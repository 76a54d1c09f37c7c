import logging
from typing import Any, Dict

from relay.services import protocol


class Broadcaster:
    """Fan-out of outbound frames to registry connections.

    A payload is encoded once per call. Closed connections are skipped and a
    failed send is logged; neither removes the registry entry, that is left
    to the lifecycle and heartbeat paths.
    """

    def __init__(self, registry, logger=None):
        self.registry = registry
        self.logger = logger or logging.getLogger(__name__)

    def broadcast(self, payload: Dict[str, Any], exclude=None) -> int:
        text = protocol.encode(payload)
        exclude_key = exclude.key if exclude is not None else None
        sent = 0
        for conn, _session in self.registry.entries():
            if conn.key == exclude_key:
                continue
            if self._deliver(conn, text):
                sent += 1
        return sent

    def send_to(self, conn, payload: Dict[str, Any]) -> bool:
        return self._deliver(conn, protocol.encode(payload))

    def _deliver(self, conn, text: str) -> bool:
        if not conn.is_open:
            return False
        try:
            conn.send(text)
        except Exception as exc:
            self.logger.warning(f"[send-failed] conn={conn.key} error={exc}")
            return False
        return True
