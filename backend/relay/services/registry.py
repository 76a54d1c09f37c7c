from typing import Dict, List, Optional, Tuple

from relay.models import Session, generate_session_id


class RegistryFull(Exception):
    """Raised when inserting a session would exceed capacity."""


class SessionRegistry:
    """Joined sessions keyed by id, plus the connection each one belongs to.

    Connections are referenced, never owned: the transport opens and closes
    them. The registry only maps a connection key to a session id and a
    session id back to its connection.
    """

    def __init__(self, capacity: int):
        self.capacity = capacity
        self._sessions: Dict[str, Session] = {}
        self._ids_by_key: Dict[str, str] = {}
        self._connections: Dict[str, object] = {}

    def __len__(self) -> int:
        return len(self._sessions)

    def __contains__(self, session_id: str) -> bool:
        return session_id in self._sessions

    def is_full(self) -> bool:
        return len(self._sessions) >= self.capacity

    def new_id(self) -> str:
        return generate_session_id(self._sessions)

    def add(self, conn, session: Session) -> None:
        if self.is_full():
            raise RegistryFull(f"capacity {self.capacity} reached")
        if conn.key in self._ids_by_key or session.id in self._sessions:
            raise ValueError(f"already registered: {conn.key} / {session.id}")
        self._sessions[session.id] = session
        self._ids_by_key[conn.key] = session.id
        self._connections[session.id] = conn

    def session_for(self, conn) -> Optional[Session]:
        session_id = self._ids_by_key.get(conn.key)
        if session_id is None:
            return None
        return self._sessions.get(session_id)

    def get(self, session_id: str) -> Optional[Session]:
        return self._sessions.get(session_id)

    def connection_for(self, session_id: str):
        return self._connections.get(session_id)

    def remove(self, conn) -> Optional[Session]:
        """Drop the session bound to `conn`; returns it, or None if absent."""
        session_id = self._ids_by_key.pop(conn.key, None)
        if session_id is None:
            return None
        self._connections.pop(session_id, None)
        return self._sessions.pop(session_id, None)

    def entries(self) -> List[Tuple[object, Session]]:
        """Snapshot of (connection, session) pairs, safe to iterate while mutating."""
        return [(self._connections[sid], s) for sid, s in self._sessions.items()]

    def sessions(self) -> List[Session]:
        return list(self._sessions.values())

    def clear(self) -> None:
        self._sessions.clear()
        self._ids_by_key.clear()
        self._connections.clear()
