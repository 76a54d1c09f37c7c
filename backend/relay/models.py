import random
import string
from typing import Any, Dict

DEFAULT_STATS = {
    'level': 1,
    'combatStyle': 'nano',
    'hp': 100,
    'maxHp': 100,
    'area': 'station-hub',
}


def generate_session_id(taken, length: int = 8) -> str:
    """Generate a short session id not present in `taken`."""
    alphabet = string.ascii_lowercase + string.digits
    while True:
        sid = ''.join(random.choices(alphabet, k=length))
        if sid not in taken:
            return sid


class Session:
    """State of one joined player as seen by every other client."""

    def __init__(self, session_id: str, name: str, last_seen: float):
        self.id = session_id
        self.name = name
        self.x = 0
        self.z = 0
        self.ry = 0
        self.moving = False
        self.equipment: Dict[str, Any] = {}
        self.stats: Dict[str, Any] = dict(DEFAULT_STATS)
        self.last_seen = last_seen

    def set_position(self, x, z, ry, moving: bool) -> None:
        self.x = x
        self.z = z
        self.ry = ry
        self.moving = moving

    def touch(self, now: float) -> None:
        self.last_seen = now

    def is_stale(self, now: float, timeout: float) -> bool:
        return now - self.last_seen > timeout

    def position_dict(self) -> Dict[str, Any]:
        return {'x': self.x, 'z': self.z, 'ry': self.ry, 'moving': self.moving}

    def to_dict(self) -> Dict[str, Any]:
        data = {'id': self.id, 'name': self.name}
        data.update(self.position_dict())
        data['equipment'] = self.equipment
        data['stats'] = self.stats
        return data

    def __repr__(self) -> str:
        return f"<Session id={self.id} name={self.name!r}>"
