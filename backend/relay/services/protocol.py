"""Wire format and field coercion for relay frames.

Every frame is a UTF-8 JSON object carrying a string ``type``. Inbound
fields are coerced rather than validated: bad numbers fall back to a
default and strings are clamped and stripped of markup characters.
"""

import json
import math
import re
from typing import Any, Dict, Optional

# Client -> server
JOIN = 'join'
MOVE = 'move'
CHAT = 'chat'
EQUIP = 'equip'
STATS = 'stats'
ATTACK = 'attack'
ENEMY_KILL = 'enemyKill'
GROUND_DROP = 'groundDrop'
PONG = 'pong'

# Server -> client
WELCOME = 'welcome'
LEAVE = 'leave'
PING = 'ping'
ERROR = 'error'

SERVER_FULL = 'Server full'
DEFAULT_NAME = 'Player'

NAME_MAX_LEN = 16
CHAT_MAX_LEN = 200
TAG_MAX_LEN = 32
ID_MAX_LEN = 64
MAX_DROP_QUANTITY = 1000

NAME_DENYLIST = '<>&"\''
CHAT_DENYLIST = '<>&'

_INTEGER = re.compile(r'^[+-]?\d+$', re.ASCII)
_DECIMAL = re.compile(r'^[+-]?(\d+\.?\d*|\.\d+)([eE][+-]?\d+)?$', re.ASCII)


def encode(payload: Dict[str, Any]) -> str:
    return json.dumps(payload, separators=(',', ':'), allow_nan=False)


def _reject_constant(name):
    # NaN and Infinity are not JSON; browsers cannot parse them back
    raise ValueError(f"non-standard JSON constant {name}")


def _strict_float(text):
    number = float(text)
    if not math.isfinite(number):
        raise ValueError(f"number out of range {text}")
    return number


def decode(raw) -> Optional[Dict[str, Any]]:
    """Decode an inbound frame, returning None for anything unusable."""
    if isinstance(raw, dict):
        # Already parsed by the transport; it must still re-encode as strict JSON
        try:
            encode(raw)
        except (TypeError, ValueError):
            return None
        msg = raw
    else:
        if isinstance(raw, (bytes, bytearray)):
            try:
                raw = raw.decode('utf-8')
            except UnicodeDecodeError:
                return None
        if not isinstance(raw, str):
            return None
        try:
            msg = json.loads(raw, parse_constant=_reject_constant, parse_float=_strict_float)
        except ValueError:
            return None
    if not isinstance(msg, dict) or not isinstance(msg.get('type'), str):
        return None
    return msg


def coerce_number(value, default=0):
    """Return `value` as a finite int/float, or `default`.

    Booleans are not treated as numbers.
    """
    if isinstance(value, bool):
        return default
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return value if math.isfinite(value) else default
    if isinstance(value, str):
        text = value.strip()
        if _INTEGER.match(text):
            return int(text)
        if not _DECIMAL.match(text):
            return default
        number = float(text)
        return number if math.isfinite(number) else default
    return default


def clamp_text(value, max_len: int, denylist: str, default: str = '') -> str:
    """Cut `value` to `max_len` characters, then strip `denylist` characters.

    Running it on its own output is a no-op.
    """
    if value is None or isinstance(value, (bool, dict, list)):
        return default
    if not isinstance(value, str):
        value = str(value)
    value = value[:max_len]
    return ''.join(ch for ch in value if ch not in denylist)


def sanitize_name(value) -> str:
    name = clamp_text(value, NAME_MAX_LEN, NAME_DENYLIST)
    return name or DEFAULT_NAME


def sanitize_chat(value) -> str:
    return clamp_text(value, CHAT_MAX_LEN, CHAT_DENYLIST)


def sanitize_tag(value, default: str) -> str:
    return clamp_text(value, TAG_MAX_LEN, NAME_DENYLIST) or default


def sanitize_identifier(value):
    """Entity ids pass through as numbers or clamped strings; anything else is None."""
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return coerce_number(value, None)
    if isinstance(value, str):
        return clamp_text(value, ID_MAX_LEN, NAME_DENYLIST)
    return None


def clamp_quantity(value):
    quantity = coerce_number(value, 1)
    return min(quantity, MAX_DROP_QUANTITY)


def error_notice(msg: str = SERVER_FULL) -> Dict[str, Any]:
    return {'type': ERROR, 'msg': msg}
