from typing import Any, Dict

from relay.models import DEFAULT_STATS, Session
from relay.services import protocol


class MessageRouter:
    """Decode inbound frames and dispatch them by ``type``.

    Handlers run with the sender's joined Session. Frames that do not decode,
    carry an unknown type, or arrive before ``join`` are dropped without a
    reply. Only ``chat`` is echoed back to its sender.
    """

    def __init__(self, hub):
        self.hub = hub
        self.handlers = {
            protocol.MOVE: self.handle_move,
            protocol.CHAT: self.handle_chat,
            protocol.EQUIP: self.handle_equip,
            protocol.STATS: self.handle_stats,
            protocol.ATTACK: self.handle_attack,
            protocol.ENEMY_KILL: self.handle_enemy_kill,
            protocol.GROUND_DROP: self.handle_ground_drop,
            protocol.PONG: self.handle_pong,
        }

    @property
    def broadcaster(self):
        return self.hub.broadcaster

    def dispatch(self, conn, raw) -> bool:
        """Route one frame; returns True when a handler ran."""
        msg = protocol.decode(raw)
        if msg is None:
            self.hub.logger.debug(f"[drop] conn={conn.key} reason=malformed")
            return False
        msg_type = msg['type']
        session = self.hub.registry.session_for(conn)

        if msg_type == protocol.JOIN:
            if session is not None:
                return False
            return self.hub.join(conn, msg)

        if session is None:
            self.hub.logger.debug(f"[drop] conn={conn.key} type={msg_type} reason=not_joined")
            return False
        handler = self.handlers.get(msg_type)
        if handler is None:
            self.hub.logger.debug(f"[drop] conn={conn.key} type={msg_type} reason=unknown_type")
            return False
        handler(conn, session, msg)
        return True

    def handle_move(self, conn, session: Session, msg: Dict[str, Any]) -> None:
        session.set_position(
            protocol.coerce_number(msg.get('x')),
            protocol.coerce_number(msg.get('z')),
            protocol.coerce_number(msg.get('ry')),
            bool(msg.get('moving')),
        )
        payload = {'type': protocol.MOVE, 'id': session.id}
        payload.update(session.position_dict())
        self.broadcaster.broadcast(payload, exclude=conn)

    def handle_chat(self, conn, session: Session, msg: Dict[str, Any]) -> None:
        text = protocol.sanitize_chat(msg.get('text'))
        if not text:
            return
        # The sender gets its own line back as delivery confirmation
        self.broadcaster.broadcast({
            'type': protocol.CHAT,
            'id': session.id,
            'name': session.name,
            'text': text,
        })

    def handle_equip(self, conn, session: Session, msg: Dict[str, Any]) -> None:
        equipment = msg.get('equipment')
        session.equipment = equipment if isinstance(equipment, dict) else {}
        self.broadcaster.broadcast(
            {'type': protocol.EQUIP, 'id': session.id, 'equipment': session.equipment},
            exclude=conn,
        )

    def handle_stats(self, conn, session: Session, msg: Dict[str, Any]) -> None:
        level = protocol.coerce_number(msg.get('level'), DEFAULT_STATS['level'])
        session.stats = {
            'level': max(1, int(level)),
            'combatStyle': protocol.sanitize_tag(msg.get('combatStyle'), DEFAULT_STATS['combatStyle']),
            'hp': protocol.coerce_number(msg.get('hp'), DEFAULT_STATS['hp']),
            'maxHp': protocol.coerce_number(msg.get('maxHp'), DEFAULT_STATS['maxHp']),
            'area': protocol.sanitize_tag(msg.get('area'), DEFAULT_STATS['area']),
        }
        self.broadcaster.broadcast(
            {'type': protocol.STATS, 'id': session.id, 'stats': session.stats},
            exclude=conn,
        )

    def handle_attack(self, conn, session: Session, msg: Dict[str, Any]) -> None:
        self.broadcaster.broadcast({
            'type': protocol.ATTACK,
            'id': session.id,
            'name': session.name,
            'enemyId': protocol.sanitize_identifier(msg.get('enemyId')),
            'damage': protocol.coerce_number(msg.get('damage')),
            'style': protocol.sanitize_tag(msg.get('style'), DEFAULT_STATS['combatStyle']),
            'x': protocol.coerce_number(msg.get('x')),
            'z': protocol.coerce_number(msg.get('z')),
        }, exclude=conn)

    def handle_enemy_kill(self, conn, session: Session, msg: Dict[str, Any]) -> None:
        self.broadcaster.broadcast({
            'type': protocol.ENEMY_KILL,
            'id': session.id,
            'name': session.name,
            'enemyId': protocol.sanitize_identifier(msg.get('enemyId')),
        }, exclude=conn)

    def handle_ground_drop(self, conn, session: Session, msg: Dict[str, Any]) -> None:
        self.broadcaster.broadcast({
            'type': protocol.GROUND_DROP,
            'id': session.id,
            'name': session.name,
            'x': protocol.coerce_number(msg.get('x')),
            'z': protocol.coerce_number(msg.get('z')),
            'itemId': protocol.clamp_text(msg.get('itemId'), protocol.ID_MAX_LEN, protocol.NAME_DENYLIST),
            'quantity': protocol.clamp_quantity(msg.get('quantity')),
        }, exclude=conn)

    def handle_pong(self, conn, session: Session, msg: Dict[str, Any]) -> None:
        session.touch(self.hub.clock())
