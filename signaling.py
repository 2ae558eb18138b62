from typing import Any

from connections import ConnectionRegistry
from logging_config import get_logger
from schemas.signaling import AnswerEvent, IceCandidateEvent, OfferEvent

logger = get_logger(__name__)

# Handshake kind -> (outbound event, payload field name)
RELAY_EVENTS = {
    "offer": (OfferEvent, "offer"),
    "answer": (AnswerEvent, "answer"),
    "ice-candidate": (IceCandidateEvent, "candidate"),
}


class SignalRouter:
    """Forwards handshake payloads between two connections without reading them."""

    def __init__(self, registry: ConnectionRegistry):
        self.registry = registry

    async def forward(self, kind: str, sender_id: str, target_id: str, payload: Any) -> bool:
        event_cls, field_name = RELAY_EVENTS[kind]
        if self.registry.get(target_id) is None:
            logger.debug(f"Dropping {kind} from {sender_id}: target {target_id} is not connected")
            return False
        logger.debug(f"{kind} from {sender_id} to {target_id}")
        return await self.registry.send(target_id, event_cls(**{field_name: payload, "sender": sender_id}))
