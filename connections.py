import asyncio
import uuid
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Iterable, Optional

from errors import InvalidState
from logging_config import get_logger
from schemas.signaling import WireMessage

logger = get_logger(__name__)


class Role(str, Enum):
    UNASSIGNED = "unassigned"
    HOST = "host"
    VIEWER = "viewer"


@dataclass
class Connection:
    connection_id: str
    websocket: Any
    room_id: Optional[str] = None
    role: Role = Role.UNASSIGNED
    display_name: Optional[str] = None


class ConnectionRegistry:
    """Live connections by id, with the room/role each one has taken."""

    def __init__(self):
        self._connections: Dict[str, Connection] = {}

    def register(self, websocket) -> Connection:
        connection = Connection(connection_id=uuid.uuid4().hex, websocket=websocket)
        self._connections[connection.connection_id] = connection
        logger.debug(f"Registered connection {connection.connection_id} ({len(self._connections)} live)")
        return connection

    def unregister(self, connection_id: str) -> Optional[Connection]:
        connection = self._connections.pop(connection_id, None)
        if connection:
            logger.debug(f"Unregistered connection {connection_id} ({len(self._connections)} live)")
        return connection

    def get(self, connection_id: str) -> Optional[Connection]:
        return self._connections.get(connection_id)

    def count(self) -> int:
        return len(self._connections)

    def assign(self, connection_id: str, room_id: str, role: Role, display_name: str = None) -> Connection:
        """Bind a connection to a room once; a second assignment is rejected."""
        connection = self._connections.get(connection_id)
        if connection is None:
            raise InvalidState(f"Unknown connection {connection_id}")
        if connection.role is not Role.UNASSIGNED:
            raise InvalidState()
        connection.room_id = room_id
        connection.role = role
        connection.display_name = display_name
        logger.debug(f"Connection {connection_id} is now {role.value} of room {room_id}")
        return connection

    async def send(self, connection_id: str, message: WireMessage) -> bool:
        """Best-effort delivery; False when the connection is gone or the send fails."""
        connection = self._connections.get(connection_id)
        if connection is None:
            logger.debug(f"Dropping {message.type} for vanished connection {connection_id}")
            return False
        try:
            await connection.websocket.send_text(message.to_wire())
            return True
        except Exception as e:
            logger.warning(f"Error sending {message.type} to connection {connection_id}: {e}")
            return False

    async def broadcast(self, connection_ids: Iterable[str], message: WireMessage) -> int:
        """Send to several connections concurrently, returning the delivered count."""
        results = await asyncio.gather(*(self.send(conn_id, message) for conn_id in connection_ids))
        delivered = sum(1 for ok in results if ok)
        logger.debug(f"Broadcast {message.type} to {delivered}/{len(results)} connections")
        return delivered
