import asyncio
from dataclasses import dataclass, field
from datetime import datetime
from typing import Dict, List, Optional

from errors import InvalidPassword, RoomNotFound
from logging_config import get_logger

logger = get_logger(__name__)


@dataclass
class Viewer:
    connection_id: str
    display_name: str


@dataclass
class Room:
    room_id: str
    host_connection_id: str
    password: str = ""
    viewers: List[Viewer] = field(default_factory=list)
    created_at: str = field(default_factory=lambda: datetime.now().isoformat())

    @property
    def has_password(self) -> bool:
        return bool(self.password)


class RoomStore:
    """In-memory room membership, keyed by room id.

    Mutations run under a single lock so that a join and the destruction of
    the same room never interleave.
    """

    def __init__(self):
        self._rooms: Dict[str, Room] = {}
        self._lock = asyncio.Lock()
        logger.info("Initializing in-memory RoomStore")

    async def create(self, room_id: str, password: str, host_connection_id: str) -> Room:
        async with self._lock:
            previous = self._rooms.get(room_id)
            if previous:
                # Overwritten without notifying the previous host or its viewers
                logger.warning(
                    f"Room {room_id} already exists (host {previous.host_connection_id}, "
                    f"{len(previous.viewers)} viewers), replacing it"
                )
            room = Room(room_id=room_id, host_connection_id=host_connection_id, password=password or "")
            self._rooms[room_id] = room
        logger.info(f"Room {room_id} created by {host_connection_id} (password protected: {room.has_password})")
        return room

    async def join(self, room_id: str, password: str, connection_id: str, display_name: str) -> str:
        """Append a viewer and return the host's connection id."""
        async with self._lock:
            room = self._rooms.get(room_id)
            if room is None:
                logger.info(f"Join rejected for {connection_id}: room {room_id} not found")
                raise RoomNotFound()
            if room.password and room.password != (password or ""):
                logger.warning(f"Join rejected for {connection_id}: invalid password for room {room_id}")
                raise InvalidPassword()
            room.viewers.append(Viewer(connection_id=connection_id, display_name=display_name))
            host_id = room.host_connection_id
            viewer_count = len(room.viewers)
        logger.info(f"Viewer {connection_id} ({display_name}) joined room {room_id} ({viewer_count} viewers)")
        return host_id

    async def remove_viewer(self, room_id: str, connection_id: str) -> Optional[Viewer]:
        async with self._lock:
            room = self._rooms.get(room_id)
            if room is None:
                return None
            for index, viewer in enumerate(room.viewers):
                if viewer.connection_id == connection_id:
                    del room.viewers[index]
                    logger.info(f"Viewer {connection_id} removed from room {room_id} ({len(room.viewers)} left)")
                    return viewer
        logger.debug(f"Viewer {connection_id} not present in room {room_id}")
        return None

    async def destroy(self, room_id: str) -> List[Viewer]:
        """Remove the room and return the viewers it had at that moment."""
        async with self._lock:
            room = self._rooms.pop(room_id, None)
        if room is None:
            logger.debug(f"Room {room_id} already gone")
            return []
        logger.info(f"Room {room_id} destroyed with {len(room.viewers)} viewers")
        return list(room.viewers)

    def get(self, room_id: str) -> Optional[Room]:
        return self._rooms.get(room_id)

    def host_of(self, room_id: str) -> Optional[str]:
        room = self._rooms.get(room_id)
        return room.host_connection_id if room else None

    def count(self) -> int:
        return len(self._rooms)

    async def clear(self):
        async with self._lock:
            dropped = len(self._rooms)
            self._rooms.clear()
        logger.info(f"Cleared {dropped} rooms")
