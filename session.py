import asyncio

from backend import RoomStore
from connections import Connection, ConnectionRegistry, Role
from constants import DEFAULT_VIEWER_NAME
from errors import InternalFailure, InvalidState, SignalingError
from logging_config import get_logger
from schemas.signaling import (
    CreateRoomMessage,
    ErrorEvent,
    HostDisconnectedEvent,
    JoinRoomMessage,
    RelayMessage,
    RoomCreatedEvent,
    RoomJoinedEvent,
    ViewerJoinedEvent,
    ViewerLeftEvent,
    parse_client_message,
)
from signaling import RELAY_EVENTS, SignalRouter

logger = get_logger(__name__)

# Reported to the caller when a handler fails unexpectedly
FAILURE_MESSAGES = {
    "create-room": "Failed to create room",
    "join-room": "Failed to join room",
    "offer": "Failed to forward offer",
    "answer": "Failed to forward answer",
    "ice-candidate": "Failed to forward ICE candidate",
}


class SessionLifecycle:
    """
    Drives each connection through unassigned -> host/viewer -> closed.

    Holds no membership state of its own: every decision reads the RoomStore and the
    ConnectionRegistry at the time the event is handled.
    """

    def __init__(self, store: RoomStore, registry: ConnectionRegistry, router: SignalRouter):
        self.store = store
        self.registry = registry
        self.router = router
        self._handlers = {
            "create-room": self.create_room,
            "join-room": self.join_room,
            "offer": self.relay,
            "answer": self.relay,
            "ice-candidate": self.relay,
        }
        self._teardowns = set()

    async def handle_message(self, connection_id: str, raw: str):
        """Parse and dispatch one inbound frame, reporting any failure to the sender only."""
        message_type = None
        try:
            message = parse_client_message(raw)
            message_type = message.type
            logger.debug(f"Received {message_type} from connection {connection_id}: {raw}")
            await self._handlers[message_type](connection_id, message)
        except SignalingError as e:
            logger.warning(f"Rejected {message_type or 'message'} from {connection_id}: {e.message}")
            await self.registry.send(connection_id, ErrorEvent(message=e.message))
        except Exception as e:
            logger.error(f"Error handling {message_type} from connection {connection_id}: {e}", exc_info=True)
            text = FAILURE_MESSAGES.get(message_type, InternalFailure.message)
            await self.registry.send(connection_id, ErrorEvent(message=text))

    def _require_unassigned(self, connection_id: str) -> Connection:
        connection = self.registry.get(connection_id)
        if connection is None:
            raise InternalFailure(f"Unknown connection {connection_id}")
        if connection.role is not Role.UNASSIGNED:
            raise InvalidState()
        return connection

    async def create_room(self, connection_id: str, message: CreateRoomMessage):
        self._require_unassigned(connection_id)
        await self.store.create(message.room_id, message.password or "", connection_id)
        self.registry.assign(connection_id, message.room_id, Role.HOST)
        await self.registry.send(connection_id, RoomCreatedEvent(room_id=message.room_id))

    async def join_room(self, connection_id: str, message: JoinRoomMessage):
        self._require_unassigned(connection_id)
        name = message.name or DEFAULT_VIEWER_NAME
        host_id = await self.store.join(message.room_id, message.password or "", connection_id, name)
        self.registry.assign(connection_id, message.room_id, Role.VIEWER, name)

        await self.registry.send(connection_id, RoomJoinedEvent(room_id=message.room_id))
        await self.registry.send(host_id, ViewerJoinedEvent(viewer_id=connection_id, viewer_name=name))

    async def relay(self, connection_id: str, message: RelayMessage):
        connection = self.registry.get(connection_id)
        if connection is None or connection.role is Role.UNASSIGNED:
            raise InvalidState("Create or join a room before signaling")
        payload = getattr(message, RELAY_EVENTS[message.type][1])
        await self.router.forward(message.type, connection_id, message.to, payload)

    async def disconnect(self, connection_id: str):
        """
        Tear down a closed connection.

        Runs as its own shielded task, so cancelling the caller cannot stop it
        between destroying a room and notifying that room's viewers.
        """
        teardown = asyncio.ensure_future(self._teardown(connection_id))
        self._teardowns.add(teardown)
        teardown.add_done_callback(self._teardowns.discard)
        await asyncio.shield(teardown)

    async def wait_closed(self):
        """Wait for teardowns still running after their callers were cancelled."""
        if self._teardowns:
            await asyncio.gather(*self._teardowns, return_exceptions=True)

    async def _teardown(self, connection_id: str):
        try:
            await self._close_connection(connection_id)
        except Exception as e:
            logger.error(f"Error cleaning up connection {connection_id}: {e}", exc_info=True)

    async def _close_connection(self, connection_id: str):
        connection = self.registry.unregister(connection_id)
        if connection is None or connection.role is Role.UNASSIGNED:
            logger.debug(f"Connection {connection_id} closed without a room")
            return

        room_id = connection.room_id
        if connection.role is Role.HOST:
            # A room re-created under the same id belongs to someone else now
            if self.store.host_of(room_id) != connection_id:
                logger.info(f"Host {connection_id} left, room {room_id} is no longer theirs")
                return
            viewers = await self.store.destroy(room_id)
            await self.registry.broadcast([v.connection_id for v in viewers], HostDisconnectedEvent())
            logger.info(f"Host {connection_id} disconnected, room {room_id} closed ({len(viewers)} viewers notified)")
            return

        viewer = await self.store.remove_viewer(room_id, connection_id)
        if viewer is None:
            return
        host_id = self.store.host_of(room_id)
        if host_id:
            await self.registry.send(
                host_id, ViewerLeftEvent(viewer_id=viewer.connection_id, viewer_name=viewer.display_name)
            )
        logger.info(f"Viewer {connection_id} ({viewer.display_name}) left room {room_id}")
