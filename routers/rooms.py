from fastapi import APIRouter, HTTPException, Request
from schemas.rooms import RoomDetailsResponse
from logging_config import get_logger

logger = get_logger(__name__)

rooms_router = APIRouter(prefix="/rooms", tags=["rooms"])


@rooms_router.get("/{room_id}", response_model=RoomDetailsResponse)
async def get_room_details(room_id: str, request: Request):
    """
    Look up a room before joining it.

    Returns:
    - room_id: Room identifier as stored (no case normalization)
    - has_password: Whether join-room needs a password
    - viewer_count: Viewers currently in the room
    - created_at: Room creation timestamp
    """
    client_host = request.client.host if request.client else 'unknown'
    logger.info(f"Room details request for {room_id} from {client_host}")

    room = request.app.state.room_store.get(room_id)
    if not room:
        logger.info(f"Room details failed: Room {room_id} not found")
        raise HTTPException(status_code=404, detail="Room not found")

    return RoomDetailsResponse(
        room_id=room.room_id,
        has_password=room.has_password,
        viewer_count=len(room.viewers),
        created_at=room.created_at,
    )
