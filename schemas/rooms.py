from pydantic import BaseModel
from typing import Union


class RoomDetailsResponse(BaseModel):
    room_id: str
    has_password: bool
    viewer_count: int
    created_at: str

class IceServer(BaseModel):
    urls: Union[str, list[str]]

class IceServersResponse(BaseModel):
    ice_servers: list[IceServer]

class HealthResponse(BaseModel):
    status: str
    rooms: int
    connections: int
