import json
from typing import Annotated, Any, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, ValidationError

from errors import MalformedRequest


class WireMessage(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    def to_wire(self) -> str:
        return self.model_dump_json(by_alias=True)


# Client -> server

class CreateRoomMessage(WireMessage):
    type: Literal["create-room"]
    room_id: str = Field(alias="roomId", min_length=1)
    password: Optional[str] = None


class JoinRoomMessage(WireMessage):
    type: Literal["join-room"]
    room_id: str = Field(alias="roomId", min_length=1)
    name: Optional[str] = None
    password: Optional[str] = None


class OfferMessage(WireMessage):
    type: Literal["offer"]
    offer: Any
    to: str = Field(min_length=1)


class AnswerMessage(WireMessage):
    type: Literal["answer"]
    answer: Any
    to: str = Field(min_length=1)


class IceCandidateMessage(WireMessage):
    type: Literal["ice-candidate"]
    candidate: Any
    to: str = Field(min_length=1)


ClientMessage = Annotated[
    Union[CreateRoomMessage, JoinRoomMessage, OfferMessage, AnswerMessage, IceCandidateMessage],
    Field(discriminator="type"),
]
RelayMessage = Union[OfferMessage, AnswerMessage, IceCandidateMessage]

CLIENT_MESSAGE_TYPES = ("create-room", "join-room", "offer", "answer", "ice-candidate")

client_message_adapter = TypeAdapter(ClientMessage)


def parse_client_message(raw: str):
    """Decode one text frame into its tagged model, raising MalformedRequest on bad input."""
    try:
        data = json.loads(raw)
    except (json.JSONDecodeError, TypeError):
        raise MalformedRequest("Invalid JSON format")

    if not isinstance(data, dict):
        raise MalformedRequest("Invalid JSON format")

    message_type = data.get("type")
    if message_type not in CLIENT_MESSAGE_TYPES:
        raise MalformedRequest("Unknown message type")

    try:
        return client_message_adapter.validate_python(data)
    except ValidationError as e:
        fields = ", ".join(
            ".".join(str(part) for part in error["loc"][1:]) or "message"
            for error in e.errors()
        )
        raise MalformedRequest(f"Malformed {message_type} request: {fields}")


# Server -> client

class ConnectedEvent(WireMessage):
    type: Literal["connected"] = "connected"
    connection_id: str = Field(alias="connectionId")


class RoomCreatedEvent(WireMessage):
    type: Literal["room-created"] = "room-created"
    room_id: str = Field(alias="roomId")


class RoomJoinedEvent(WireMessage):
    type: Literal["room-joined"] = "room-joined"
    room_id: str = Field(alias="roomId")


class ViewerJoinedEvent(WireMessage):
    type: Literal["viewer-joined"] = "viewer-joined"
    viewer_id: str = Field(alias="viewerId")
    viewer_name: str = Field(alias="viewerName")


class ViewerLeftEvent(WireMessage):
    type: Literal["viewer-left"] = "viewer-left"
    viewer_id: str = Field(alias="viewerId")
    viewer_name: str = Field(alias="viewerName")


class HostDisconnectedEvent(WireMessage):
    type: Literal["host-disconnected"] = "host-disconnected"


class ErrorEvent(WireMessage):
    type: Literal["error"] = "error"
    message: str


class OfferEvent(WireMessage):
    type: Literal["offer"] = "offer"
    offer: Any
    sender: str = Field(alias="from")


class AnswerEvent(WireMessage):
    type: Literal["answer"] = "answer"
    answer: Any
    sender: str = Field(alias="from")


class IceCandidateEvent(WireMessage):
    type: Literal["ice-candidate"] = "ice-candidate"
    candidate: Any
    sender: str = Field(alias="from")
