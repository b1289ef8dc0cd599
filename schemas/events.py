from pydantic import AliasChoices, BaseModel, ConfigDict, Field, TypeAdapter, model_validator
from typing import Annotated, Any, Dict, List, Literal, NamedTuple, Optional, Union
from constants import ROOM_ID_MAX_LENGTH, USERNAME_MAX_LENGTH


class Message(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    id: str
    message: str
    raw_signal: str = Field(alias="rawSignal")
    username: str
    timestamp: int


# Client -> server

class JoinRoomData(BaseModel):
    model_config = ConfigDict(populate_by_name=True, str_strip_whitespace=True)

    room_id: str = Field(alias="roomId", min_length=1, max_length=ROOM_ID_MAX_LENGTH)
    username: Optional[str] = Field(default=None, max_length=USERNAME_MAX_LENGTH)


class SignalMessageData(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    message: Optional[str] = None
    # The original client calls this field "morse"
    raw_signal: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("rawSignal", "morse", "raw_signal"),
    )
    timestamp: Optional[int] = None

    @model_validator(mode="after")
    def require_content(self):
        if not self.message and not self.raw_signal:
            raise ValueError("message or rawSignal is required")
        return self


class JoinRoom(BaseModel):
    type: Literal["join-room"]
    data: JoinRoomData


class SendSignal(BaseModel):
    type: Literal["signal-message", "morse-message"]
    data: SignalMessageData


class RequestRoomId(BaseModel):
    type: Literal["request-room-id"]
    data: Optional[Dict[str, Any]] = None


class LeaveRoom(BaseModel):
    type: Literal["leave-room"]
    data: Optional[Dict[str, Any]] = None


class Disconnect(BaseModel):
    type: Literal["disconnect"] = "disconnect"
    data: Optional[Dict[str, Any]] = None


ClientEvent = Annotated[
    Union[JoinRoom, SendSignal, RequestRoomId, LeaveRoom, Disconnect],
    Field(discriminator="type"),
]

client_event_adapter = TypeAdapter(ClientEvent)


def parse_client_event(raw: str):
    """Parse one inbound websocket frame. Raises pydantic.ValidationError on bad input."""
    return client_event_adapter.validate_json(raw)


# Server -> client

ServerEventType = Literal[
    "room-joined",
    "room-full",
    "user-joined",
    "user-left",
    "signal-message",
    "signal-message-sent",
    "room-id-generated",
]


class RoomJoinedData(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    room_id: str = Field(alias="roomId")
    users: List[str]
    messages: List[Message]


class ServerEvent(BaseModel):
    type: ServerEventType
    data: Union[RoomJoinedData, Message, str, None] = None

    def to_wire(self) -> dict:
        return self.model_dump(mode="json", by_alias=True)


class Delivery(NamedTuple):
    """An outbound event addressed to a single connection."""

    connection_id: str
    event: ServerEvent
