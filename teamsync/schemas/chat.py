"""Pydantic schemas for the chat channel WebSocket protocol"""
from pydantic import BaseModel, Field, ConfigDict, TypeAdapter, field_validator
from pydantic import ValidationError as PydanticValidationError
from typing import Optional, Literal, Union, Any, Dict, Annotated
from enum import Enum

from teamsync.core.config import settings
from teamsync.core.exceptions import ProtocolViolationError


class ChatEventKind(str, Enum):
    """Chat event kinds"""
    JOIN = "join"
    LEAVE = "leave"
    TYPING = "typing"
    MESSAGE = "message"

    # Keep-alive
    PING = "ping"
    PONG = "pong"


def _id_to_str(value: Any) -> Any:
    # Older clients send numeric channel ids
    if isinstance(value, int) and not isinstance(value, bool):
        return str(value)
    return value


# ==================== Inbound (client -> server) ====================

class _InboundEvent(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    channel_id: str = Field(..., alias="channelId", min_length=1)

    @field_validator("channel_id", mode="before")
    @classmethod
    def coerce_channel_id(cls, v: Any) -> Any:
        return _id_to_str(v)


class ChatMessageIn(_InboundEvent):
    """A chat message to persist and broadcast"""
    kind: Literal["message"]
    content: str

    @field_validator("content")
    @classmethod
    def content_not_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("content must not be empty")
        if len(v) > settings.MAX_MESSAGE_LENGTH:
            raise ValueError(f"content exceeds {settings.MAX_MESSAGE_LENGTH} characters")
        return v


class ChatTypingIn(_InboundEvent):
    """Typing indicator"""
    kind: Literal["typing"]


class ChatPresenceIn(_InboundEvent):
    """join/leave are emitted by the hub only; accepted here so they can be ignored"""
    kind: Literal["join", "leave"]
    channel_id: Optional[str] = Field(None, alias="channelId")


class ChatPingIn(_InboundEvent):
    """Keep-alive ping"""
    kind: Literal["ping"]
    channel_id: Optional[str] = Field(None, alias="channelId")


InboundChatEvent = Annotated[
    Union[ChatMessageIn, ChatTypingIn, ChatPresenceIn, ChatPingIn],
    Field(discriminator="kind"),
]

_inbound_adapter: TypeAdapter = TypeAdapter(InboundChatEvent)


def parse_chat_event(raw: Any) -> Union[ChatMessageIn, ChatTypingIn, ChatPresenceIn, ChatPingIn]:
    """Validate a decoded client frame, raising ProtocolViolationError if malformed."""
    if not isinstance(raw, dict):
        raise ProtocolViolationError("Chat event must be a JSON object")
    try:
        return _inbound_adapter.validate_python(raw)
    except PydanticValidationError as e:
        first = e.errors()[0] if e.errors() else {}
        field = ".".join(str(p) for p in first.get("loc", ())) or None
        raise ProtocolViolationError(first.get("msg", "Invalid chat event"), field=field)


# ==================== Outbound (server -> client) ====================

class ChatEventOut(BaseModel):
    """Event delivered to channel subscribers"""
    model_config = ConfigDict(populate_by_name=True)

    kind: ChatEventKind
    channel_id: str = Field(..., alias="channelId")
    participant_id: str = Field(..., alias="participantId")
    display_name: str = Field(..., alias="displayName")
    content: Optional[str] = None

    def to_wire(self) -> Dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)
