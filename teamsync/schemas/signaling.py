"""Pydantic schemas for the call-room signaling WebSocket protocol"""
from pydantic import BaseModel, Field, ConfigDict, field_validator
from pydantic import ValidationError as PydanticValidationError
from typing import Optional, Any, Dict
from enum import Enum

from teamsync.core.exceptions import ProtocolViolationError


class SignalingEventType(str, Enum):
    """Frame types on the signaling socket"""
    # Client -> server
    JOIN_ROOM = "join-room"
    LEAVE_ROOM = "leave-room"
    PING = "ping"

    # Both directions
    SIGNAL = "signal"

    # Server -> client
    ROOM_USERS = "room-users"
    USER_JOINED = "user-joined"
    USER_LEFT = "user-left"
    PONG = "pong"


CLIENT_EVENTS = (
    SignalingEventType.JOIN_ROOM,
    SignalingEventType.LEAVE_ROOM,
    SignalingEventType.SIGNAL,
    SignalingEventType.PING,
)


class SignalKind(str, Enum):
    """Kinds of connection-setup payloads relayed between peers"""
    OFFER = "offer"
    ANSWER = "answer"
    ICE_CANDIDATE = "ice-candidate"


def _id_to_str(value: Any) -> Any:
    if isinstance(value, int) and not isinstance(value, bool):
        return str(value)
    return value


class SignalEnvelope(BaseModel):
    """
    Directed signaling payload.

    ``payload`` (and any extra keys such as ``sdp``/``candidate``) is opaque
    and relayed verbatim. ``originatorId`` is always overwritten by the hub.
    """
    model_config = ConfigDict(populate_by_name=True, extra="allow")

    kind: SignalKind
    target_participant_id: str = Field(..., alias="targetParticipantId", min_length=1)
    room_id: str = Field(..., alias="roomId", min_length=1)
    originator_id: Optional[str] = Field(None, alias="originatorId")
    payload: Any = None

    @field_validator("target_participant_id", "room_id", "originator_id", mode="before")
    @classmethod
    def coerce_ids(cls, v: Any) -> Any:
        return _id_to_str(v)

    def to_wire(self) -> Dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True)


class SignalingFrame(BaseModel):
    """``{"type": ..., "data": ...}`` frame exchanged on the signaling socket"""
    type: SignalingEventType
    data: Any = None

    def to_wire(self) -> Dict[str, Any]:
        return self.model_dump(mode="json")


class UserJoinedPayload(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    participant_id: str = Field(..., alias="participantId")
    display_name: str = Field(..., alias="displayName")
    avatar: Optional[str] = None


class UserLeftPayload(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    participant_id: str = Field(..., alias="participantId")


def parse_signaling_frame(raw: Any) -> SignalingFrame:
    """Validate a decoded client frame, raising ProtocolViolationError if malformed."""
    if not isinstance(raw, dict):
        raise ProtocolViolationError("Signaling frame must be a JSON object")
    try:
        frame = SignalingFrame.model_validate(raw)
    except PydanticValidationError:
        raise ProtocolViolationError(f"Unknown signaling frame type: {raw.get('type')!r}", field="type")
    if frame.type not in CLIENT_EVENTS:
        raise ProtocolViolationError(f"'{frame.type.value}' is a server-only event", field="type")
    return frame


def parse_room_id(data: Any) -> str:
    """join-room / leave-room carry the room id either bare or as {"roomId": ...}"""
    if isinstance(data, dict):
        data = data.get("roomId")
    data = _id_to_str(data)
    if not isinstance(data, str) or not data:
        raise ProtocolViolationError("roomId is required", field="roomId")
    return data


def parse_signal_envelope(data: Any) -> SignalEnvelope:
    try:
        return SignalEnvelope.model_validate(data)
    except PydanticValidationError as e:
        first = e.errors()[0] if e.errors() else {}
        field = ".".join(str(p) for p in first.get("loc", ())) or None
        raise ProtocolViolationError(first.get("msg", "Invalid signal envelope"), field=field)
