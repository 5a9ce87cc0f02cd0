from teamsync.schemas.chat import (
    ChatEventKind,
    ChatEventOut,
    ChatMessageIn,
    ChatTypingIn,
    parse_chat_event,
)
from teamsync.schemas.signaling import (
    SignalEnvelope,
    SignalKind,
    SignalingEventType,
    SignalingFrame,
)

__all__ = [
    "ChatEventKind",
    "ChatEventOut",
    "ChatMessageIn",
    "ChatTypingIn",
    "parse_chat_event",
    "SignalEnvelope",
    "SignalKind",
    "SignalingEventType",
    "SignalingFrame",
]
