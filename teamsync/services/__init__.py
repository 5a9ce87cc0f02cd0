from teamsync.services.chat_store import ChatStore, SqlChatStore, ChannelRecord, PersistedMessage, UserProfile
from teamsync.services.connection_registry import ChatConnection, ConnectionRegistry
from teamsync.services.chat_hub import ChatBroadcastHub
from teamsync.services.room_registry import RoomRegistry, SignalingSession
from teamsync.services.signaling_hub import SignalingRelayHub

__all__ = [
    # Persistence gateway
    "ChatStore",
    "SqlChatStore",
    "ChannelRecord",
    "PersistedMessage",
    "UserProfile",
    # Chat
    "ChatConnection",
    "ConnectionRegistry",
    "ChatBroadcastHub",
    # Calls
    "RoomRegistry",
    "SignalingSession",
    "SignalingRelayHub",
]
