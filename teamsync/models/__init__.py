# Re-export all models for convenient imports
from teamsync.models.user import User
from teamsync.models.channel import Channel, ChannelMember, ChannelType
from teamsync.models.message import Message

__all__ = [
    "User",
    "Channel",
    "ChannelMember",
    "ChannelType",
    "Message",
]
