"""Chat channel models - named channels scoping message history"""
from sqlalchemy import Column, String, DateTime, ForeignKey, Index, UniqueConstraint
from sqlalchemy.orm import relationship
from datetime import datetime
import enum

from teamsync.core.database import Base
from teamsync.core.types import Identifier, generate_uuid


class ChannelType(str, enum.Enum):
    """Channel kind"""
    CHANNEL = "channel"
    DIRECT = "direct"


class Channel(Base):
    """A named chat channel, optionally scoped to a project"""
    __tablename__ = "channels"

    __table_args__ = (
        Index('ix_channels_project_id', 'project_id'),
    )

    id = Column(Identifier, primary_key=True, default=generate_uuid)
    name = Column(String(255), nullable=False)
    # String instead of SQLEnum to avoid enum type creation on Postgres
    type = Column(String(20), nullable=False, default=ChannelType.CHANNEL.value)
    project_id = Column(Identifier, nullable=True)

    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    members = relationship("ChannelMember", back_populates="channel", cascade="all, delete-orphan")
    messages = relationship("Message", back_populates="channel", cascade="all, delete-orphan")

    def __repr__(self):
        return f"<Channel {self.name} ({self.type})>"


class ChannelMember(Base):
    """Users belonging to a channel"""
    __tablename__ = "channel_members"

    __table_args__ = (
        UniqueConstraint('channel_id', 'user_id', name='uq_channel_members_channel_user'),
    )

    id = Column(Identifier, primary_key=True, default=generate_uuid)
    channel_id = Column(Identifier, ForeignKey("channels.id", ondelete="CASCADE"), nullable=False)
    user_id = Column(Identifier, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)

    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    channel = relationship("Channel", back_populates="members")
