"""
Message model - durable chat history.
Rows are only ever inserted; the realtime core never edits or deletes them.
"""

from sqlalchemy import Column, DateTime, Text, ForeignKey, Index
from sqlalchemy.orm import relationship
from datetime import datetime

from teamsync.core.database import Base
from teamsync.core.types import Identifier, generate_uuid


class Message(Base):
    __tablename__ = "messages"

    __table_args__ = (
        Index('ix_messages_channel_id', 'channel_id'),
        Index('ix_messages_created_at', 'created_at'),
    )

    id = Column(Identifier, primary_key=True, default=generate_uuid)
    content = Column(Text, nullable=False)
    channel_id = Column(Identifier, ForeignKey("channels.id", ondelete="CASCADE"), nullable=False)
    user_id = Column(Identifier, ForeignKey("users.id"), nullable=False)

    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    channel = relationship("Channel", back_populates="messages")

    def __repr__(self):
        return f"<Message {self.user_id}@{self.channel_id}: {self.content[:50]}...>"
