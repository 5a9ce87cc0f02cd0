from sqlalchemy import Column, String, DateTime, Text
from datetime import datetime

from teamsync.core.database import Base
from teamsync.core.types import Identifier, generate_uuid


class User(Base):
    """User model (read-only to the realtime core: display metadata lookup)"""
    __tablename__ = "users"

    id = Column(Identifier, primary_key=True, default=generate_uuid)
    username = Column(String(100), unique=True, index=True, nullable=False)
    email = Column(String(255), unique=True, index=True, nullable=True)
    full_name = Column(String(255), nullable=True)
    avatar_url = Column(Text, nullable=True)

    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    @property
    def display_name(self) -> str:
        return self.full_name or self.username

    def __repr__(self):
        return f"<User {self.username}>"
