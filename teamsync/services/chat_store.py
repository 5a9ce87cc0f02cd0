"""
Chat Store - persistence gateway for the realtime hubs

The hubs only need two calls:
- create_message(): durable write of a chat message (before broadcast)
- get_user(): display metadata lookup for call participants

The channel/history calls back the REST routes.
"""

import asyncio
from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime
from typing import Callable, List, Optional

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from teamsync.core.database import get_session_local
from teamsync.core.exceptions import PersistenceError
from teamsync.core.logging_config import logger
from teamsync.models.channel import Channel, ChannelMember
from teamsync.models.message import Message
from teamsync.models.user import User

# Driver-level failures (refused connection, pool timeout) that SQLAlchemy does not wrap
STORE_ERRORS = (SQLAlchemyError, OSError, asyncio.TimeoutError)


@dataclass(frozen=True)
class PersistedMessage:
    """Immutable record of a stored chat message"""
    id: str
    content: str
    channel_id: str
    author_id: str
    created_at: datetime

    @classmethod
    def from_model(cls, message: Message) -> "PersistedMessage":
        return cls(
            id=message.id,
            content=message.content,
            channel_id=message.channel_id,
            author_id=message.user_id,
            created_at=message.created_at,
        )


@dataclass(frozen=True)
class ChannelRecord:
    id: str
    name: str
    type: str
    project_id: Optional[str]
    created_at: datetime

    @classmethod
    def from_model(cls, channel: Channel) -> "ChannelRecord":
        return cls(
            id=channel.id,
            name=channel.name,
            type=channel.type,
            project_id=channel.project_id,
            created_at=channel.created_at,
        )


@dataclass(frozen=True)
class UserProfile:
    """Display metadata for a participant"""
    id: str
    display_name: str
    avatar: Optional[str] = None


class ChatStore(ABC):
    """Persistence gateway consumed by the realtime hubs and the channel routes"""

    @abstractmethod
    async def create_message(self, content: str, channel_id: str, author_id: str) -> PersistedMessage:
        """Persist a message. Raises PersistenceError on failure."""

    @abstractmethod
    async def get_user(self, participant_id: str) -> Optional[UserProfile]:
        """Look up display metadata; None when the user does not exist."""

    @abstractmethod
    async def create_channel(
        self,
        name: str,
        creator_id: str,
        channel_type: str = "channel",
        project_id: Optional[str] = None,
    ) -> ChannelRecord:
        """Create a channel and add its creator as the first member."""

    @abstractmethod
    async def get_channel(self, channel_id: str) -> Optional[ChannelRecord]:
        ...

    @abstractmethod
    async def list_channels(self, project_id: str) -> List[ChannelRecord]:
        ...

    @abstractmethod
    async def list_messages(self, channel_id: str) -> List[PersistedMessage]:
        """Channel history, oldest first."""


class SqlChatStore(ChatStore):
    """ChatStore backed by the async SQLAlchemy session factory"""

    def __init__(self, session_factory: Optional[Callable[[], AsyncSession]] = None):
        self._session_factory = session_factory

    def _session(self) -> AsyncSession:
        factory = self._session_factory or get_session_local()
        return factory()

    async def create_message(self, content: str, channel_id: str, author_id: str) -> PersistedMessage:
        try:
            async with self._session() as session:
                message = Message(content=content, channel_id=channel_id, user_id=author_id)
                session.add(message)
                await session.commit()
                await session.refresh(message)
                return PersistedMessage.from_model(message)
        except STORE_ERRORS as e:
            logger.log_error_with_context(e, context="create_message", channel=channel_id)
            raise PersistenceError(f"Could not store message in channel {channel_id}",
                                   operation="create_message") from e

    async def get_user(self, participant_id: str) -> Optional[UserProfile]:
        try:
            async with self._session() as session:
                user = await session.get(User, participant_id)
        except STORE_ERRORS as e:
            raise PersistenceError(f"Could not load user {participant_id}", operation="get_user") from e

        if user is None:
            return None
        return UserProfile(id=user.id, display_name=user.display_name, avatar=user.avatar_url)

    # ==================== Channel / History ====================

    async def create_channel(
        self,
        name: str,
        creator_id: str,
        channel_type: str = "channel",
        project_id: Optional[str] = None,
    ) -> ChannelRecord:
        try:
            async with self._session() as session:
                channel = Channel(name=name, type=channel_type, project_id=project_id)
                session.add(channel)
                await session.flush()
                session.add(ChannelMember(channel_id=channel.id, user_id=creator_id))
                await session.commit()
                await session.refresh(channel)
                return ChannelRecord.from_model(channel)
        except STORE_ERRORS as e:
            raise PersistenceError(f"Could not create channel {name!r}", operation="create_channel") from e

    async def get_channel(self, channel_id: str) -> Optional[ChannelRecord]:
        try:
            async with self._session() as session:
                channel = await session.get(Channel, channel_id)
                return ChannelRecord.from_model(channel) if channel else None
        except STORE_ERRORS as e:
            raise PersistenceError(f"Could not load channel {channel_id}", operation="get_channel") from e

    async def list_channels(self, project_id: str) -> List[ChannelRecord]:
        try:
            async with self._session() as session:
                result = await session.execute(
                    select(Channel)
                    .where(Channel.project_id == project_id)
                    .order_by(Channel.created_at)
                )
                return [ChannelRecord.from_model(c) for c in result.scalars().all()]
        except STORE_ERRORS as e:
            raise PersistenceError(f"Could not list channels for project {project_id}",
                                   operation="list_channels") from e

    async def list_messages(self, channel_id: str) -> List[PersistedMessage]:
        try:
            async with self._session() as session:
                result = await session.execute(
                    select(Message)
                    .where(Message.channel_id == channel_id)
                    .order_by(Message.created_at)
                )
                return [PersistedMessage.from_model(m) for m in result.scalars().all()]
        except STORE_ERRORS as e:
            raise PersistenceError(f"Could not list messages for channel {channel_id}",
                                   operation="list_messages") from e
