"""
Unit Tests for SqlChatStore (SQLite test database)
"""
import asyncio

import pytest
from unittest.mock import MagicMock

from sqlalchemy.exc import OperationalError


class TestSqlChatStore:
    async def test_create_message_round_trips(self, chat_store, test_channel, test_user):
        saved = await chat_store.create_message(
            content="hello team",
            channel_id=test_channel.id,
            author_id=test_user.id,
        )

        assert saved.id
        assert saved.content == "hello team"
        assert saved.channel_id == test_channel.id
        assert saved.author_id == test_user.id
        assert saved.created_at is not None

        history = await chat_store.list_messages(test_channel.id)
        assert [m.id for m in history] == [saved.id]

    async def test_history_is_oldest_first(self, chat_store, test_channel, test_user):
        for text in ("one", "two", "three"):
            await chat_store.create_message(text, test_channel.id, test_user.id)

        history = await chat_store.list_messages(test_channel.id)

        assert [m.content for m in history] == ["one", "two", "three"]

    async def test_history_of_empty_channel(self, chat_store, test_channel):
        assert await chat_store.list_messages(test_channel.id) == []

    async def test_get_user_returns_profile(self, chat_store, test_user):
        profile = await chat_store.get_user(test_user.id)

        assert profile.id == test_user.id
        assert profile.display_name == test_user.full_name
        assert profile.avatar == test_user.avatar_url

    async def test_get_unknown_user(self, chat_store):
        assert await chat_store.get_user("missing") is None

    async def test_create_channel_adds_creator(self, chat_store, db_session, test_user):
        from sqlalchemy import select
        from teamsync.models.channel import ChannelMember

        channel = await chat_store.create_channel("design", creator_id=test_user.id, project_id="p-1")

        assert channel.id
        assert channel.type == "channel"
        result = await db_session.execute(select(ChannelMember).where(ChannelMember.channel_id == channel.id))
        assert [m.user_id for m in result.scalars().all()] == [test_user.id]

    async def test_list_channels_filters_by_project(self, chat_store, test_user):
        await chat_store.create_channel("a", creator_id=test_user.id, project_id="p-1")
        await chat_store.create_channel("b", creator_id=test_user.id, project_id="p-2")

        channels = await chat_store.list_channels("p-1")

        assert [c.name for c in channels] == ["a"]

    async def test_get_channel(self, chat_store, test_channel):
        assert (await chat_store.get_channel(test_channel.id)).name == test_channel.name
        assert await chat_store.get_channel("missing") is None

    async def test_database_error_becomes_persistence_error(self):
        from teamsync.core.exceptions import PersistenceError
        from teamsync.services.chat_store import SqlChatStore

        def broken_factory():
            session = MagicMock()
            session.__aenter__.side_effect = OperationalError("INSERT", {}, Exception("db down"))
            return session

        store = SqlChatStore(session_factory=broken_factory)

        with pytest.raises(PersistenceError) as exc_info:
            await store.create_message("hi", "general", "alice")

        assert exc_info.value.details == {"operation": "create_message"}
        assert exc_info.value.status_code == 503

    @pytest.mark.parametrize("error", [OSError("connection refused"), asyncio.TimeoutError()])
    async def test_driver_io_error_becomes_persistence_error(self, error):
        from teamsync.core.exceptions import PersistenceError
        from teamsync.services.chat_store import SqlChatStore

        def refused_factory():
            session = MagicMock()
            session.__aenter__.side_effect = error
            return session

        store = SqlChatStore(session_factory=refused_factory)

        with pytest.raises(PersistenceError):
            await store.create_message("hi", "general", "alice")
        with pytest.raises(PersistenceError):
            await store.get_user("alice")
