"""
Unit Tests for ConnectionRegistry
"""
import asyncio

import pytest

from tests.mocks.realtime import MockWebSocket


def make_connection(participant_id: str, channel_id: str = "general"):
    from teamsync.services.connection_registry import ChatConnection

    return ChatConnection(
        websocket=MockWebSocket(),
        participant_id=participant_id,
        display_name=participant_id.title(),
        channel_id=channel_id,
    )


class TestConnectionRegistry:
    """Tests for channel membership bookkeeping"""

    @pytest.fixture
    def registry(self):
        from teamsync.services.connection_registry import ConnectionRegistry
        return ConnectionRegistry()

    async def test_add_returns_members_in_join_order(self, registry):
        alice, bob = make_connection("alice"), make_connection("bob")

        await registry.add(alice)
        members = await registry.add(bob)

        assert members == [alice, bob]

    async def test_add_same_connection_twice_is_noop(self, registry):
        alice = make_connection("alice")

        await registry.add(alice)
        members = await registry.add(alice)

        assert members == [alice]

    async def test_channels_are_isolated(self, registry):
        alice = make_connection("alice", "general")
        bob = make_connection("bob", "random")

        await registry.add(alice)
        await registry.add(bob)

        assert await registry.members("general") == [alice]
        assert await registry.members("random") == [bob]

    async def test_remove_returns_remaining(self, registry):
        alice, bob = make_connection("alice"), make_connection("bob")
        await registry.add(alice)
        await registry.add(bob)

        remaining = await registry.remove(alice)

        assert remaining == [bob]
        assert await registry.members("general") == [bob]

    async def test_remove_twice_returns_none(self, registry):
        alice = make_connection("alice")
        await registry.add(alice)

        assert await registry.remove(alice) == []
        assert await registry.remove(alice) is None

    async def test_empty_channel_is_dropped(self, registry):
        alice = make_connection("alice")
        await registry.add(alice)
        await registry.remove(alice)

        assert registry.stats() == {}
        assert await registry.members("general") == []

    async def test_same_participant_two_connections(self, registry):
        """Two tabs of one participant are tracked separately"""
        tab1, tab2 = make_connection("alice"), make_connection("alice")
        await registry.add(tab1)
        await registry.add(tab2)

        await registry.remove(tab1)

        assert await registry.members("general") == [tab2]

    async def test_members_is_a_snapshot(self, registry):
        alice = make_connection("alice")
        await registry.add(alice)

        snapshot = await registry.members("general")
        await registry.remove(alice)

        assert snapshot == [alice]

    async def test_concurrent_add_remove_leaves_no_orphans(self, registry):
        connections = [make_connection(f"user-{i}", f"ch-{i % 3}") for i in range(30)]

        await asyncio.gather(*(registry.add(c) for c in connections))
        assert sum(registry.stats().values()) == 30

        await asyncio.gather(*(registry.remove(c) for c in connections))
        assert registry.stats() == {}

    async def test_stats_counts_per_channel(self, registry):
        await registry.add(make_connection("a", "general"))
        await registry.add(make_connection("b", "general"))
        await registry.add(make_connection("c", "random"))

        assert registry.stats() == {"general": 2, "random": 1}


class TestChatConnection:
    """Tests for ChatConnection"""

    def test_is_writable_when_connected(self):
        connection = make_connection("alice")
        assert connection.is_writable

    def test_not_writable_after_client_disconnect(self):
        connection = make_connection("alice")
        connection.websocket.close_silently()
        assert not connection.is_writable

    async def test_send_writes_json(self):
        connection = make_connection("alice")

        await connection.send({"kind": "pong"})

        assert connection.websocket.sent == [{"kind": "pong"}]

    def test_connections_compare_by_identity(self):
        assert make_connection("alice") != make_connection("alice")
