"""
Chat Broadcast Hub

Relays chat events between the connections of a channel:
- join/leave presence when connections open and close
- chat messages (persisted first, then broadcast)
- typing indicators (never persisted)

Delivery is best-effort and at-most-once per live connection.
"""

import logging
from typing import Any, Collection, Dict, Union

from teamsync.core.exceptions import PersistenceError, ProtocolViolationError
from teamsync.core.logging_config import logger
from teamsync.schemas.chat import (
    ChatEventKind,
    ChatEventOut,
    ChatMessageIn,
    ChatPingIn,
    ChatPresenceIn,
    ChatTypingIn,
    parse_chat_event,
)
from teamsync.services.chat_store import ChatStore
from teamsync.services.connection_registry import ChatConnection, ConnectionRegistry

InboundEvent = Union[ChatMessageIn, ChatTypingIn, ChatPresenceIn, ChatPingIn]

HUB = "chat"


class ChatBroadcastHub:
    """Per-channel fan-out for chat connections"""

    def __init__(self, registry: ConnectionRegistry, store: ChatStore):
        self.registry = registry
        self.store = store

    async def register(self, connection: ChatConnection) -> None:
        """Subscribe a connection to its channel and announce it to the others."""
        await self.registry.add(connection)
        logger.log_ws_event(HUB, "connected", connection.channel_id,
                            connection.participant_id, level=logging.INFO)

        await self.broadcast(
            connection.channel_id,
            self._event(ChatEventKind.JOIN, connection),
            exclude=(connection.participant_id,),
        )

    async def unregister(self, connection: ChatConnection) -> None:
        """Remove a connection and announce its departure. Safe to call twice."""
        remaining = await self.registry.remove(connection)
        if remaining is None:
            return

        logger.log_ws_event(HUB, "disconnected", connection.channel_id,
                            connection.participant_id, level=logging.INFO)

        if remaining:
            await self.broadcast(
                connection.channel_id,
                self._event(ChatEventKind.LEAVE, connection),
                exclude=(connection.participant_id,),
            )

    async def receive(self, connection: ChatConnection, raw: Any) -> None:
        """Validate a decoded client frame and handle it; malformed frames are dropped."""
        try:
            event = parse_chat_event(raw)
        except ProtocolViolationError as e:
            logger.log_ws_event(HUB, "dropped", connection.channel_id, connection.participant_id,
                                reason=e.message, field=e.details.get("field"))
            return
        await self.handle(connection, event)

    async def handle(self, connection: ChatConnection, event: InboundEvent) -> None:
        if isinstance(event, ChatMessageIn):
            await self._handle_message(connection, event)
        elif isinstance(event, ChatTypingIn):
            await self._handle_typing(connection, event)
        elif isinstance(event, ChatPingIn):
            await self._send(connection, self._event(ChatEventKind.PONG, connection).to_wire())
        elif isinstance(event, ChatPresenceIn):
            # join/leave are hub-emitted only
            logger.log_ws_event(HUB, f"ignored client {event.kind}", connection.channel_id,
                                connection.participant_id)
        else:
            raise TypeError(f"Unhandled chat event: {type(event).__name__}")

    async def _handle_message(self, connection: ChatConnection, event: ChatMessageIn) -> None:
        if not self._bound_to(connection, event.channel_id):
            return

        try:
            await self.store.create_message(
                content=event.content,
                channel_id=connection.channel_id,
                author_id=connection.participant_id,
            )
        except PersistenceError as e:
            logger.warning(
                f"Chat message from {connection.participant_id} in {connection.channel_id} "
                f"not persisted, dropping: {e.message}",
                extra={"event_type": "ws_event", "ws_hub": HUB, "ws_event": "persist_failed"}
            )
            return
        except Exception as e:
            # Store failures are scoped to this one message
            logger.log_error_with_context(e, context="persist_message", channel=connection.channel_id)
            return

        await self.broadcast(
            connection.channel_id,
            self._event(ChatEventKind.MESSAGE, connection, content=event.content),
            exclude=(connection.participant_id,),
        )

    async def _handle_typing(self, connection: ChatConnection, event: ChatTypingIn) -> None:
        if not self._bound_to(connection, event.channel_id):
            return

        await self.broadcast(
            connection.channel_id,
            self._event(ChatEventKind.TYPING, connection),
            exclude=(connection.participant_id,),
        )

    async def broadcast(
        self,
        channel_id: str,
        event: ChatEventOut,
        exclude: Collection[str] = (),
    ) -> int:
        """
        Deliver an event to every writable connection of a channel whose
        participant is not excluded. Returns the number of deliveries.
        """
        payload = event.to_wire()
        delivered = 0

        for connection in await self.registry.members(channel_id):
            if connection.participant_id in exclude:
                continue
            if not connection.is_writable:
                continue
            if await self._send(connection, payload):
                delivered += 1

        return delivered

    async def _send(self, connection: ChatConnection, payload: Dict[str, Any]) -> bool:
        try:
            await connection.send(payload)
            return True
        except Exception as e:
            logger.warning(
                f"Error sending to {connection.participant_id} in channel {connection.channel_id}: {e}",
                extra={"event_type": "ws_event", "ws_hub": HUB, "ws_event": "send_failed"}
            )
            return False

    def _bound_to(self, connection: ChatConnection, channel_id: str) -> bool:
        if channel_id == connection.channel_id:
            return True
        logger.log_ws_event(HUB, "channel mismatch", connection.channel_id,
                            connection.participant_id, level=logging.WARNING,
                            claimed_channel=channel_id)
        return False

    @staticmethod
    def _event(kind: ChatEventKind, connection: ChatConnection, content: str = None) -> ChatEventOut:
        return ChatEventOut(
            kind=kind,
            channel_id=connection.channel_id,
            participant_id=connection.participant_id,
            display_name=connection.display_name,
            content=content,
        )

    def stats(self) -> Dict[str, Any]:
        channels = self.registry.stats()
        return {
            "channels": len(channels),
            "connections": sum(channels.values()),
        }
