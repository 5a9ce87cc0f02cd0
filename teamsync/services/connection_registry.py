"""
Connection Registry

Tracks which chat connections are subscribed to which channel.
Each connection is bound to one channel for its whole lifetime.
"""

import asyncio
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

from fastapi import WebSocket
from starlette.websockets import WebSocketState


@dataclass(eq=False)
class ChatConnection:
    """An open chat WebSocket tagged with its participant and channel"""
    websocket: WebSocket
    participant_id: str
    display_name: str
    channel_id: str

    @property
    def is_writable(self) -> bool:
        return (
            self.websocket.client_state == WebSocketState.CONNECTED
            and self.websocket.application_state == WebSocketState.CONNECTED
        )

    async def send(self, payload: Dict[str, Any]) -> None:
        await self.websocket.send_json(payload)


class ConnectionRegistry:
    """channel_id -> ordered list of ChatConnection"""

    def __init__(self):
        self._channels: Dict[str, List[ChatConnection]] = {}
        self._lock = asyncio.Lock()

    async def add(self, connection: ChatConnection) -> List[ChatConnection]:
        """Subscribe a connection to its channel. Returns the channel's members afterwards."""
        async with self._lock:
            members = self._channels.setdefault(connection.channel_id, [])
            if connection not in members:
                members.append(connection)
            return list(members)

    async def remove(self, connection: ChatConnection) -> Optional[List[ChatConnection]]:
        """
        Unsubscribe a connection.

        Returns the remaining members, or None if the connection was not
        registered (already removed).
        """
        async with self._lock:
            members = self._channels.get(connection.channel_id)
            if not members or connection not in members:
                return None
            members.remove(connection)
            if not members:
                del self._channels[connection.channel_id]
            return list(members)

    async def members(self, channel_id: str) -> List[ChatConnection]:
        """Snapshot of a channel's connections (empty if the channel is unknown)."""
        async with self._lock:
            return list(self._channels.get(channel_id, ()))

    def stats(self) -> Dict[str, int]:
        """Connection count per active channel"""
        return {channel_id: len(members) for channel_id, members in self._channels.items()}
