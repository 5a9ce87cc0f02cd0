"""
Room Membership Registry

Tracks call-room membership (room_id -> participant ids) and the signaling
session currently bound to each participant, used to target relays.
"""

import asyncio
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

from fastapi import WebSocket
from starlette.websockets import WebSocketState


@dataclass(eq=False)
class SignalingSession:
    """An open signaling WebSocket for one participant; may join many rooms"""
    websocket: WebSocket
    participant_id: str
    display_name: str

    @property
    def is_writable(self) -> bool:
        return (
            self.websocket.client_state == WebSocketState.CONNECTED
            and self.websocket.application_state == WebSocketState.CONNECTED
        )

    async def send(self, payload: Dict[str, Any]) -> None:
        await self.websocket.send_json(payload)


class RoomRegistry:
    def __init__(self):
        # room_id -> participant ids in join order (dict as ordered set)
        self._rooms: Dict[str, Dict[str, None]] = {}
        # participant_id -> session
        self._sessions: Dict[str, SignalingSession] = {}
        self._lock = asyncio.Lock()

    # ==================== Sessions ====================

    async def bind(self, session: SignalingSession) -> None:
        """Make this session the relay target for its participant (latest wins)."""
        async with self._lock:
            self._sessions[session.participant_id] = session

    async def unbind(self, session: SignalingSession) -> bool:
        """Drop the participant's binding if it still points at this session."""
        async with self._lock:
            if self._sessions.get(session.participant_id) is session:
                del self._sessions[session.participant_id]
                return True
            return False

    async def session_for(self, participant_id: str) -> Optional[SignalingSession]:
        async with self._lock:
            return self._sessions.get(participant_id)

    async def sessions_in(self, room_id: str) -> List[SignalingSession]:
        """Bound sessions of the room's current members"""
        async with self._lock:
            members = self._rooms.get(room_id, {})
            return [self._sessions[pid] for pid in members if pid in self._sessions]

    # ==================== Membership ====================

    async def add(self, room_id: str, participant_id: str) -> List[str]:
        """Add a participant (idempotent). Returns the members afterwards."""
        async with self._lock:
            members = self._rooms.setdefault(room_id, {})
            members[participant_id] = None
            return list(members)

    async def remove(self, room_id: str, participant_id: str) -> Optional[List[str]]:
        """
        Remove a participant from a room, dropping the room when it empties.

        Returns the remaining members, or None if the participant was absent.
        """
        async with self._lock:
            return self._remove_locked(room_id, participant_id)

    async def remove_everywhere(self, participant_id: str) -> Dict[str, List[str]]:
        """Remove a participant from every room. Returns room_id -> remaining members."""
        async with self._lock:
            affected = [room_id for room_id, members in self._rooms.items() if participant_id in members]
            return {room_id: self._remove_locked(room_id, participant_id) for room_id in affected}

    def _remove_locked(self, room_id: str, participant_id: str) -> Optional[List[str]]:
        members = self._rooms.get(room_id)
        if not members or participant_id not in members:
            return None
        del members[participant_id]
        if not members:
            del self._rooms[room_id]
        return list(members)

    async def members(self, room_id: str) -> List[str]:
        async with self._lock:
            return list(self._rooms.get(room_id, ()))

    async def rooms_of(self, participant_id: str) -> List[str]:
        async with self._lock:
            return [room_id for room_id, members in self._rooms.items() if participant_id in members]

    def stats(self) -> Dict[str, int]:
        """Participant count per active room"""
        return {room_id: len(members) for room_id, members in self._rooms.items()}

    @property
    def session_count(self) -> int:
        return len(self._sessions)
