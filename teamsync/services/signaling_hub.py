"""
Signaling Relay Hub

Peer discovery and signal relay for multi-party calls:
- join-room: add to room, tell the others (user-joined), tell the joiner
  who is already there (room-users)
- signal: forward an offer/answer/ice-candidate to exactly one target
- leave-room / disconnect: revoke membership, tell the remaining members

Media never passes through here, only the setup metadata.
"""

import logging
from typing import Any, Dict, Optional

from teamsync.core.exceptions import PersistenceError, ProtocolViolationError
from teamsync.core.logging_config import logger
from teamsync.schemas.signaling import (
    SignalEnvelope,
    SignalingEventType,
    SignalingFrame,
    UserJoinedPayload,
    UserLeftPayload,
    parse_room_id,
    parse_signal_envelope,
    parse_signaling_frame,
)
from teamsync.services.chat_store import ChatStore, UserProfile
from teamsync.services.room_registry import RoomRegistry, SignalingSession

HUB = "signaling"


class SignalingRelayHub:
    """Room membership notifications and directed signal relay"""

    def __init__(self, registry: RoomRegistry, store: ChatStore):
        self.registry = registry
        self.store = store

    async def connect(self, session: SignalingSession) -> None:
        """Bind the session so relays addressed to its participant reach it."""
        await self.registry.bind(session)
        logger.log_ws_event(HUB, "connected", "-", session.participant_id, level=logging.INFO)

    async def receive(self, session: SignalingSession, raw: Any) -> None:
        """Validate and dispatch one decoded client frame; malformed frames are dropped."""
        try:
            frame = parse_signaling_frame(raw)

            if frame.type == SignalingEventType.JOIN_ROOM:
                await self.join(session, parse_room_id(frame.data))
            elif frame.type == SignalingEventType.LEAVE_ROOM:
                await self.leave(session, parse_room_id(frame.data))
            elif frame.type == SignalingEventType.SIGNAL:
                await self.relay(session, parse_signal_envelope(frame.data))
            elif frame.type == SignalingEventType.PING:
                await self._send(session, SignalingFrame(type=SignalingEventType.PONG))
            else:
                raise TypeError(f"Unhandled signaling frame: {frame.type.value}")

        except ProtocolViolationError as e:
            logger.log_ws_event(HUB, "dropped", "-", session.participant_id,
                                reason=e.message, field=e.details.get("field"))

    async def join(self, session: SignalingSession, room_id: str) -> None:
        members = await self.registry.add(room_id, session.participant_id)
        logger.log_ws_event(HUB, "join", room_id, session.participant_id, level=logging.INFO)

        profile = await self._lookup_profile(session.participant_id)
        joined = UserJoinedPayload(
            participant_id=session.participant_id,
            display_name=session.display_name,
            avatar=profile.avatar if profile else None,
        )
        await self.broadcast_to_room(
            room_id,
            SignalingFrame(type=SignalingEventType.USER_JOINED,
                           data=joined.model_dump(by_alias=True)),
            exclude=session.participant_id,
        )

        others = [pid for pid in members if pid != session.participant_id]
        await self._send(session, SignalingFrame(type=SignalingEventType.ROOM_USERS, data=others))

    async def relay(self, session: SignalingSession, envelope: SignalEnvelope) -> bool:
        """Forward an envelope to its target's session. Returns False when dropped."""
        stamped = envelope.model_copy(update={"originator_id": session.participant_id})

        target = await self.registry.session_for(stamped.target_participant_id)
        if target is None or not target.is_writable:
            logger.log_ws_event(HUB, "relay target gone", stamped.room_id, session.participant_id,
                                target=stamped.target_participant_id)
            return False

        return await self._send(
            target,
            SignalingFrame(type=SignalingEventType.SIGNAL, data=stamped.to_wire()),
        )

    async def leave(self, session: SignalingSession, room_id: str) -> None:
        remaining = await self.registry.remove(room_id, session.participant_id)
        if remaining is None:
            return

        logger.log_ws_event(HUB, "leave", room_id, session.participant_id, level=logging.INFO)
        await self._announce_left(room_id, session.participant_id)

    async def disconnect(self, session: SignalingSession) -> None:
        """Leave every room the participant is in and release the session binding."""
        await self.registry.unbind(session)
        left = await self.registry.remove_everywhere(session.participant_id)

        logger.log_ws_event(HUB, "disconnected", ",".join(left) or "-", session.participant_id,
                            level=logging.INFO)

        for room_id in left:
            await self._announce_left(room_id, session.participant_id)

    async def broadcast_to_room(
        self,
        room_id: str,
        frame: SignalingFrame,
        exclude: Optional[str] = None,
    ) -> int:
        payload = frame.to_wire()
        delivered = 0

        for target in await self.registry.sessions_in(room_id):
            if target.participant_id == exclude:
                continue
            if not target.is_writable:
                continue
            if await self._send_payload(target, payload):
                delivered += 1

        return delivered

    async def _announce_left(self, room_id: str, participant_id: str) -> None:
        await self.broadcast_to_room(
            room_id,
            SignalingFrame(type=SignalingEventType.USER_LEFT,
                           data=UserLeftPayload(participant_id=participant_id).model_dump(by_alias=True)),
            exclude=participant_id,
        )

    async def _lookup_profile(self, participant_id: str) -> Optional[UserProfile]:
        try:
            return await self.store.get_user(participant_id)
        except PersistenceError as e:
            logger.warning(f"Profile lookup failed for {participant_id}: {e.message}")
            return None
        except Exception as e:
            logger.log_error_with_context(e, context="profile_lookup", participant=participant_id)
            return None

    async def _send(self, session: SignalingSession, frame: SignalingFrame) -> bool:
        return await self._send_payload(session, frame.to_wire())

    async def _send_payload(self, session: SignalingSession, payload: Dict[str, Any]) -> bool:
        try:
            await session.send(payload)
            return True
        except Exception as e:
            logger.warning(
                f"Error sending to {session.participant_id} on signaling socket: {e}",
                extra={"event_type": "ws_event", "ws_hub": HUB, "ws_event": "send_failed"}
            )
            return False

    def stats(self) -> Dict[str, Any]:
        rooms = self.registry.stats()
        return {
            "rooms": len(rooms),
            "participants": sum(rooms.values()),
            "sessions": self.registry.session_count,
        }
