"""Shared dependencies for HTTP and WebSocket endpoints"""
from typing import Optional

from fastapi import Request, WebSocket

from teamsync.core.exceptions import AuthenticationError
from teamsync.core.logging_config import logger
from teamsync.core.security import resolve_participant_id
from teamsync.services.chat_hub import ChatBroadcastHub
from teamsync.services.chat_store import ChatStore
from teamsync.services.signaling_hub import SignalingRelayHub

# Close codes used when rejecting a handshake
WS_CLOSE_AUTH_FAILED = 4001
WS_CLOSE_BAD_HANDSHAKE = 4002


def get_chat_store(request: Request) -> ChatStore:
    return request.app.state.chat_store


def get_chat_hub(websocket: WebSocket) -> ChatBroadcastHub:
    return websocket.app.state.chat_hub


def get_signaling_hub(websocket: WebSocket) -> SignalingRelayHub:
    return websocket.app.state.signaling_hub


async def authenticate_handshake(
    websocket: WebSocket,
    participant_id: Optional[str],
    token: Optional[str],
) -> Optional[str]:
    """
    Resolve the connecting participant or close the socket.

    Returns the participant id, or None after the socket has been closed.
    """
    if not participant_id:
        await websocket.close(code=WS_CLOSE_BAD_HANDSHAKE, reason="participantId is required")
        return None

    try:
        return resolve_participant_id(participant_id, token)
    except AuthenticationError as e:
        logger.warning(f"WebSocket handshake rejected for {participant_id}: {e.code}")
        await websocket.close(code=WS_CLOSE_AUTH_FAILED, reason=e.message)
        return None
