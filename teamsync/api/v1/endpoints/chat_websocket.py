"""
Chat Channel WebSocket Endpoint

One connection per client per channel. Identity and channel are fixed at
handshake; switching channels means reconnecting.

Connection URL: WS /api/v1/chat/ws?participantId=<id>&displayName=<name>&channelId=<id>[&token=<jwt>]
"""

import json
from typing import Optional
from fastapi import APIRouter, Depends, WebSocket, WebSocketDisconnect, Query

from teamsync.api.deps import WS_CLOSE_BAD_HANDSHAKE, authenticate_handshake, get_chat_hub
from teamsync.core.logging_config import logger, set_channel_id, set_participant_id
from teamsync.services.chat_hub import ChatBroadcastHub
from teamsync.services.connection_registry import ChatConnection


router = APIRouter()


@router.websocket("/ws")
async def chat_websocket_endpoint(
    websocket: WebSocket,
    participant_id: Optional[str] = Query(None, alias="participantId"),
    display_name: Optional[str] = Query(None, alias="displayName"),
    channel_id: Optional[str] = Query(None, alias="channelId"),
    token: Optional[str] = Query(None),
    hub: ChatBroadcastHub = Depends(get_chat_hub),
):
    """
    WebSocket endpoint for channel chat.

    Message format (send):
    {
        "kind": "message" | "typing" | "ping",
        "channelId": "<bound channel>",
        "content": "text"          # message only
    }

    Server events:
    {
        "kind": "join" | "leave" | "typing" | "message" | "pong",
        "channelId", "participantId", "displayName", "content"?
    }
    """
    if not channel_id:
        await websocket.close(code=WS_CLOSE_BAD_HANDSHAKE, reason="channelId is required")
        return

    participant_id = await authenticate_handshake(websocket, participant_id, token)
    if participant_id is None:
        return

    await websocket.accept()
    set_participant_id(participant_id)
    set_channel_id(channel_id)

    connection = ChatConnection(
        websocket=websocket,
        participant_id=participant_id,
        display_name=display_name or participant_id,
        channel_id=channel_id,
    )

    try:
        await hub.register(connection)

        # One frame at a time keeps each sender's messages in order
        while True:
            text = await websocket.receive_text()
            try:
                data = json.loads(text)
            except json.JSONDecodeError:
                logger.debug(f"Invalid JSON from {participant_id} in channel {channel_id}")
                continue
            await hub.receive(connection, data)

    except WebSocketDisconnect:
        logger.info(f"Chat WebSocket closed for {participant_id} in channel {channel_id}")
    except Exception as e:
        logger.log_error_with_context(e, context="chat_websocket", channel=channel_id)
    finally:
        await hub.unregister(connection)
