"""
Call Signaling WebSocket Endpoint

One session per client. A session can join and leave any number of call
rooms; closing the socket leaves all of them.

Connection URL: WS /api/v1/calls/ws?participantId=<id>&displayName=<name>[&token=<jwt>]
"""

import json
from typing import Optional
from fastapi import APIRouter, Depends, WebSocket, WebSocketDisconnect, Query

from teamsync.api.deps import authenticate_handshake, get_signaling_hub
from teamsync.core.logging_config import logger, set_participant_id
from teamsync.services.room_registry import SignalingSession
from teamsync.services.signaling_hub import SignalingRelayHub


router = APIRouter()


@router.websocket("/ws")
async def call_signaling_endpoint(
    websocket: WebSocket,
    participant_id: Optional[str] = Query(None, alias="participantId"),
    display_name: Optional[str] = Query(None, alias="displayName"),
    token: Optional[str] = Query(None),
    hub: SignalingRelayHub = Depends(get_signaling_hub),
):
    """
    WebSocket endpoint for call signaling.

    Frame format (both directions):
    {
        "type": "event-name",
        "data": ...
    }

    Client events:
    - join-room: "<roomId>"
    - leave-room: "<roomId>"
    - signal: { kind: offer|answer|ice-candidate, targetParticipantId, roomId, payload }
    - ping

    Server events:
    - room-users: ["<participantId>", ...] (members already in the room)
    - user-joined: { participantId, displayName, avatar }
    - user-left: { participantId }
    - signal: envelope with originatorId set to the sender
    - pong
    """
    participant_id = await authenticate_handshake(websocket, participant_id, token)
    if participant_id is None:
        return

    await websocket.accept()
    set_participant_id(participant_id)

    session = SignalingSession(
        websocket=websocket,
        participant_id=participant_id,
        display_name=display_name or participant_id,
    )

    try:
        await hub.connect(session)

        while True:
            text = await websocket.receive_text()
            try:
                data = json.loads(text)
            except json.JSONDecodeError:
                logger.debug(f"Invalid JSON on signaling socket from {participant_id}")
                continue
            await hub.receive(session, data)

    except WebSocketDisconnect:
        logger.info(f"Signaling WebSocket closed for {participant_id}")
    except Exception as e:
        logger.log_error_with_context(e, context="call_signaling")
    finally:
        await hub.disconnect(session)
