"""Realtime status - what the hubs currently hold and which events they speak"""
from fastapi import APIRouter, Request

from teamsync.schemas.chat import ChatEventKind
from teamsync.schemas.signaling import CLIENT_EVENTS, SignalingEventType

router = APIRouter()


@router.get("/status")
async def realtime_status(request: Request):
    """
    Live counts for both hubs plus the supported event names.

    Use this to check that the WebSocket routes are mounted.
    """
    state = request.app.state
    return {
        "status": "ok",
        "chat": {
            "endpoint": "/api/v1/chat/ws?participantId=<id>&displayName=<name>&channelId=<id>",
            **state.chat_hub.stats(),
            "client_events": [
                ChatEventKind.MESSAGE.value,
                ChatEventKind.TYPING.value,
                ChatEventKind.PING.value,
            ],
            "server_events": [
                ChatEventKind.JOIN.value,
                ChatEventKind.LEAVE.value,
                ChatEventKind.TYPING.value,
                ChatEventKind.MESSAGE.value,
                ChatEventKind.PONG.value,
            ],
        },
        "calls": {
            "endpoint": "/api/v1/calls/ws?participantId=<id>&displayName=<name>",
            **state.signaling_hub.stats(),
            "client_events": [e.value for e in CLIENT_EVENTS],
            "server_events": [e.value for e in SignalingEventType if e not in CLIENT_EVENTS or e == SignalingEventType.SIGNAL],
        },
    }
