from fastapi import APIRouter
from teamsync.api.v1.endpoints import chat_websocket, call_signaling, channels, realtime

api_router = APIRouter()


@api_router.get("/health", tags=["Health"])
async def health_check():
    """Simple health check endpoint for load balancer"""
    return {"status": "healthy", "service": "teamsync-realtime"}


api_router.include_router(chat_websocket.router, prefix="/chat", tags=["Chat"])
api_router.include_router(call_signaling.router, prefix="/calls", tags=["Calls"])
api_router.include_router(channels.router, prefix="/channels", tags=["Channels"])
api_router.include_router(realtime.router, prefix="/realtime", tags=["Realtime"])
