# API endpoints
from . import chat_websocket, call_signaling, channels, realtime

__all__ = ["chat_websocket", "call_signaling", "channels", "realtime"]
