"""Transport layer for the ChatKC client.

This package contains all socket IO:
- ws: secure WebSocket connection setup
- ws_client: frame-at-a-time receive/send wrapper
"""

from .ws import DEFAULT_PORT, build_url, connect_websocket
from .ws_client import ElmKCWsClient, ElmKCWsMessage, ElmKCWsMessageType

__all__ = [
    "DEFAULT_PORT",
    "ElmKCWsClient",
    "ElmKCWsMessage",
    "ElmKCWsMessageType",
    "build_url",
    "connect_websocket",
]
