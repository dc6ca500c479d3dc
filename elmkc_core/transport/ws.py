"""WebSocket helpers for the ChatKC server transport."""

from __future__ import annotations

import asyncio

import websockets
from websockets.asyncio.client import ClientConnection
from websockets.exceptions import (
    InvalidHandshake,
    InvalidURI,
    WebSocketException,
)

from ..errors import (
    ElmKCConnectionError,
    ElmKCHandshakeError,
    ElmKCTimeout,
)

DEFAULT_PORT = 2002
DEFAULT_MAX_SIZE = 2**20


def build_url(server: str, port: int = DEFAULT_PORT, path: str = "/") -> str:
    """Return the secure WebSocket URL for a ChatKC server."""
    return f"wss://{server}:{port}{path}"


async def connect_websocket(
    server: str,
    port: int = DEFAULT_PORT,
    *,
    path: str = "/",
    ping_interval: int | None = 20,
    max_size: int | None = DEFAULT_MAX_SIZE,
    timeout: float = 15.0,
) -> ClientConnection:
    """Open a TLS WebSocket to a ChatKC server.

    Args:
        server: Server hostname
        port: Server port (default: 2002)
        path: WebSocket path (default: /)
        ping_interval: Interval for ping frames
        max_size: Largest inbound frame in bytes (None: unlimited)
        timeout: Connection timeout
    """
    ws_url = build_url(server, port, path)
    try:
        return await asyncio.wait_for(
            websockets.connect(
                ws_url,
                ping_interval=ping_interval,
                close_timeout=5,
                max_size=max_size,
            ),
            timeout=timeout,
        )
    except TimeoutError as err:
        raise ElmKCTimeout("WebSocket connection timed out") from err
    except (InvalidHandshake, InvalidURI) as err:
        raise ElmKCHandshakeError("WebSocket handshake failed") from err
    except (OSError, WebSocketException) as err:
        raise ElmKCConnectionError("WebSocket connection failed") from err
