"""WebSocket client wrapper for ChatKC servers."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any

from websockets.asyncio.client import ClientConnection
from websockets.exceptions import ConnectionClosed, WebSocketException

from ..errors import ElmKCConnectionError
from .ws import DEFAULT_MAX_SIZE, DEFAULT_PORT, connect_websocket


class ElmKCWsMessageType(Enum):
    """Normalized WebSocket message types."""

    TEXT = "text"
    CLOSED = "closed"
    ERROR = "error"


@dataclass(frozen=True)
class ElmKCWsMessage:
    """Normalized WebSocket message payload."""

    type: ElmKCWsMessageType
    data: str | None = None


class ElmKCWsClient:
    """Wrapper around websockets library for a single ChatKC connection."""

    def __init__(self) -> None:
        self._ws: ClientConnection | None = None

    @property
    def is_open(self) -> bool:
        return self._ws is not None

    async def connect(
        self,
        server: str,
        port: int = DEFAULT_PORT,
        *,
        path: str = "/",
        ping_interval: int | None = 20,
        max_size: int | None = DEFAULT_MAX_SIZE,
        timeout: float = 15.0,
    ) -> None:
        """Connect to the server websocket."""
        self._ws = await connect_websocket(
            server,
            port,
            path=path,
            ping_interval=ping_interval,
            max_size=max_size,
            timeout=timeout,
        )

    async def close(self) -> None:
        """Close the websocket connection."""
        ws, self._ws = self._ws, None
        if ws is not None:
            await ws.close()

    async def send_text(self, text: str) -> None:
        """Send one text frame.

        Raises:
            ElmKCConnectionError: If not connected or the write fails
        """
        if self._ws is None:
            raise ElmKCConnectionError("WebSocket is not connected")
        try:
            await self._ws.send(text)
        except (ConnectionClosed, WebSocketException, OSError) as err:
            raise ElmKCConnectionError("WebSocket send failed") from err

    async def receive(self) -> ElmKCWsMessage:
        """Wait for the next text frame, or report why there will be none.

        Binary frames are skipped. A closed socket yields CLOSED; any other
        failure yields ERROR.
        """
        if self._ws is None:
            raise ElmKCConnectionError("WebSocket is not connected")

        while True:
            try:
                msg = await self._ws.recv()
            except ConnectionClosed:
                return ElmKCWsMessage(type=ElmKCWsMessageType.CLOSED)
            except (WebSocketException, OSError):
                return ElmKCWsMessage(type=ElmKCWsMessageType.ERROR)

            normalized = self._normalize_message(msg)
            if normalized is not None:
                return normalized

    @staticmethod
    def _normalize_message(msg: Any) -> ElmKCWsMessage | None:
        """Normalize a raw frame into ElmKCWsMessage."""
        if isinstance(msg, (bytes, bytearray, memoryview)):
            return None
        if isinstance(msg, str):
            return ElmKCWsMessage(ElmKCWsMessageType.TEXT, msg)
        return ElmKCWsMessage(ElmKCWsMessageType.TEXT, str(msg))
