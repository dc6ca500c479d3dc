"""Pytest configuration and fixtures for elmkc_core tests."""

from __future__ import annotations

import asyncio
import json
from typing import Any
from unittest.mock import AsyncMock

import pytest

from elmkc_core.errors import ElmKCConnectionError
from elmkc_core.protocol import GoogleAuth
from elmkc_core.transport.ws_client import ElmKCWsMessage, ElmKCWsMessageType


class FakeWsClient:
    """In-memory stand-in for ElmKCWsClient.

    Inbound frames are pushed by the test; outbound frames are recorded as
    parsed JSON in ``sent``.
    """

    def __init__(
        self,
        *,
        connect_error: Exception | None = None,
        fail_send_after: int | None = None,
    ) -> None:
        self.connect = AsyncMock(side_effect=connect_error)
        self.close = AsyncMock()
        self.sent: list[dict[str, Any]] = []
        self._inbound: asyncio.Queue[ElmKCWsMessage] = asyncio.Queue()
        self._fail_send_after = fail_send_after

    async def send_text(self, text: str) -> None:
        if self._fail_send_after is not None and len(self.sent) >= self._fail_send_after:
            raise ElmKCConnectionError("WebSocket send failed")
        self.sent.append(json.loads(text))

    async def receive(self) -> ElmKCWsMessage:
        return await self._inbound.get()

    def push_text(self, payload: dict[str, Any] | str) -> None:
        data = payload if isinstance(payload, str) else json.dumps(payload)
        self._inbound.put_nowait(ElmKCWsMessage(ElmKCWsMessageType.TEXT, data))

    def push_closed(self) -> None:
        self._inbound.put_nowait(ElmKCWsMessage(ElmKCWsMessageType.CLOSED))

    def push_error(self) -> None:
        self._inbound.put_nowait(ElmKCWsMessage(ElmKCWsMessageType.ERROR))


@pytest.fixture
def auth() -> GoogleAuth:
    """Authentication descriptor used across tests."""
    return GoogleAuth(token="T")


def chat_payload(**overrides: Any) -> dict[str, Any]:
    """Build an inbound chat frame payload.

    Args:
        **overrides: Fields replacing the defaults inside ``data``

    Returns:
        Frame dict ready for json.dumps
    """
    data: dict[str, Any] = {
        "auth": 1,
        "author": "bread",
        "author_color": "ff0000",
        "author_id": 42,
        "author_level": 0,
        "donate_value": "0",
        "id": 1001,
        "message": "hello &amp; welcome",
        "reply": 0,
        "time": 1_690_000_000_000,
    }
    data.update(overrides)
    return {"type": "chat", "data": data}
