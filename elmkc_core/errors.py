"""Client error types for ChatKC server interactions."""

from __future__ import annotations


class ElmKCClientError(Exception):
    """Base error for ChatKC client failures."""


class ElmKCTimeout(ElmKCClientError):
    """Timeout while communicating with the server."""


class ElmKCConnectionError(ElmKCClientError):
    """Network connection to the server failed."""


class ElmKCHandshakeError(ElmKCClientError):
    """WebSocket handshake failed."""


class ElmKCDecodeError(ElmKCClientError):
    """Inbound frame could not be decoded."""


class UnknownFrameTypeError(ElmKCDecodeError):
    """Inbound frame carried a type tag this client does not know."""

    def __init__(self, frame_type: str) -> None:
        super().__init__(f"Unknown frame type: {frame_type}")
        self.frame_type = frame_type


class ElmKCConfigError(ElmKCClientError):
    """Configuration file is unreadable or invalid."""
