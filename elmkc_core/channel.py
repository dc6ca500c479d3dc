"""Submission handle and events shared between the supervisor and the UI.

The supervisor is the only producer of events and the only consumer of the
outbound queue. Application code holds a ``Connection`` received in a
``Connected`` event and uses it to submit frames without touching the socket.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass

from .protocol import InboundFrame, OutboundFrame, message

_LOGGER = logging.getLogger(__name__)


class Connection:
    """Submission handle for one established connection.

    Valid until the supervisor reports ``Disconnected``; after that every
    submission is dropped and ``send`` returns False. Must be used from the
    event loop the supervisor runs on.
    """

    def __init__(self, server: str, queue: asyncio.Queue[OutboundFrame]) -> None:
        self._server = server
        self._queue = queue
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def pending(self) -> int:
        """Number of frames waiting to be written."""
        return self._queue.qsize()

    def send(self, frame: OutboundFrame) -> bool:
        """Queue a frame for sending without waiting on the network.

        Returns:
            True if queued, False if the handle is stale or the queue is full
        """
        if self._closed:
            _LOGGER.warning(
                "[%s] Dropping %s frame: connection closed",
                self._server,
                frame.frame_type,
            )
            return False

        try:
            self._queue.put_nowait(frame)
        except asyncio.QueueFull:
            _LOGGER.warning(
                "[%s] Rejecting %s frame: outbound queue full (%d)",
                self._server,
                frame.frame_type,
                self._queue.maxsize,
            )
            return False
        return True

    def send_message(self, text: str, reply: int | None = None) -> bool:
        """Compose and queue a chat message."""
        return self.send(message(text, reply))

    def invalidate(self) -> None:
        """Mark the handle stale. Only the supervisor calls this."""
        self._closed = True

    def __repr__(self) -> str:
        state = "closed" if self._closed else "open"
        return f"<Connection {self._server} {state} pending={self.pending}>"


@dataclass(frozen=True)
class Connected:
    """Socket is up and the handshake frame was written."""

    connection: Connection


@dataclass(frozen=True)
class Disconnected:
    """Socket is gone; the previous ``Connection`` is now stale."""


@dataclass(frozen=True)
class Received:
    """One decoded inbound frame, in socket order."""

    frame: InboundFrame


ConnectionEvent = Connected | Disconnected | Received
