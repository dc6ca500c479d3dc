"""Chat log model fed by inbound frames.

Holds what the chat view shows, independent of how it is drawn.
"""

from __future__ import annotations

import html
import logging
from dataclasses import dataclass, field
from datetime import datetime

from .protocol import Chat, Delete, GetUserConf, InboundFrame, Join, Part, ServerMsg

_LOGGER = logging.getLogger(__name__)

APP_NAME = "ElmKC"

Rgb = tuple[int, int, int]

_HEX_DIGITS = frozenset("0123456789abcdefABCDEF")


def parse_author_color(value: str) -> Rgb | None:
    """Convert a 6-digit hex color such as ``"ff0000"`` to an RGB triple.

    Returns None for anything else; the author is then drawn in the default
    color.
    """
    # int() alone would also accept "+fffff", "0xfff" and underscores
    if len(value) != 6 or not all(c in _HEX_DIGITS for c in value):
        return None
    raw = int(value, 16)
    return ((raw >> 16) & 0xFF, (raw >> 8) & 0xFF, raw & 0xFF)


def _chat_timestamp(frame: Chat) -> datetime:
    """Local time of a chat line; receipt time if ``time`` is out of range."""
    try:
        return datetime.fromtimestamp(frame.time / 1000).astimezone()
    except (OverflowError, OSError, ValueError):
        _LOGGER.warning(
            "Chat %d has out-of-range time %d, using receipt time", frame.id, frame.time
        )
        return datetime.now().astimezone()


@dataclass(frozen=True)
class JoinEntry:
    name: str


@dataclass(frozen=True)
class LeaveEntry:
    name: str


@dataclass(frozen=True)
class ChatEntry:
    author: str
    color: Rgb | None
    content: str
    id: int
    timestamp: datetime


@dataclass(frozen=True)
class SystemEntry:
    """Server notice; ``<br>`` separated lines are split apart."""

    lines: tuple[str, ...]


LogEntry = JoinEntry | LeaveEntry | ChatEntry | SystemEntry


@dataclass
class ChatLog:
    """Ordered chat history plus the name the server assigned us."""

    entries: list[LogEntry] = field(default_factory=list)
    username: str | None = None

    def apply(self, frame: InboundFrame) -> bool:
        """Update the log from one inbound frame.

        Returns:
            True if entries changed and the view should scroll to the end
        """
        if isinstance(frame, Chat):
            self.entries.append(
                ChatEntry(
                    author=frame.author,
                    color=parse_author_color(frame.author_color),
                    content=html.unescape(frame.message),
                    id=frame.id,
                    timestamp=_chat_timestamp(frame),
                )
            )
            return True

        if isinstance(frame, Delete):
            self.entries = [
                entry
                for entry in self.entries
                if not (isinstance(entry, ChatEntry) and entry.id in frame.messages)
            ]
            return True

        if isinstance(frame, GetUserConf):
            self.username = frame.name
            return False

        if isinstance(frame, Join):
            self.entries.append(JoinEntry(frame.name))
            return True

        if isinstance(frame, Part):
            self.entries.append(LeaveEntry(frame.name))
            return True

        if isinstance(frame, ServerMsg):
            self.entries.append(SystemEntry(tuple(frame.message.split("<br>"))))
            return True

        return False

    def title(self, server: str) -> str:
        """Window title for the current session."""
        if self.username is not None:
            return f"{self.username}@{server} - {APP_NAME}"
        return f"{server} - {APP_NAME}"
