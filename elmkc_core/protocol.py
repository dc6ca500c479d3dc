"""Wire codec for ChatKC frames.

Every frame is a single flat JSON object with a ``type`` discriminant and a
``data`` object. Outbound frames also carry the authentication descriptor's
fields at the top level, next to ``type`` and ``data``:

    {"auth": "google", "token": "...", "type": "message",
     "data": {"reply": 0, "text": "hi"}}

Encoding and decoding are pure; nothing in this module touches the network.
"""

from __future__ import annotations

import json
from collections.abc import Callable, Mapping
from dataclasses import dataclass
from enum import Enum
from typing import Any, ClassVar

from .errors import ElmKCDecodeError, UnknownFrameTypeError

# -----------------------------------------------------------------------------
# Authentication descriptor
# -----------------------------------------------------------------------------


@dataclass(frozen=True)
class GoogleAuth:
    """Google-issued credential. The token is opaque to the client."""

    token: str

    provider: ClassVar[str] = "google"

    def to_fields(self) -> dict[str, Any]:
        """Return the fields flattened into every outbound frame."""
        return {"auth": self.provider, "token": self.token}


# Only one provider exists today.
MessageAuth = GoogleAuth

# -----------------------------------------------------------------------------
# Outbound frames
# -----------------------------------------------------------------------------


@dataclass(frozen=True)
class Hello:
    """First frame on every connection; -1 requests the full backlog."""

    last_message: int = -1

    frame_type: ClassVar[str] = "hello"

    def to_data(self) -> dict[str, Any]:
        return {"last_message": self.last_message}


@dataclass(frozen=True)
class Message:
    """Chat line submitted by the user. ``reply`` of 0 means no reply target."""

    reply: int
    text: str

    frame_type: ClassVar[str] = "message"

    def __post_init__(self) -> None:
        if isinstance(self.reply, bool) or not isinstance(self.reply, int):
            raise ValueError("reply must be an integer message id")
        if self.reply < 0:
            raise ValueError("reply must not be negative")

    def to_data(self) -> dict[str, Any]:
        return {"reply": self.reply, "text": self.text}


OutboundFrame = Hello | Message


def hello() -> Hello:
    """Build the post-connect handshake frame."""
    return Hello(last_message=-1)


def message(text: str, reply: int | None = None) -> Message:
    """Build a chat message frame, optionally replying to message ``reply``."""
    return Message(reply=reply if reply is not None else 0, text=text)


def encode(frame: OutboundFrame, auth: MessageAuth) -> str:
    """Serialize an outbound frame with the descriptor flattened into it.

    Args:
        frame: Frame to send.
        auth: Descriptor attached to the frame at serialization time.

    Returns:
        JSON text of a single flat object.
    """
    payload = auth.to_fields()
    payload["type"] = frame.frame_type
    payload["data"] = frame.to_data()
    return json.dumps(payload)


# -----------------------------------------------------------------------------
# Inbound frames
# -----------------------------------------------------------------------------


class UserStatus(Enum):
    """Account status reported by the server in ``status`` frames."""

    AUTHENTICATED = "authenticated"
    BANNED = "banned"
    NAME_EXISTS = "nameexists"
    NAME_INVALID = "nameinvalid"
    NAME_LENGTH = "namelength"
    NAME_TIMEOUT = "nametimeout"
    RENAME = "rename"
    SET_USER_CONF = "setuserconf"
    UNAUTHENTICATED = "unauthenticated"


def _field(data: Mapping[str, Any], key: str) -> Any:
    if key not in data:
        raise ElmKCDecodeError(f"Missing field '{key}'")
    return data[key]


def _str_field(data: Mapping[str, Any], key: str) -> str:
    value = _field(data, key)
    if not isinstance(value, str):
        raise ElmKCDecodeError(
            f"Field '{key}' must be a string, got {type(value).__name__}"
        )
    return value


def _uint(value: Any, key: str) -> int:
    # bool is a subclass of int
    if isinstance(value, bool) or not isinstance(value, int):
        raise ElmKCDecodeError(
            f"Field '{key}' must be an integer, got {type(value).__name__}"
        )
    if value < 0:
        raise ElmKCDecodeError(f"Field '{key}' must not be negative")
    return value


def _uint_field(data: Mapping[str, Any], key: str) -> int:
    return _uint(_field(data, key), key)


@dataclass(frozen=True)
class Accepted:
    message: str

    frame_type: ClassVar[str] = "accepted"

    @classmethod
    def from_data(cls, data: Mapping[str, Any]) -> Accepted:
        return cls(message=_str_field(data, "message"))


@dataclass(frozen=True)
class AuthLevel:
    value: int

    frame_type: ClassVar[str] = "authlevel"

    @classmethod
    def from_data(cls, data: Mapping[str, Any]) -> AuthLevel:
        return cls(value=_uint_field(data, "value"))


@dataclass(frozen=True)
class Chat:
    """A chat line as broadcast by the server.

    ``author_color`` is passed through as the raw hex string the server sent;
    turning it into a display color is left to the consumer.
    """

    auth: int
    author: str
    author_color: str
    author_id: int
    author_level: int
    donate_value: str
    id: int
    message: str
    reply: int
    time: int

    frame_type: ClassVar[str] = "chat"

    @classmethod
    def from_data(cls, data: Mapping[str, Any]) -> Chat:
        return cls(
            auth=_uint_field(data, "auth"),
            author=_str_field(data, "author"),
            author_color=_str_field(data, "author_color"),
            author_id=_uint_field(data, "author_id"),
            author_level=_uint_field(data, "author_level"),
            donate_value=_str_field(data, "donate_value"),
            id=_uint_field(data, "id"),
            message=_str_field(data, "message"),
            reply=_uint_field(data, "reply"),
            time=_uint_field(data, "time"),
        )


@dataclass(frozen=True)
class Delete:
    messages: frozenset[int]

    frame_type: ClassVar[str] = "delete"

    @classmethod
    def from_data(cls, data: Mapping[str, Any]) -> Delete:
        raw = _field(data, "messages")
        if not isinstance(raw, list):
            raise ElmKCDecodeError("Field 'messages' must be a list of ids")
        return cls(messages=frozenset(_uint(item, "messages") for item in raw))


@dataclass(frozen=True)
class GetUserConf:
    color: str
    name: str

    frame_type: ClassVar[str] = "getuserconf"

    @classmethod
    def from_data(cls, data: Mapping[str, Any]) -> GetUserConf:
        return cls(color=_str_field(data, "color"), name=_str_field(data, "name"))


@dataclass(frozen=True)
class Join:
    name: str

    frame_type: ClassVar[str] = "join"

    @classmethod
    def from_data(cls, data: Mapping[str, Any]) -> Join:
        return cls(name=_str_field(data, "name"))


@dataclass(frozen=True)
class Part:
    name: str

    frame_type: ClassVar[str] = "part"

    @classmethod
    def from_data(cls, data: Mapping[str, Any]) -> Part:
        return cls(name=_str_field(data, "name"))


@dataclass(frozen=True)
class ServerMsg:
    message: str

    frame_type: ClassVar[str] = "servermsg"

    @classmethod
    def from_data(cls, data: Mapping[str, Any]) -> ServerMsg:
        return cls(message=_str_field(data, "message"))


@dataclass(frozen=True)
class Status:
    status: UserStatus

    frame_type: ClassVar[str] = "status"

    @classmethod
    def from_data(cls, data: Mapping[str, Any]) -> Status:
        raw = _str_field(data, "status")
        try:
            return cls(status=UserStatus(raw))
        except ValueError as err:
            raise ElmKCDecodeError(f"Unknown user status: {raw}") from err


InboundFrame = (
    Accepted
    | AuthLevel
    | Chat
    | Delete
    | GetUserConf
    | Join
    | Part
    | ServerMsg
    | Status
)

INBOUND_FRAME_TYPES: dict[str, Callable[[Mapping[str, Any]], InboundFrame]] = {
    frame_cls.frame_type: frame_cls.from_data
    for frame_cls in (
        Accepted,
        AuthLevel,
        Chat,
        Delete,
        GetUserConf,
        Join,
        Part,
        ServerMsg,
        Status,
    )
}


def decode(text: str | bytes) -> InboundFrame:
    """Parse one inbound frame.

    Fields inside ``data`` that a variant does not declare are ignored.

    Raises:
        UnknownFrameTypeError: ``type`` is well formed but not recognized.
        ElmKCDecodeError: the frame is not JSON, has no ``type`` tag, or its
            ``data`` does not match the tagged variant.
    """
    try:
        payload = json.loads(text)
    except (ValueError, RecursionError) as err:
        raise ElmKCDecodeError("Frame is not valid JSON") from err

    if not isinstance(payload, dict):
        raise ElmKCDecodeError("Frame must be a JSON object")

    frame_type = payload.get("type")
    if not isinstance(frame_type, str):
        raise ElmKCDecodeError("Frame is missing a string 'type' tag")

    parse = INBOUND_FRAME_TYPES.get(frame_type)
    if parse is None:
        raise UnknownFrameTypeError(frame_type)

    data = payload.get("data")
    if not isinstance(data, dict):
        raise ElmKCDecodeError(f"'{frame_type}' frame has no data object")

    return parse(data)
