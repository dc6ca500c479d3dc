"""Connection core for the ElmKC chat client."""

__version__ = "0.1.0"

from .channel import Connected, Connection, ConnectionEvent, Disconnected, Received
from .chat_log import ChatLog, parse_author_color
from .client import ChatClient
from .config import ClientConfig, load_config, save_config
from .errors import (
    ElmKCClientError,
    ElmKCConfigError,
    ElmKCConnectionError,
    ElmKCDecodeError,
    ElmKCHandshakeError,
    ElmKCTimeout,
    UnknownFrameTypeError,
)
from .protocol import (
    GoogleAuth,
    Hello,
    InboundFrame,
    Message,
    MessageAuth,
    OutboundFrame,
    UserStatus,
    decode,
    encode,
    hello,
    message,
)
from .supervisor import ConnectionSupervisor

__all__ = [
    "ChatClient",
    "ChatLog",
    "ClientConfig",
    "Connected",
    "Connection",
    "ConnectionEvent",
    "ConnectionSupervisor",
    "Disconnected",
    "ElmKCClientError",
    "ElmKCConfigError",
    "ElmKCConnectionError",
    "ElmKCDecodeError",
    "ElmKCHandshakeError",
    "ElmKCTimeout",
    "GoogleAuth",
    "Hello",
    "InboundFrame",
    "Message",
    "MessageAuth",
    "OutboundFrame",
    "Received",
    "UnknownFrameTypeError",
    "UserStatus",
    "__version__",
    "decode",
    "encode",
    "hello",
    "load_config",
    "message",
    "parse_author_color",
    "save_config",
]
