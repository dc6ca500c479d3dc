"""Client configuration loading.

Configuration is a flat YAML mapping read once at startup. A missing file is
created with defaults so the user has something to edit:

    server: server.mattkc.com
    token: Your token here
    text_size: 16
    timestamp: "%H:%M"
    reconnect_delay: 1.0
    outbound_capacity: 100
    connect_timeout: 15.0
"""

from __future__ import annotations

import logging
from dataclasses import asdict, dataclass, fields
from pathlib import Path
from typing import Any

import yaml

from .errors import ElmKCConfigError
from .protocol import GoogleAuth, MessageAuth

_LOGGER = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = Path("config.yaml")


@dataclass(frozen=True)
class ClientConfig:
    """Settings handed to the client at startup.

    Attributes:
        server: Chat server hostname.
        token: Google credential token, sent as-is.
        text_size: Font size for the chat view.
        timestamp: strftime format for message timestamps.
        reconnect_delay: Seconds to wait after a failed handshake.
        outbound_capacity: Maximum frames waiting to be sent.
        connect_timeout: Seconds allowed for the WebSocket handshake.
    """

    server: str = "server.mattkc.com"
    token: str = "Your token here"
    text_size: int = 16
    timestamp: str = "%H:%M"
    reconnect_delay: float = 1.0
    outbound_capacity: int = 100
    connect_timeout: float = 15.0

    def auth(self) -> MessageAuth:
        """Build the authentication descriptor for this configuration."""
        return GoogleAuth(token=self.token)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> ClientConfig:
        """Build a config from a parsed mapping, ignoring unknown keys."""
        values: dict[str, Any] = {}
        for f in fields(cls):
            if f.name not in data:
                continue
            values[f.name] = _coerce(f.name, data[f.name], type(getattr(cls, f.name)))

        if values.get("text_size", 1) <= 0:
            raise ElmKCConfigError("text_size must be positive")
        if values.get("outbound_capacity", 1) <= 0:
            raise ElmKCConfigError("outbound_capacity must be positive")
        if values.get("reconnect_delay", 0) < 0:
            raise ElmKCConfigError("reconnect_delay must not be negative")
        if values.get("connect_timeout", 1) <= 0:
            raise ElmKCConfigError("connect_timeout must be positive")

        return cls(**values)

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


def _coerce(key: str, value: Any, expected: type) -> Any:
    # bool is a subclass of int
    if isinstance(value, bool):
        raise ElmKCConfigError(f"'{key}' must be {expected.__name__}, got bool")
    if expected is float and isinstance(value, int):
        return float(value)
    if not isinstance(value, expected):
        raise ElmKCConfigError(
            f"'{key}' must be {expected.__name__}, got {type(value).__name__}"
        )
    return value


def load_config(path: Path = DEFAULT_CONFIG_PATH) -> ClientConfig:
    """Load configuration, writing defaults first if the file is missing.

    Raises:
        ElmKCConfigError: If the file cannot be read or parsed.
    """
    if not path.exists():
        _LOGGER.info("No configuration at %s, writing defaults", path)
        config = ClientConfig()
        save_config(config, path)
        return config

    try:
        with path.open() as f:
            data = yaml.safe_load(f) or {}
    except (OSError, yaml.YAMLError) as err:
        raise ElmKCConfigError(f"Cannot read configuration {path}: {err}") from err

    if not isinstance(data, dict):
        raise ElmKCConfigError(f"Configuration {path} must be a mapping")

    return ClientConfig.from_dict(data)


def save_config(config: ClientConfig, path: Path = DEFAULT_CONFIG_PATH) -> None:
    """Write configuration as YAML."""
    try:
        with path.open("w") as f:
            yaml.safe_dump(config.to_dict(), f, sort_keys=False)
    except OSError as err:
        raise ElmKCConfigError(f"Cannot write configuration {path}: {err}") from err
