"""Client configuration and YAML loading."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, fields
from pathlib import Path
from typing import Any

import yaml

from .errors import ChatClientError


class ConfigError(ChatClientError):
    """Configuration could not be loaded or is invalid."""


@dataclass(frozen=True)
class ClientConfig:
    """Settings for a ChatClient.

    Attributes:
        base_url: Chat server address including scheme and port
            (e.g. "https://chat.example.org:4000")
        request_timeout: Total timeout for a single HTTP request (seconds)
        connect_timeout: Realtime handshake timeout (seconds)
        ping_interval: Realtime keepalive ping interval (seconds, None disables)
        realtime_path: Path of the realtime WebSocket endpoint
    """

    base_url: str
    request_timeout: float = 10.0
    connect_timeout: float = 15.0
    ping_interval: int | None = 20
    realtime_path: str = "/realtime"

    def __post_init__(self) -> None:
        if not self.base_url or "://" not in self.base_url:
            raise ConfigError(f"Invalid base_url: {self.base_url!r}")
        if self.request_timeout <= 0 or self.connect_timeout <= 0:
            raise ConfigError("Timeouts must be positive")
        if not self.realtime_path.startswith("/"):
            raise ConfigError("realtime_path must start with '/'")
        # Routes are joined with "/" so the base never keeps a trailing slash
        object.__setattr__(self, "base_url", self.base_url.rstrip("/"))

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> ClientConfig:
        """Build a config from a mapping, rejecting unknown keys."""
        known = {f.name for f in fields(cls)}
        unknown = set(data) - known
        if unknown:
            raise ConfigError(f"Unknown config keys: {', '.join(sorted(unknown))}")
        if "base_url" not in data:
            raise ConfigError("Missing required config key: base_url")
        return cls(**dict(data))


def load_config(path: Path | str) -> ClientConfig:
    """Load a ClientConfig from a YAML file.

    The file holds a mapping either at the top level or under a ``chat`` key.
    """
    config_path = Path(path)
    try:
        with config_path.open(encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
    except OSError as err:
        raise ConfigError(f"Cannot read config file {config_path}") from err
    except yaml.YAMLError as err:
        raise ConfigError(f"Invalid YAML in {config_path}") from err

    if not isinstance(data, dict):
        raise ConfigError(f"Config file {config_path} must contain a mapping")
    section = data.get("chat", data)
    if not isinstance(section, dict):
        raise ConfigError("The 'chat' section must be a mapping")
    return ClientConfig.from_dict(section)
