from __future__ import annotations

import json
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from .errors import ConfigurationError

CONFIG_ENV_VAR = "SIMPLE_MCP_CONFIG"
DUPLICATE_POLICIES = ("reject", "replace")


@dataclass(frozen=True)
class ServerConfig:
    name: str = "mcp-server"
    version: str = "0.1.1"
    on_duplicate: str = "reject"
    max_message_bytes: int = 4 * 1024 * 1024
    read_chunk_size: int = 64 * 1024
    redact_handler_errors: bool = False

    def __post_init__(self) -> None:
        if self.on_duplicate not in DUPLICATE_POLICIES:
            raise ConfigurationError(f"on_duplicate must be one of {', '.join(DUPLICATE_POLICIES)}")
        if self.max_message_bytes <= 0 or self.read_chunk_size <= 0:
            raise ConfigurationError("max_message_bytes and read_chunk_size must be positive")


@dataclass(frozen=True)
class LoggingConfig:
    level: str = "INFO"
    # None logs to stderr; stdout carries protocol traffic.
    file: str | None = None


@dataclass(frozen=True)
class AppConfig:
    server: ServerConfig = field(default_factory=ServerConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)


def _load_json(path: Path) -> dict[str, Any]:
    with path.open("r", encoding="utf-8") as handle:
        try:
            raw = json.load(handle)
        except json.JSONDecodeError as exc:
            raise ConfigurationError(f"Invalid config file {path}: {exc}") from exc
    if not isinstance(raw, dict):
        raise ConfigurationError(f"Config file {path} must contain a JSON object")
    return raw


def _section(raw: dict[str, Any], key: str) -> dict[str, Any]:
    section = raw.get(key)
    if section is None:
        return {}
    if not isinstance(section, dict):
        raise ConfigurationError(f"Config section '{key}' must be a JSON object")
    return section


def load_config() -> AppConfig:
    config_path = os.getenv(CONFIG_ENV_VAR)
    if not config_path:
        return AppConfig()

    path = Path(config_path)
    if not path.exists():
        return AppConfig()

    raw = _load_json(path)
    server_raw = _section(raw, "server")
    logging_raw = _section(raw, "logging")
    defaults = ServerConfig()
    redact = server_raw.get("redact_handler_errors", defaults.redact_handler_errors)
    if not isinstance(redact, bool):
        raise ConfigurationError("redact_handler_errors must be true or false")
    log_file = logging_raw.get("file")
    if log_file is not None and not isinstance(log_file, str):
        raise ConfigurationError("logging.file must be a path string or null")
    try:
        server = ServerConfig(
            name=str(server_raw.get("name", defaults.name)),
            version=str(server_raw.get("version", defaults.version)),
            on_duplicate=str(server_raw.get("on_duplicate", defaults.on_duplicate)),
            max_message_bytes=int(server_raw.get("max_message_bytes", defaults.max_message_bytes)),
            read_chunk_size=int(server_raw.get("read_chunk_size", defaults.read_chunk_size)),
            redact_handler_errors=redact,
        )
    except (TypeError, ValueError) as exc:
        raise ConfigurationError(f"Invalid server config: {exc}") from exc
    return AppConfig(
        server=server,
        logging=LoggingConfig(
            level=str(logging_raw.get("level", "INFO")),
            file=log_file,
        ),
    )
