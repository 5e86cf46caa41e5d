from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Optional

from .registry import Registry


class SessionState(str, Enum):
    UNINITIALIZED = "uninitialized"
    INITIALIZED = "initialized"
    CLOSED = "closed"


@dataclass
class ServerSession:
    """State of one client connection, from handshake to close."""

    server_name: str
    server_version: str
    registry: Registry
    state: SessionState = SessionState.UNINITIALIZED
    protocol_version: Optional[str] = None
    client_info: Dict[str, Any] = field(default_factory=dict)

    @property
    def initialized(self) -> bool:
        return self.state is SessionState.INITIALIZED

    @property
    def closed(self) -> bool:
        return self.state is SessionState.CLOSED

    def mark_initialized(self, protocol_version: str, client_info: Optional[Dict[str, Any]] = None) -> None:
        if self.closed:
            raise RuntimeError("session is closed")
        self.state = SessionState.INITIALIZED
        self.protocol_version = protocol_version
        self.client_info = dict(client_info or {})

    def close(self) -> None:
        self.state = SessionState.CLOSED
