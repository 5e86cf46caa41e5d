from __future__ import annotations

from typing import Any, Dict, Optional


class McpError(Exception):
    """Base error. ``code`` is the JSON-RPC error code sent to clients."""

    code = -32603
    kind = "McpError"

    def __init__(self, message: str, data: Optional[Dict[str, Any]] = None) -> None:
        super().__init__(message)
        self.message = message
        self.data = data or {}

    def __init_subclass__(cls, **kwargs: Any) -> None:
        super().__init_subclass__(**kwargs)
        cls.kind = cls.__name__

    def to_error(self) -> Dict[str, Any]:
        return {"code": self.code, "message": self.message, "data": {"kind": self.kind, **self.data}}


# Protocol errors


class FramingError(McpError):
    code = -32700


class UnexpectedEof(FramingError):
    pass


class InvalidRequest(McpError):
    code = -32600


class MethodNotFound(McpError):
    code = -32601


class InvalidParams(McpError):
    code = -32602


class InternalError(McpError):
    code = -32603


# Application errors (implementation-defined range)


class HandlerFailure(McpError):
    code = -32000

    @classmethod
    def from_exception(cls, exc: BaseException, *, redact: bool = False) -> "HandlerFailure":
        if redact:
            return cls("Handler failed")
        message = str(exc) or type(exc).__name__
        return cls(message, data={"exception": type(exc).__name__})


class NotFound(McpError):
    code = -32001


class NotInitialized(McpError):
    code = -32002


# Startup errors, never sent over the wire


class RegistrationError(McpError):
    pass


class DuplicateKey(RegistrationError):
    pass


class RegistryFrozen(RegistrationError):
    pass


class InvalidCapability(RegistrationError):
    pass


class ConfigurationError(McpError):
    pass
