"""Model-Context-Protocol server engine over newline-delimited JSON-RPC on stdio."""

from .contracts import CapabilityEntry, CapabilityKind, PromptArgument
from .dispatcher import Dispatcher
from .protocol import (
    PROTOCOL_VERSION,
    MessageFramer,
    decode_message,
    encode_message,
    make_error,
    make_request,
    make_result,
)
from .registry import Registry
from .server import Server, ServerBuilder
from .session import ServerSession, SessionState
from .transport import StdioTransport, StreamTransport, Transport

__all__ = [
    "PROTOCOL_VERSION",
    "CapabilityEntry",
    "CapabilityKind",
    "Dispatcher",
    "MessageFramer",
    "PromptArgument",
    "Registry",
    "Server",
    "ServerBuilder",
    "ServerSession",
    "SessionState",
    "StdioTransport",
    "StreamTransport",
    "Transport",
    "decode_message",
    "encode_message",
    "make_error",
    "make_request",
    "make_result",
]
