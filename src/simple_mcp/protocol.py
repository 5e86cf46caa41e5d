"""
JSON-RPC 2.0 message helpers and newline-delimited framing.

One message per line, UTF-8, compact separators. ``json.dumps`` escapes
newlines inside strings, so a serialized message never contains a raw
``\\n`` before its terminating delimiter.
"""

from __future__ import annotations

import dataclasses
import json
import math
import threading
from dataclasses import dataclass, field
from typing import Any, Dict, Iterator, Optional, Union

from .shared.errors import FramingError, InternalError, InvalidParams, InvalidRequest, UnexpectedEof
from .transport import DEFAULT_CHUNK_SIZE, Transport

JSONRPC_VERSION = "2.0"
PROTOCOL_VERSION = "2025-06-18"
SUPPORTED_PROTOCOL_VERSIONS = ("2024-11-05", "2025-03-26", PROTOCOL_VERSION)
DEFAULT_MAX_MESSAGE_BYTES = 4 * 1024 * 1024

RequestId = Union[str, int, float, None]


@dataclass(frozen=True)
class JsonRpcRequest:
    method: str
    id: RequestId = None
    params: Dict[str, Any] = field(default_factory=dict)

    @property
    def is_notification(self) -> bool:
        return self.id is None


def is_valid_id(value: Any) -> bool:
    if isinstance(value, float):
        return math.isfinite(value)
    return value is None or (isinstance(value, (str, int)) and not isinstance(value, bool))


def parse_request(message: Any) -> JsonRpcRequest:
    """Validate a decoded JSON value as a JSON-RPC request envelope."""
    if not isinstance(message, dict):
        raise InvalidRequest("Message must be a JSON object")
    # A missing "jsonrpc" member is read as 2.0; any other value is rejected.
    if message.get("jsonrpc", JSONRPC_VERSION) != JSONRPC_VERSION:
        raise InvalidRequest("Invalid jsonrpc version")
    request_id = message.get("id")
    if not is_valid_id(request_id):
        raise InvalidRequest("Request id must be a string, number or null")
    method = message.get("method")
    if not isinstance(method, str) or not method:
        raise InvalidRequest("Method must be a non-empty string")
    raw_params = message.get("params")
    if raw_params is None:
        params: Dict[str, Any] = {}
    elif isinstance(raw_params, dict):
        params = raw_params
    else:
        raise InvalidParams("Params must be an object")
    return JsonRpcRequest(method=method, id=request_id, params=params)


def make_request(method: str, params: Optional[Dict[str, Any]] = None, request_id: RequestId = None) -> Dict[str, Any]:
    message: Dict[str, Any] = {"jsonrpc": JSONRPC_VERSION, "method": method}
    if request_id is not None:
        message["id"] = request_id
    if params is not None:
        message["params"] = params
    return message


def make_result(request_id: RequestId, result: Any) -> Dict[str, Any]:
    return {"jsonrpc": JSONRPC_VERSION, "id": request_id, "result": result}


def make_error(
    request_id: RequestId, code: int, message: str, data: Optional[Dict[str, Any]] = None
) -> Dict[str, Any]:
    error: Dict[str, Any] = {"code": code, "message": message}
    if data is not None:
        error["data"] = data
    return {"jsonrpc": JSONRPC_VERSION, "id": request_id, "error": error}


def _json_default(value: Any) -> Any:
    if dataclasses.is_dataclass(value) and not isinstance(value, type):
        return dataclasses.asdict(value)
    raise TypeError(f"Object of type {type(value).__name__} is not JSON serializable")


def encode_message(message: Any) -> bytes:
    try:
        text = json.dumps(message, separators=(",", ":"), ensure_ascii=False, allow_nan=False, default=_json_default)
    except (TypeError, ValueError) as exc:
        raise InternalError(f"Response is not JSON serializable: {exc}") from exc
    return (text + "\n").encode("utf-8")


def decode_message(line: bytes) -> Any:
    try:
        return json.loads(line.decode("utf-8"))
    except UnicodeDecodeError as exc:
        raise FramingError("Message is not valid UTF-8") from exc
    except json.JSONDecodeError as exc:
        raise FramingError(f"Invalid JSON: {exc.msg}") from exc


class MessageFramer:
    """Reads and writes newline-delimited JSON messages over a transport."""

    def __init__(
        self,
        transport: Transport,
        *,
        max_message_bytes: int = DEFAULT_MAX_MESSAGE_BYTES,
        read_chunk_size: int = DEFAULT_CHUNK_SIZE,
    ) -> None:
        self._transport = transport
        self._max_message_bytes = max_message_bytes
        self._read_chunk_size = read_chunk_size
        self._buffer = bytearray()
        self._scanned = 0
        self._write_lock = threading.Lock()

    def messages(self) -> Iterator[Any]:
        """
        Yield one decoded JSON value per non-blank line.

        Ends quietly at a clean end of stream. Raises ``UnexpectedEof`` when
        the stream stops inside a message and ``FramingError`` for a line
        that cannot be decoded.
        """
        while True:
            line = self._next_line()
            if line is None:
                return
            if not line.strip():
                continue
            yield decode_message(line)

    def _next_line(self) -> Optional[bytes]:
        while True:
            newline = self._buffer.find(b"\n", self._scanned)
            if newline != -1:
                line = bytes(self._buffer[:newline])
                del self._buffer[: newline + 1]
                self._scanned = 0
                if len(line) > self._max_message_bytes:
                    raise FramingError(f"Message exceeds {self._max_message_bytes} bytes")
                return line
            self._scanned = len(self._buffer)
            if self._scanned > self._max_message_bytes:
                raise FramingError(f"Message exceeds {self._max_message_bytes} bytes")

            chunk = self._transport.read_chunk(self._read_chunk_size)
            if not chunk:
                if self._buffer.strip():
                    raise UnexpectedEof(f"Stream closed with {len(self._buffer)} bytes of an unterminated message")
                return None
            self._buffer.extend(chunk)

    def write(self, message: Any) -> None:
        data = encode_message(message)
        with self._write_lock:
            self._transport.write_chunk(data)
