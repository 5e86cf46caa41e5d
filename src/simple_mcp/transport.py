from __future__ import annotations

import sys
from abc import ABC, abstractmethod
from typing import BinaryIO, Optional

DEFAULT_CHUNK_SIZE = 64 * 1024


class TransportClosed(OSError):
    """Raised when writing to a transport that has been closed."""


class Transport(ABC):
    """Duplex byte stream. ``read_chunk`` returns b"" at end of stream."""

    @abstractmethod
    def read_chunk(self, size: int = DEFAULT_CHUNK_SIZE) -> bytes:
        ...

    @abstractmethod
    def write_chunk(self, data: bytes) -> None:
        ...

    @abstractmethod
    def close(self) -> None:
        ...

    @property
    @abstractmethod
    def closed(self) -> bool:
        ...


class StreamTransport(Transport):
    """Transport over a pair of binary file objects (pipes, sockets' makefile, BytesIO)."""

    def __init__(self, reader: BinaryIO, writer: BinaryIO, *, close_streams: bool = False) -> None:
        self._reader = reader
        self._writer = writer
        self._close_streams = close_streams
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    def read_chunk(self, size: int = DEFAULT_CHUNK_SIZE) -> bytes:
        if self._closed:
            return b""
        # read1 returns whatever is available instead of waiting for ``size`` bytes.
        read1 = getattr(self._reader, "read1", None)
        if read1 is not None:
            return read1(size)
        return self._reader.read(size)

    def write_chunk(self, data: bytes) -> None:
        if self._closed:
            raise TransportClosed("transport is closed")
        self._writer.write(data)
        self._writer.flush()

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        try:
            self._writer.flush()
        except (OSError, ValueError):
            pass
        if self._close_streams:
            self._reader.close()
            self._writer.close()


class StdioTransport(StreamTransport):
    def __init__(self, stdin: Optional[BinaryIO] = None, stdout: Optional[BinaryIO] = None) -> None:
        super().__init__(stdin or sys.stdin.buffer, stdout or sys.stdout.buffer)
