from __future__ import annotations

import re
from typing import Any, Dict, Iterable, Mapping, Optional, Union

from .contracts import (
    DEFAULT_MIME_TYPE,
    CapabilityEntry,
    CapabilityKind,
    PromptArgument,
    PromptHandler,
    ResourceHandler,
    ToolHandler,
)
from .dispatcher import Dispatcher
from .protocol import MessageFramer, make_error
from .registry import Registry
from .session import ServerSession
from .shared.config import ServerConfig
from .shared.errors import FramingError, InternalError, InvalidCapability, UnexpectedEof
from .shared.logging import get_logger
from .transport import StdioTransport, Transport
from .validate import check_schema

NAME_PATTERN = re.compile(r"^[a-zA-Z0-9_.-]{1,64}$")

logger = get_logger(__name__)


class ServerBuilder:
    """
    Collects tools, prompts and resources, then builds a ``Server``.

    Registration fails fast: a duplicate name (or uri) raises ``DuplicateKey``
    at the call that introduces it unless the configured policy is
    ``"replace"``. ``build`` hands the server a frozen copy of the registry,
    so the builder may keep registering or build again without affecting
    servers already built.
    """

    def __init__(
        self,
        name: Optional[str] = None,
        version: Optional[str] = None,
        *,
        config: Optional[ServerConfig] = None,
    ) -> None:
        self.config = config or ServerConfig()
        self.name = name or self.config.name
        self.version = version or self.config.version
        self._registry = Registry(on_duplicate=self.config.on_duplicate)

    def tool(
        self,
        name: str,
        description: str,
        handler: ToolHandler,
        *,
        input_schema: Optional[Dict[str, Any]] = None,
    ) -> "ServerBuilder":
        self._check_name("tool", name)
        self._check_handler(name, handler)
        if input_schema is not None:
            check_schema(input_schema)
        self._registry.add(
            CapabilityEntry(
                kind=CapabilityKind.TOOL,
                name=name,
                description=description,
                handler=handler,
                input_schema=dict(input_schema) if input_schema is not None else None,
            )
        )
        return self

    def prompt(
        self,
        name: str,
        description: str,
        handler: PromptHandler,
        *,
        arguments: Iterable[Union[PromptArgument, Mapping[str, Any]]] = (),
    ) -> "ServerBuilder":
        self._check_name("prompt", name)
        self._check_handler(name, handler)
        try:
            prompt_arguments = tuple(PromptArgument.coerce(arg) for arg in arguments)
        except (KeyError, TypeError) as exc:
            raise InvalidCapability(f"Invalid arguments for prompt '{name}': {exc}") from exc
        self._registry.add(
            CapabilityEntry(
                kind=CapabilityKind.PROMPT,
                name=name,
                description=description,
                handler=handler,
                arguments=prompt_arguments,
            )
        )
        return self

    def resource(
        self,
        uri: str,
        name: str,
        description: str = "",
        mime_type: str = DEFAULT_MIME_TYPE,
        handler: Optional[ResourceHandler] = None,
    ) -> "ServerBuilder":
        if not isinstance(uri, str) or not uri:
            raise InvalidCapability("Resource uri must be a non-empty string")
        if not isinstance(name, str) or not name:
            raise InvalidCapability(f"Resource '{uri}' needs a name")
        if handler is not None:
            self._check_handler(uri, handler)
        self._registry.add(
            CapabilityEntry(
                kind=CapabilityKind.RESOURCE,
                name=name,
                description=description,
                handler=handler,
                uri=uri,
                mime_type=mime_type,
            )
        )
        return self

    def build(self, transport: Optional[Transport] = None) -> "Server":
        session = ServerSession(
            server_name=self.name,
            server_version=self.version,
            registry=self._registry.frozen_copy(),
        )
        return Server(session, transport=transport, config=self.config)

    @staticmethod
    def _check_name(label: str, name: Any) -> None:
        if not isinstance(name, str) or not NAME_PATTERN.fullmatch(name):
            raise InvalidCapability(f"Invalid {label} name: {name!r}")

    @staticmethod
    def _check_handler(key: str, handler: Any) -> None:
        if not callable(handler):
            raise InvalidCapability(f"Handler for '{key}' is not callable")


class Server:
    """
    Serves one session over one transport.

    The loop reads a message, dispatches it and writes the response before
    reading the next one, so responses leave in request order. A server runs
    once; the transport is closed when the loop ends.
    """

    def __init__(
        self,
        session: ServerSession,
        transport: Optional[Transport] = None,
        config: Optional[ServerConfig] = None,
    ) -> None:
        self.config = config or ServerConfig()
        self.session = session
        self.transport = transport or StdioTransport()
        self.framer = MessageFramer(
            self.transport,
            max_message_bytes=self.config.max_message_bytes,
            read_chunk_size=self.config.read_chunk_size,
        )
        self.dispatcher = Dispatcher(session, redact_handler_errors=self.config.redact_handler_errors)
        self._started = False

    @property
    def registry(self) -> Registry:
        return self.session.registry

    def run(self) -> None:
        if self._started:
            raise RuntimeError("Server already ran; build a new one from the builder")
        self._started = True
        self.registry.freeze()
        logger.info("Serving %s %s (%d capabilities)", self.session.server_name, self.session.server_version, len(self.registry))
        try:
            self._serve()
        finally:
            self.session.close()
            self.transport.close()
            logger.info("Session closed")

    def _serve(self) -> None:
        try:
            for message in self.framer.messages():
                response = self.dispatcher.dispatch(message)
                if response is None:
                    continue
                if not self._write(response):
                    return
        except UnexpectedEof as exc:
            logger.warning("Stream truncated: %s", exc)
        except FramingError as exc:
            logger.error("Framing error, closing connection: %s", exc)
            self._write(make_error(None, exc.code, exc.message, data={"kind": exc.kind}))
        except (OSError, ValueError) as exc:
            # ValueError: the underlying stream was closed under us.
            logger.error("Transport read failed: %s", exc)

    def _write(self, response: Dict[str, Any]) -> bool:
        try:
            try:
                self.framer.write(response)
            except InternalError as exc:
                logger.error("Failed to serialize response %r: %s", response.get("id"), exc)
                self.framer.write(make_error(response.get("id"), exc.code, exc.message, data={"kind": exc.kind}))
        except OSError as exc:
            logger.error("Failed to write response: %s", exc)
            return False
        return True
