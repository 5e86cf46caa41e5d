from __future__ import annotations

from typing import Any, Callable, Dict, Optional

from .contracts import CapabilityEntry, CapabilityKind, DEFAULT_MIME_TYPE
from .protocol import (
    PROTOCOL_VERSION,
    SUPPORTED_PROTOCOL_VERSIONS,
    JsonRpcRequest,
    RequestId,
    is_valid_id,
    make_error,
    make_result,
    parse_request,
)
from .session import ServerSession
from .shared.errors import (
    HandlerFailure,
    InternalError,
    InvalidParams,
    McpError,
    MethodNotFound,
    NotInitialized,
)
from .shared.logging import get_logger
from .validate import ArgumentValidator

JsonDict = Dict[str, Any]

logger = get_logger(__name__)


def error_response(request_id: RequestId, exc: McpError) -> JsonDict:
    error = exc.to_error()
    return make_error(request_id, error["code"], error["message"], data=error["data"])


class Dispatcher:
    """Routes one decoded JSON-RPC message to a built-in method and builds the response."""

    def __init__(self, session: ServerSession, *, redact_handler_errors: bool = False) -> None:
        self._session = session
        self._registry = session.registry
        self._redact = redact_handler_errors
        self._validator = ArgumentValidator()
        self._methods: Dict[str, Callable[[JsonDict], Any]] = {
            "initialize": self._initialize,
            "ping": self._ping,
            "tools/list": self._list_tools,
            "tools/call": self._call_tool,
            "prompts/list": self._list_prompts,
            "prompts/get": self._get_prompt,
            "resources/list": self._list_resources,
            "resources/read": self._read_resource,
            "notifications/initialized": self._ignore,
            "notifications/cancelled": self._cancelled,
        }

    @property
    def methods(self) -> list[str]:
        return list(self._methods)

    # -------------------------
    # Entry point
    # -------------------------

    def dispatch(self, message: Any) -> Optional[JsonDict]:
        """
        Handle one message. Returns the response, or None for notifications.

        The request id is echoed unchanged. Recoverable failures become
        error responses; they never propagate.
        """
        raw_id = message.get("id") if isinstance(message, dict) else None
        request_id = raw_id if is_valid_id(raw_id) else None
        notification = isinstance(message, dict) and raw_id is None

        try:
            request = parse_request(message)
            result = self._route(request)
        except McpError as exc:
            if notification:
                logger.debug("Dropping %s for notification %r: %s", exc.kind, message.get("method"), exc.message)
                return None
            return error_response(request_id, exc)
        except Exception:  # noqa: BLE001
            logger.exception("Unexpected failure while dispatching %r", message.get("method") if isinstance(message, dict) else message)
            if notification:
                return None
            return error_response(request_id, InternalError("Internal error"))

        if notification:
            return None
        return make_result(request_id, result)

    def _route(self, request: JsonRpcRequest) -> Any:
        if request.method != "initialize" and not self._session.initialized:
            raise NotInitialized(f"Server not initialized; cannot handle {request.method}")
        method = self._methods.get(request.method)
        if method is None:
            logger.info("Unknown method: %s", request.method)
            raise MethodNotFound(f"Method not found: {request.method}")
        return method(request.params)

    # -------------------------
    # Lifecycle
    # -------------------------

    def _initialize(self, params: JsonDict) -> JsonDict:
        requested = params.get("protocolVersion", PROTOCOL_VERSION)
        if not isinstance(requested, str):
            raise InvalidParams("protocolVersion must be a string")
        if requested not in SUPPORTED_PROTOCOL_VERSIONS:
            raise InvalidParams(
                f"Unsupported protocol version: {requested}",
                data={"supported": list(SUPPORTED_PROTOCOL_VERSIONS)},
            )
        client_info = params.get("clientInfo")
        if self._session.initialized:
            logger.warning("Received initialize on an already initialized session")
        self._session.mark_initialized(requested, client_info if isinstance(client_info, dict) else None)
        logger.info("Session initialized (protocol %s, client %s)", requested, self._session.client_info.get("name", "unknown"))

        counts = self._registry.counts()
        return {
            "protocolVersion": requested,
            "serverInfo": {"name": self._session.server_name, "version": self._session.server_version},
            "capabilities": {
                "tools": counts[CapabilityKind.TOOL] > 0,
                "prompts": counts[CapabilityKind.PROMPT] > 0,
                "resources": counts[CapabilityKind.RESOURCE] > 0,
            },
        }

    def _ping(self, _: JsonDict) -> JsonDict:
        return {}

    def _ignore(self, _: JsonDict) -> JsonDict:
        return {}

    def _cancelled(self, params: JsonDict) -> JsonDict:
        # Requests are handled one at a time, so the target has already completed.
        logger.debug("Ignoring cancellation for request %r", params.get("requestId"))
        return {}

    # -------------------------
    # Listing
    # -------------------------

    def _list_tools(self, _: JsonDict) -> JsonDict:
        return {"tools": [entry.to_wire() for entry in self._registry.list(CapabilityKind.TOOL)]}

    def _list_prompts(self, _: JsonDict) -> JsonDict:
        return {"prompts": [entry.to_wire() for entry in self._registry.list(CapabilityKind.PROMPT)]}

    def _list_resources(self, _: JsonDict) -> JsonDict:
        return {"resources": [entry.to_wire() for entry in self._registry.list(CapabilityKind.RESOURCE)]}

    # -------------------------
    # Invocation
    # -------------------------

    def _call_tool(self, params: JsonDict) -> JsonDict:
        entry, arguments = self._resolve_call(CapabilityKind.TOOL, params)
        return {"content": self._invoke(entry, arguments)}

    def _get_prompt(self, params: JsonDict) -> JsonDict:
        entry, arguments = self._resolve_call(CapabilityKind.PROMPT, params)
        return {"description": entry.description, "messages": self._invoke(entry, arguments)}

    def _read_resource(self, params: JsonDict) -> JsonDict:
        uri = params.get("uri")
        if not isinstance(uri, str) or not uri:
            raise InvalidParams("uri must be a non-empty string")
        entry = self._registry.lookup(CapabilityKind.RESOURCE, uri)
        if entry.handler is None:
            contents: Any = [{"uri": entry.uri, "mimeType": entry.mime_type or DEFAULT_MIME_TYPE, "text": ""}]
        else:
            contents = self._invoke(entry, uri)
        return {"contents": contents}

    def _resolve_call(self, kind: CapabilityKind, params: JsonDict) -> tuple[CapabilityEntry, JsonDict]:
        name = params.get("name")
        if not isinstance(name, str) or not name:
            raise InvalidParams("name must be a non-empty string")
        arguments = params.get("arguments")
        if arguments is None:
            arguments = {}
        if not isinstance(arguments, dict):
            raise InvalidParams("arguments must be an object")
        entry = self._registry.lookup(kind, name)
        return entry, self._validator.validate(entry, arguments)

    def _invoke(self, entry: CapabilityEntry, argument: Any) -> Any:
        if entry.handler is None:
            raise InternalError(f"No handler registered for {entry.kind.value} '{entry.key}'")
        try:
            return entry.handler(argument)
        except McpError:
            raise
        except Exception as exc:  # noqa: BLE001
            logger.exception("Handler for %s '%s' failed", entry.kind.value, entry.key)
            raise HandlerFailure.from_exception(exc, redact=self._redact) from exc
