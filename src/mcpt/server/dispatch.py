"""Responder — the JSON-RPC dispatch loop shared by the mock and proxy servers.

A responder reads successive JSON-RPC objects from an input stream, routes
each one by method name to a handler, and writes one response line per
request to an output stream.  Notifications are handled but never answered.
Handler failures become error responses (``-32601`` for an unknown method,
``-32000`` otherwise) and the loop carries on; only unreadable input or
end-of-stream stops it.
"""

from __future__ import annotations

import asyncio
import json
import logging
from typing import TYPE_CHECKING, Any, ClassVar, TextIO

from pydantic import ValidationError

from mcpt.errors import DecodeError, HandlerError, InvalidParamsError, MethodNotFoundError
from mcpt.protocol.models import (
    INITIALIZE,
    INITIALIZED,
    PROMPTS_GET,
    PROMPTS_LIST,
    PROTOCOL_VERSION,
    RESOURCES_LIST,
    RESOURCES_READ,
    SERVER_ERROR,
    TOOLS_CALL,
    TOOLS_LIST,
    JsonRpcRequest,
    JsonRpcResponse,
)

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable

    from mcpt.server.logsink import ExchangeLog

    Handler = Callable[[dict[str, Any]], Awaitable[dict[str, Any]]]

logger = logging.getLogger(__name__)

_decoder = json.JSONDecoder()


def _is_truncated(exc: json.JSONDecodeError, text: str) -> bool:
    """True when *text* is a valid prefix that more input could complete."""
    return exc.pos >= len(text.rstrip()) or exc.msg.startswith("Unterminated string")


class JsonStreamReader:
    """Decodes consecutive JSON values from a text stream.

    Values may be separated by any whitespace and may span several lines.
    """

    def __init__(self, stream: TextIO) -> None:
        self._stream = stream
        self._buffer = ""
        self._eof = False

    def next_value(self) -> Any:
        """Return the next decoded value, or ``None`` at a clean end of stream.

        Raises:
            DecodeError: On a syntax error, or when the stream ends mid-value.
        """
        while True:
            text = self._buffer.lstrip()
            if text:
                try:
                    value, end = _decoder.raw_decode(text)
                except json.JSONDecodeError as exc:
                    if self._eof or not _is_truncated(exc, text):
                        self._buffer = ""
                        raise DecodeError(f"error decoding request: {exc}") from exc
                else:
                    self._buffer = text[end:]
                    return value
            elif self._eof:
                return None

            line = self._stream.readline()
            if not line:
                self._eof = True
            self._buffer = text + line


def require_str(params: dict[str, Any], key: str) -> str:
    """Return ``params[key]`` or raise :class:`InvalidParamsError`."""
    if key not in params:
        raise InvalidParamsError(f"missing '{key}' parameter")
    value = params[key]
    if not isinstance(value, str):
        raise InvalidParamsError(f"'{key}' parameter must be a string")
    return value


class Responder:
    """Base class for stdio MCP servers.

    Subclasses override the ``handle_*`` coroutines they support and
    :meth:`registered_counts`; everything else answers "method not found".
    """

    server_name: ClassVar[str] = "mcp-server"
    server_version: ClassVar[str] = "1.0.0"

    def __init__(self, log: ExchangeLog) -> None:
        self._log = log
        self._handlers: dict[str, Handler] = {
            INITIALIZE: self.handle_initialize,
            TOOLS_LIST: self.handle_tools_list,
            TOOLS_CALL: self.handle_tools_call,
            RESOURCES_LIST: self.handle_resources_list,
            RESOURCES_READ: self.handle_resources_read,
            PROMPTS_LIST: self.handle_prompts_list,
            PROMPTS_GET: self.handle_prompts_get,
        }

    # ------------------------------------------------------------------
    # Loop
    # ------------------------------------------------------------------

    async def serve(self, instream: TextIO, outstream: TextIO) -> None:
        """Answer requests from *instream* on *outstream* until end of stream."""
        reader = JsonStreamReader(instream)
        self._log.log(f"{self.server_name} started, waiting for requests...")
        logger.info("%s started, waiting for requests...", self.server_name)

        while True:
            try:
                raw = await asyncio.to_thread(reader.next_value)
                if raw is None:
                    self._log.log("Client disconnected (EOF)")
                    logger.info("Client disconnected")
                    return
                response = await self.handle_raw(raw)
            except DecodeError as exc:
                self._log.log(str(exc))
                logger.error("%s", exc)
                raise

            if response is not None:
                self._write(outstream, response)

    async def handle_raw(self, raw: Any) -> JsonRpcResponse | None:
        """Validate a decoded value as a request and handle it."""
        if not isinstance(raw, dict):
            msg = f"error decoding request: expected a JSON object, got {type(raw).__name__}"
            raise DecodeError(msg)
        try:
            request = JsonRpcRequest.model_validate(raw)
        except ValidationError as exc:
            self._log.log_json("Invalid request", raw)
            logger.warning("Invalid request: %s", exc.errors(include_url=False))
            request_id = raw.get("id")
            if not isinstance(request_id, int) or isinstance(request_id, bool):
                return None
            return JsonRpcResponse.failure(request_id, SERVER_ERROR, "invalid request")
        return await self.handle(request)

    async def handle(self, request: JsonRpcRequest) -> JsonRpcResponse | None:
        """Dispatch one request; ``None`` means nothing is to be written back."""
        self._log.log_json("Received request", request.to_wire())
        logger.info("Received request: %s (ID: %s)", request.method, request.id)

        if request.method == INITIALIZED:
            self._log.log("Received initialization notification")
            return None

        try:
            result = await self._dispatch(request)
        except HandlerError as exc:
            self._log.log(f"Error handling request: {exc}")
            logger.warning("Error handling %s: %s", request.method, exc)
            response = JsonRpcResponse.failure(request.id, exc.code, str(exc))
        except Exception as exc:
            self._log.log(f"Error handling request: {exc}")
            logger.exception("Unexpected error handling %s", request.method)
            response = JsonRpcResponse.failure(request.id, SERVER_ERROR, str(exc))
        else:
            response = JsonRpcResponse.success(request.id, result)

        if request.is_notification:
            return None
        return response

    async def _dispatch(self, request: JsonRpcRequest) -> dict[str, Any]:
        handler = self._handlers.get(request.method)
        if handler is None:
            raise MethodNotFoundError(request.method)
        params = request.params
        if params is None:
            params = {}
        elif not isinstance(params, dict):
            msg = "params must be an object"
            raise InvalidParamsError(msg)
        return await handler(params)

    def _write(self, outstream: TextIO, response: JsonRpcResponse) -> None:
        data = response.to_wire()
        label = "Sending error response" if response.error is not None else "Sending response"
        self._log.log_json(label, data)
        outstream.write(json.dumps(data) + "\n")
        outstream.flush()

    # ------------------------------------------------------------------
    # Handlers
    # ------------------------------------------------------------------

    def registered_counts(self) -> dict[str, int]:
        """Number of registered entries per capability (tools/prompts/resources)."""
        return {}

    async def handle_initialize(self, params: dict[str, Any]) -> dict[str, Any]:
        client_info = params.get("clientInfo")
        if isinstance(client_info, dict):
            logger.info("Client initialized: %s v%s", client_info.get("name"), client_info.get("version"))

        version = params.get("protocolVersion")
        if not isinstance(version, str):
            version = PROTOCOL_VERSION

        capabilities = {kind: {} for kind, count in self.registered_counts().items() if count > 0}
        return {
            "protocolVersion": version,
            "capabilities": capabilities,
            "serverInfo": {"name": self.server_name, "version": self.server_version},
        }

    async def handle_tools_list(self, params: dict[str, Any]) -> dict[str, Any]:
        raise MethodNotFoundError(TOOLS_LIST)

    async def handle_tools_call(self, params: dict[str, Any]) -> dict[str, Any]:
        raise MethodNotFoundError(TOOLS_CALL)

    async def handle_resources_list(self, params: dict[str, Any]) -> dict[str, Any]:
        raise MethodNotFoundError(RESOURCES_LIST)

    async def handle_resources_read(self, params: dict[str, Any]) -> dict[str, Any]:
        raise MethodNotFoundError(RESOURCES_READ)

    async def handle_prompts_list(self, params: dict[str, Any]) -> dict[str, Any]:
        raise MethodNotFoundError(PROMPTS_LIST)

    async def handle_prompts_get(self, params: dict[str, Any]) -> dict[str, Any]:
        raise MethodNotFoundError(PROMPTS_GET)
