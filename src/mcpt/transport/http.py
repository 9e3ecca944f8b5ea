"""HTTPTransport — maps MCP methods onto a REST-style HTTP API.

=================  ======  ============================  =======================
method             verb    path                          body
=================  ======  ============================  =======================
``tools/list``     GET     ``/v1/tools``                 none
``resources/list`` GET     ``/v1/resources``             none
``tools/call``     POST    ``/v1/tools/{name}``          ``arguments`` if any
=================  ======  ============================  =======================

Responses are plain JSON objects returned as-is; there is no JSON-RPC
envelope on this wire.
"""

from __future__ import annotations

import logging
from typing import Any
from urllib.parse import quote

import httpx

from mcpt.errors import (
    HTTPStatusError,
    InvalidParamsError,
    MalformedResponseError,
    TransportError,
    UnsupportedMethodError,
)
from mcpt.protocol.models import RESOURCES_LIST, TOOLS_CALL, TOOLS_LIST
from mcpt.utils.telemetry import ATTR_HTTP_STATUS, ATTR_METHOD, ATTR_TRANSPORT, get_tracer

logger = logging.getLogger(__name__)
_tracer = get_tracer(__name__)


class HTTPTransport:
    """Executes the supported MCP methods against ``base_url``.

    Satisfies the :class:`~mcpt.transport.base.Transport` protocol.
    """

    def __init__(self, base_url: str, *, debug: bool = False) -> None:
        self._base_url = base_url.rstrip("/")
        self._debug = debug

    @property
    def base_url(self) -> str:
        return self._base_url

    async def execute(self, method: str, params: Any = None) -> dict[str, Any]:
        """Translate *method* into an HTTP request and return the decoded body."""
        verb, path, body = self._route(method, params)

        with _tracer.start_as_current_span("mcpt.transport.execute") as span:
            span.set_attribute(ATTR_TRANSPORT, "http")
            span.set_attribute(ATTR_METHOD, method)
            if self._debug:
                logger.debug("%s %s%s body=%s", verb, self._base_url, path, body)

            try:
                async with httpx.AsyncClient(base_url=self._base_url) as client:
                    response = await client.request(verb, path, json=body)
            except httpx.HTTPError as exc:
                raise TransportError(f"error sending request: {exc}") from exc

            span.set_attribute(ATTR_HTTP_STATUS, response.status_code)
            if not response.is_success:
                raise HTTPStatusError(response.status_code, response.text)

            try:
                data = response.json()
            except ValueError as exc:
                raise MalformedResponseError(response.text, str(exc)) from exc
            if not isinstance(data, dict):
                raise MalformedResponseError(response.text, "expected a JSON object")
            return data

    @staticmethod
    def _route(method: str, params: Any) -> tuple[str, str, dict[str, Any] | None]:
        """Return ``(verb, path, json_body)`` for *method*, validating params locally."""
        if method == TOOLS_LIST:
            return "GET", "/v1/tools", None
        if method == RESOURCES_LIST:
            return "GET", "/v1/resources", None
        if method == TOOLS_CALL:
            if not isinstance(params, dict):
                msg = "tools/call requires a params object"
                raise InvalidParamsError(msg)
            name = params.get("name")
            if not isinstance(name, str):
                msg = "tools/call requires a string 'name' parameter"
                raise InvalidParamsError(msg)
            arguments = params.get("arguments")
            body = arguments if isinstance(arguments, dict) and arguments else None
            return "POST", f"/v1/tools/{quote(name, safe='')}", body
        raise UnsupportedMethodError(method)
