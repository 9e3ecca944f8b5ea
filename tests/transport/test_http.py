"""Tests for HTTPTransport with an in-process httpx mock transport."""

import json
from collections.abc import Callable
from unittest.mock import patch

import httpx
import pytest

from mcpt.errors import HTTPStatusError, InvalidParamsError, TransportError, UnsupportedMethodError
from mcpt.transport.base import Transport
from mcpt.transport.http import HTTPTransport

_RealAsyncClient = httpx.AsyncClient


def _serve(handler: Callable[[httpx.Request], httpx.Response], seen: list[httpx.Request]):
    def _record(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return handler(request)

    def _factory(**kwargs):
        return _RealAsyncClient(transport=httpx.MockTransport(_record), **kwargs)

    return patch("mcpt.transport.http.httpx.AsyncClient", side_effect=_factory)


class TestHTTPTransportProtocol:
    def test_satisfies_protocol(self) -> None:
        assert isinstance(HTTPTransport("http://localhost:8080"), Transport)

    def test_strips_trailing_slash(self) -> None:
        assert HTTPTransport("http://localhost:8080/").base_url == "http://localhost:8080"


class TestHTTPRouting:
    async def test_tools_list(self) -> None:
        seen: list[httpx.Request] = []
        with _serve(lambda r: httpx.Response(200, json={"tools": [{"name": "a"}]}), seen):
            result = await HTTPTransport("http://api.test").execute("tools/list")

        assert result == {"tools": [{"name": "a"}]}
        assert seen[0].method == "GET"
        assert seen[0].url == "http://api.test/v1/tools"
        assert seen[0].content == b""

    async def test_resources_list(self) -> None:
        seen: list[httpx.Request] = []
        with _serve(lambda r: httpx.Response(200, json={"resources": []}), seen):
            result = await HTTPTransport("http://api.test").execute("resources/list")

        assert result == {"resources": []}
        assert seen[0].method == "GET"
        assert seen[0].url.path == "/v1/resources"

    async def test_tools_call_posts_arguments(self) -> None:
        seen: list[httpx.Request] = []
        with _serve(lambda r: httpx.Response(200, json={"content": []}), seen):
            await HTTPTransport("http://api.test").execute(
                "tools/call", {"name": "add", "arguments": {"a": 3, "b": 4}}
            )

        assert seen[0].method == "POST"
        assert seen[0].url.path == "/v1/tools/add"
        assert json.loads(seen[0].content) == {"a": 3, "b": 4}

    async def test_tools_call_escapes_name(self) -> None:
        seen: list[httpx.Request] = []
        with _serve(lambda r: httpx.Response(200, json={}), seen):
            await HTTPTransport("http://api.test").execute("tools/call", {"name": "a/b c"})

        assert seen[0].url.raw_path == b"/v1/tools/a%2Fb%20c"

    async def test_tools_call_without_arguments_sends_no_body(self) -> None:
        seen: list[httpx.Request] = []
        with _serve(lambda r: httpx.Response(200, json={}), seen):
            await HTTPTransport("http://api.test").execute("tools/call", {"name": "ping", "arguments": {}})

        assert seen[0].content == b""

    async def test_base_path_is_kept(self) -> None:
        seen: list[httpx.Request] = []
        with _serve(lambda r: httpx.Response(200, json={"tools": []}), seen):
            await HTTPTransport("http://api.test/mcp").execute("tools/list")

        assert seen[0].url.path == "/mcp/v1/tools"


class TestHTTPErrors:
    async def test_missing_name_fails_before_network(self) -> None:
        seen: list[httpx.Request] = []
        with _serve(lambda r: httpx.Response(200, json={}), seen), pytest.raises(InvalidParamsError):
            await HTTPTransport("http://api.test").execute("tools/call", {"arguments": {}})
        assert seen == []

    async def test_non_string_name(self) -> None:
        with pytest.raises(InvalidParamsError, match="name"):
            await HTTPTransport("http://api.test").execute("tools/call", {"name": 42})

    async def test_params_not_a_map(self) -> None:
        with pytest.raises(InvalidParamsError):
            await HTTPTransport("http://api.test").execute("tools/call", None)

    async def test_unsupported_method(self) -> None:
        with pytest.raises(UnsupportedMethodError, match="prompts/list"):
            await HTTPTransport("http://api.test").execute("prompts/list")

    async def test_non_2xx_status(self) -> None:
        seen: list[httpx.Request] = []
        with (
            _serve(lambda r: httpx.Response(404, text="no such tool"), seen),
            pytest.raises(HTTPStatusError) as exc_info,
        ):
            await HTTPTransport("http://api.test").execute("tools/call", {"name": "nope"})

        assert exc_info.value.status_code == 404
        assert "no such tool" in str(exc_info.value)

    async def test_connection_failure(self) -> None:
        def _fail(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        with _serve(_fail, []), pytest.raises(TransportError, match="connection refused"):
            await HTTPTransport("http://api.test").execute("tools/list")
