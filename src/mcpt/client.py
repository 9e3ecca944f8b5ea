"""MCPClient — one method per MCP operation over any :class:`Transport`."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from mcpt.protocol.models import (
    PROMPTS_GET,
    PROMPTS_LIST,
    RESOURCES_LIST,
    RESOURCES_READ,
    TOOLS_CALL,
    TOOLS_LIST,
)
from mcpt.transport import create_transport

if TYPE_CHECKING:
    from mcpt.config import ClientConfig
    from mcpt.transport.base import Transport


class MCPClient:
    """Thin facade the CLI talks to; the transport does all the work.

    Usage::

        client = MCPClient.from_config(ClientConfig.from_target(["python", "server.py"]))
        tools = await client.list_tools()
        result = await client.call_tool("add", {"a": 1, "b": 2})
    """

    def __init__(self, transport: Transport) -> None:
        self._transport = transport

    @classmethod
    def from_config(cls, config: ClientConfig) -> MCPClient:
        return cls(create_transport(config))

    @property
    def transport(self) -> Transport:
        return self._transport

    async def list_tools(self) -> dict[str, Any]:
        return await self._transport.execute(TOOLS_LIST)

    async def call_tool(self, name: str, arguments: dict[str, Any] | None = None) -> dict[str, Any]:
        return await self._transport.execute(TOOLS_CALL, {"name": name, "arguments": arguments or {}})

    async def list_resources(self) -> dict[str, Any]:
        return await self._transport.execute(RESOURCES_LIST)

    async def read_resource(self, uri: str) -> dict[str, Any]:
        return await self._transport.execute(RESOURCES_READ, {"uri": uri})

    async def list_prompts(self) -> dict[str, Any]:
        return await self._transport.execute(PROMPTS_LIST)

    async def get_prompt(self, name: str, arguments: dict[str, Any] | None = None) -> dict[str, Any]:
        params: dict[str, Any] = {"name": name}
        if arguments:
            params["arguments"] = arguments
        return await self._transport.execute(PROMPTS_GET, params)
