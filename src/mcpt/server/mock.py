"""MockServer — answers MCP requests with canned tools, prompts, and resources."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from mcpt.errors import NotFoundError
from mcpt.protocol.models import Prompt, Resource, Tool, render_value
from mcpt.server.dispatch import Responder, require_str

if TYPE_CHECKING:
    from mcpt.server.logsink import ExchangeLog

logger = logging.getLogger(__name__)

MOCK_MIME_TYPE = "text/plain"


def extract_arguments(template: str) -> list[dict[str, Any]]:
    """Return one required argument per distinct ``{{name}}`` in *template*.

    Names are trimmed; empty placeholders are skipped and the first
    occurrence of a name fixes its position.
    """
    arguments: list[dict[str, Any]] = []
    seen: set[str] = set()
    pos = 0
    while True:
        start = template.find("{{", pos)
        if start == -1:
            break
        end = template.find("}}", start)
        if end == -1:
            break
        name = template[start + 2 : end].strip()
        if name and name not in seen:
            seen.add(name)
            arguments.append({"name": name, "description": name, "required": True})
        pos = end + 2
    return arguments


class MockServer(Responder):
    """In-memory MCP server for exercising clients.

    Usage::

        with ExchangeLog.open(path) as log:
            server = MockServer(log)
            server.add_tool("hello", "Says hello")
            await server.serve(sys.stdin, sys.stdout)
    """

    server_name = "mcp-mock-server"
    server_version = "1.0.0"

    def __init__(self, log: ExchangeLog) -> None:
        super().__init__(log)
        self._tools: dict[str, Tool] = {}
        self._prompts: dict[str, Prompt] = {}
        self._resources: dict[str, Resource] = {}

    def add_tool(self, name: str, description: str) -> None:
        self._tools[name] = Tool(name=name, description=description)

    def add_prompt(self, name: str, description: str, template: str) -> None:
        self._prompts[name] = Prompt(name=name, description=description, template=template)

    def add_resource(self, uri: str, description: str, content: str) -> None:
        self._resources[uri] = Resource(uri=uri, description=description, content=content)

    def registered_counts(self) -> dict[str, int]:
        return {
            "tools": len(self._tools),
            "prompts": len(self._prompts),
            "resources": len(self._resources),
        }

    async def handle_tools_list(self, params: dict[str, Any]) -> dict[str, Any]:
        return {
            "tools": [
                {
                    "name": tool.name,
                    "description": tool.description,
                    "inputSchema": {"type": "object", "properties": {}},
                }
                for tool in self._tools.values()
            ]
        }

    async def handle_tools_call(self, params: dict[str, Any]) -> dict[str, Any]:
        name = require_str(params, "name")
        tool = self._tools.get(name)
        if tool is None:
            raise NotFoundError("tool", name)
        text = f"hello i am {tool.name} mock tool and i confirm it's working"
        return {"content": [{"type": "text", "text": text}]}

    async def handle_resources_list(self, params: dict[str, Any]) -> dict[str, Any]:
        return {
            "resources": [
                {
                    "uri": resource.uri,
                    "name": resource.uri,
                    "description": resource.description,
                    "mimeType": MOCK_MIME_TYPE,
                }
                for resource in self._resources.values()
            ]
        }

    async def handle_resources_read(self, params: dict[str, Any]) -> dict[str, Any]:
        uri = require_str(params, "uri")
        resource = self._resources.get(uri)
        if resource is None:
            raise NotFoundError("resource", uri)
        return {"contents": [{"uri": resource.uri, "mimeType": MOCK_MIME_TYPE, "text": resource.content}]}

    async def handle_prompts_list(self, params: dict[str, Any]) -> dict[str, Any]:
        prompts: list[dict[str, Any]] = []
        for prompt in self._prompts.values():
            info: dict[str, Any] = {"name": prompt.name, "description": prompt.description}
            arguments = extract_arguments(prompt.template)
            if arguments:
                info["arguments"] = arguments
            prompts.append(info)
        return {"prompts": prompts}

    async def handle_prompts_get(self, params: dict[str, Any]) -> dict[str, Any]:
        name = require_str(params, "name")
        prompt = self._prompts.get(name)
        if prompt is None:
            raise NotFoundError("prompt", name)

        content = prompt.template
        arguments = params.get("arguments")
        if isinstance(arguments, dict):
            logger.info("Prompt arguments received: %s", arguments)
            for arg_name, value in arguments.items():
                content = content.replace("{{" + arg_name + "}}", render_value(value))

        return {
            "description": prompt.description,
            "messages": [{"role": "user", "content": {"type": "text", "text": content}}],
        }
