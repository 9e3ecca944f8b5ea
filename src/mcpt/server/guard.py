"""GuardServer — filters an upstream MCP server through allow/deny name patterns.

List responses from the upstream server are filtered by entry name, and
calls, reads and gets that target a filtered name are rejected as if the
entry did not exist.  Everything else is forwarded unchanged.
"""

from __future__ import annotations

import fnmatch
import logging
from enum import Enum
from typing import TYPE_CHECKING, Any

from pydantic import BaseModel, Field

from mcpt.errors import NotFoundError, RPCError, TransportError, UpstreamError
from mcpt.protocol.models import (
    PROMPTS_GET,
    PROMPTS_LIST,
    RESOURCES_LIST,
    RESOURCES_READ,
    SERVER_ERROR,
    TOOLS_CALL,
    TOOLS_LIST,
)
from mcpt.server.dispatch import Responder

if TYPE_CHECKING:
    from mcpt.server.logsink import ExchangeLog
    from mcpt.transport.base import Transport

logger = logging.getLogger(__name__)


class EntityKind(str, Enum):
    """Kinds of entries a guard policy can filter."""

    TOOL = "tool"
    PROMPT = "prompt"
    RESOURCE = "resource"


_KIND_ALIASES: dict[str, EntityKind] = {
    "tool": EntityKind.TOOL,
    "tools": EntityKind.TOOL,
    "prompt": EntityKind.PROMPT,
    "prompts": EntityKind.PROMPT,
    "resource": EntityKind.RESOURCE,
    "resources": EntityKind.RESOURCE,
    "res": EntityKind.RESOURCE,
}


def parse_patterns(values: list[str] | tuple[str, ...]) -> dict[EntityKind, list[str]]:
    """Parse ``--allow``/``--deny`` values into patterns per entity kind.

    Each value is a comma-separated list of ``kind:pattern`` entries.  An
    entry without a colon, or with an unknown kind, is taken whole as a
    tool pattern.  Blank entries are skipped.
    """
    patterns: dict[EntityKind, list[str]] = {kind: [] for kind in EntityKind}
    for value in values:
        for entry in value.split(","):
            entry = entry.strip()
            if not entry:
                continue
            prefix, sep, pattern = entry.partition(":")
            kind = _KIND_ALIASES.get(prefix.lower()) if sep else None
            if kind is None:
                patterns[EntityKind.TOOL].append(entry)
            else:
                patterns[kind].append(pattern)
    return patterns


def resource_name(uri: str) -> str:
    """Return the part of *uri* after its last ``:`` or ``/``, or *uri* itself."""
    idx = max(uri.rfind(":"), uri.rfind("/"))
    if idx == -1 or idx == len(uri) - 1:
        return uri
    return uri[idx + 1 :]


class GuardPolicy(BaseModel):
    """Allow and deny glob patterns per entity kind."""

    allow: dict[EntityKind, list[str]] = Field(default_factory=dict)
    deny: dict[EntityKind, list[str]] = Field(default_factory=dict)

    @classmethod
    def from_args(cls, allow: list[str] | tuple[str, ...] = (), deny: list[str] | tuple[str, ...] = ()) -> GuardPolicy:
        return cls(allow=parse_patterns(allow), deny=parse_patterns(deny))

    def is_allowed(self, kind: EntityKind, name: str) -> bool:
        """Check *name* against the patterns for *kind*.

        With no allow patterns everything is allowed; otherwise the name
        must match one.  A matching deny pattern always wins.
        """
        allow = self.allow.get(kind, [])
        allowed = not allow or any(fnmatch.fnmatch(name, pattern) for pattern in allow)
        if any(fnmatch.fnmatch(name, pattern) for pattern in self.deny.get(kind, [])):
            allowed = False
        return allowed


_LIST_KEYS: dict[EntityKind, str] = {
    EntityKind.TOOL: "tools",
    EntityKind.PROMPT: "prompts",
    EntityKind.RESOURCE: "resources",
}


class GuardServer(Responder):
    """Serves a filtered view of an upstream server.

    Usage::

        with ExchangeLog.open(path) as log:
            policy = GuardPolicy.from_args(deny=["tools:write_*"])
            server = GuardServer(log, StdioTransport(["npx", "server"]), policy)
            await server.serve(sys.stdin, sys.stdout)

    ``initialize`` is answered locally; the upstream transport performs its
    own handshake for every forwarded call.
    """

    server_name = "mcp-guard-proxy"
    server_version = "1.0.0"

    def __init__(self, log: ExchangeLog, upstream: Transport, policy: GuardPolicy) -> None:
        super().__init__(log)
        self._upstream = upstream
        self._policy = policy

    @property
    def policy(self) -> GuardPolicy:
        return self._policy

    def registered_counts(self) -> dict[str, int]:
        return {key: 1 for key in _LIST_KEYS.values()}

    async def _forward(self, method: str, params: dict[str, Any]) -> dict[str, Any]:
        try:
            return await self._upstream.execute(method, params or None)
        except RPCError as exc:
            raise UpstreamError(exc.code, exc.message) from exc
        except TransportError as exc:
            self._log.log(f"Error forwarding request: {exc}")
            raise UpstreamError(SERVER_ERROR, f"error forwarding request: {exc}") from exc

    def _filter(self, kind: EntityKind, result: dict[str, Any]) -> dict[str, Any]:
        key = _LIST_KEYS[kind]
        entries = result.get(key)
        if not isinstance(entries, list):
            return result

        kept = []
        for entry in entries:
            name = entry.get("name") if isinstance(entry, dict) else None
            if not isinstance(name, str):
                continue
            if self._policy.is_allowed(kind, name):
                kept.append(entry)
            else:
                self._log.log(f"Filtered {kind.value}: {name}")
                logger.info("Filtered %s: %s", kind.value, name)
        return {**result, key: kept}

    def _block(self, kind: EntityKind, key: str, message: str) -> None:
        self._log.log(message)
        logger.info("%s", message)
        raise NotFoundError(kind.value, key)

    # ------------------------------------------------------------------
    # Handlers
    # ------------------------------------------------------------------

    async def handle_tools_list(self, params: dict[str, Any]) -> dict[str, Any]:
        return self._filter(EntityKind.TOOL, await self._forward(TOOLS_LIST, params))

    async def handle_prompts_list(self, params: dict[str, Any]) -> dict[str, Any]:
        return self._filter(EntityKind.PROMPT, await self._forward(PROMPTS_LIST, params))

    async def handle_resources_list(self, params: dict[str, Any]) -> dict[str, Any]:
        return self._filter(EntityKind.RESOURCE, await self._forward(RESOURCES_LIST, params))

    async def handle_tools_call(self, params: dict[str, Any]) -> dict[str, Any]:
        name = params.get("name")
        if isinstance(name, str) and not self._policy.is_allowed(EntityKind.TOOL, name):
            self._block(EntityKind.TOOL, name, f"Blocked call to filtered tool: {name}")
        return await self._forward(TOOLS_CALL, params)

    async def handle_prompts_get(self, params: dict[str, Any]) -> dict[str, Any]:
        name = params.get("name")
        if isinstance(name, str) and not self._policy.is_allowed(EntityKind.PROMPT, name):
            self._block(EntityKind.PROMPT, name, f"Blocked get of filtered prompt: {name}")
        return await self._forward(PROMPTS_GET, params)

    async def handle_resources_read(self, params: dict[str, Any]) -> dict[str, Any]:
        uri = params.get("uri")
        if isinstance(uri, str):
            name = resource_name(uri)
            if not self._policy.is_allowed(EntityKind.RESOURCE, name):
                self._block(EntityKind.RESOURCE, uri, f"Blocked read of filtered resource: {name}")
        return await self._forward(RESOURCES_READ, params)
