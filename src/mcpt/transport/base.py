"""Transport protocol — the single call contract shared by every transport."""

from __future__ import annotations

from typing import Any, Protocol, runtime_checkable


@runtime_checkable
class Transport(Protocol):
    """Sends one MCP method call and returns its result.

    Implementations either return the result map (``{}`` when the server
    sent an empty result) or raise a :class:`~mcpt.errors.TransportError`;
    never both.
    """

    async def execute(self, method: str, params: Any = None) -> dict[str, Any]: ...
