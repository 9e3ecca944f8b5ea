"""mcpt: a command-line bridge to MCP servers over stdio and HTTP."""

from __future__ import annotations

from typing import TYPE_CHECKING

__version__ = "0.1.0"

if TYPE_CHECKING:
    from mcpt.client import MCPClient as MCPClient
    from mcpt.config import ClientConfig as ClientConfig

_LAZY_EXPORTS = {
    "MCPClient": "mcpt.client",
    "ClientConfig": "mcpt.config",
}


def __getattr__(name: str) -> object:
    module_path = _LAZY_EXPORTS.get(name)
    if module_path is not None:
        import importlib

        mod = importlib.import_module(module_path)
        return getattr(mod, name)
    raise AttributeError(f"module 'mcpt' has no attribute {name!r}")
