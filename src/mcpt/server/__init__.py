"""Stdio responders: the mock, proxy and guard MCP servers."""

from mcpt.server.dispatch import JsonStreamReader, Responder
from mcpt.server.guard import GuardPolicy, GuardServer, parse_patterns
from mcpt.server.logsink import ExchangeLog
from mcpt.server.manifest import ProxyManifest, load_manifest
from mcpt.server.mock import MockServer, extract_arguments
from mcpt.server.proxy import ProxyServer, ProxyTool, parse_parameters, validate_script

__all__ = [
    "ExchangeLog",
    "GuardPolicy",
    "GuardServer",
    "JsonStreamReader",
    "MockServer",
    "ProxyManifest",
    "ProxyServer",
    "ProxyTool",
    "Responder",
    "extract_arguments",
    "load_manifest",
    "parse_parameters",
    "parse_patterns",
    "validate_script",
]
