"""Stdio subprocess and HTTP implementations of :class:`Transport`."""

from __future__ import annotations

from mcpt.config import ClientConfig, TransportKind
from mcpt.transport.base import Transport
from mcpt.transport.http import HTTPTransport
from mcpt.transport.stdio import StdioTransport


def create_transport(config: ClientConfig) -> Transport:
    """Build the transport selected by ``config.kind``."""
    if config.kind is TransportKind.HTTP:
        if not config.url:
            msg = "http transport requires 'url'"
            raise ValueError(msg)
        return HTTPTransport(config.url, debug=config.debug)
    return StdioTransport(config.command, debug=config.debug, timeout=config.timeout)


__all__ = [
    "HTTPTransport",
    "StdioTransport",
    "Transport",
    "create_transport",
]
