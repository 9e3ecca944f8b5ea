"""Immutable configuration values threaded into transports and responders."""

from __future__ import annotations

import os
from enum import Enum
from pathlib import Path

from pydantic import BaseModel, Field, model_validator

DEBUG_ENV = "MCP_DEBUG"
LOG_DIR_ENV = "MCPT_LOG_DIR"

_HTTP_PREFIXES = ("http://", "https://")


class TransportKind(str, Enum):
    """How the client reaches an MCP server."""

    STDIO = "stdio"
    HTTP = "http"


def debug_from_env() -> bool:
    return os.environ.get(DEBUG_ENV) == "1"


class ClientConfig(BaseModel):
    """Resolved settings for one client session.

    The transport kind is decided once, when the config is built; the
    transports themselves never inspect the target string.
    """

    model_config = {"frozen": True}

    kind: TransportKind = TransportKind.STDIO
    command: tuple[str, ...] = ()
    url: str | None = None
    debug: bool = Field(default_factory=debug_from_env)
    timeout: float = Field(default=1.0, description="Grace period for a stdio child to exit.")

    @model_validator(mode="after")
    def _validate_target(self) -> ClientConfig:
        if self.kind is TransportKind.HTTP and not self.url:
            msg = "http transport requires 'url'"
            raise ValueError(msg)
        return self

    @classmethod
    def from_target(cls, target: list[str] | tuple[str, ...], *, debug: bool | None = None) -> ClientConfig:
        """Build a config from CLI positional arguments.

        A single ``http://`` or ``https://`` argument selects the HTTP
        transport; anything else is treated as a command line to spawn.
        """
        extra = {} if debug is None else {"debug": debug}
        if len(target) == 1 and target[0].startswith(_HTTP_PREFIXES):
            return cls(kind=TransportKind.HTTP, url=target[0], **extra)
        return cls(kind=TransportKind.STDIO, command=tuple(target), **extra)


class ServerConfig(BaseModel):
    """Settings for the stdio responders."""

    model_config = {"frozen": True}

    log_dir: Path = Field(
        default_factory=lambda: Path(os.environ.get(LOG_DIR_ENV) or Path.home() / ".mcpt" / "logs")
    )

    def log_path(self, name: str) -> Path:
        return self.log_dir / f"{name}.log"
