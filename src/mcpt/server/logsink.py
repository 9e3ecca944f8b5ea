"""ExchangeLog — append-only, timestamped record of a responder's traffic."""

from __future__ import annotations

import json
import logging
import os
from contextlib import contextmanager
from datetime import datetime, timezone
from typing import TYPE_CHECKING, Any, TextIO

if TYPE_CHECKING:
    from collections.abc import Iterator
    from pathlib import Path

logger = logging.getLogger(__name__)


class ExchangeLog:
    """Writes ``[RFC3339] message`` lines, optionally followed by a JSON block.

    The sink is owned by whoever opened it; responders only borrow it::

        with ExchangeLog.open(Path("~/.mcpt/logs/mock.log").expanduser()) as log:
            server = MockServer(log)
            ...
    """

    def __init__(self, sink: TextIO) -> None:
        self._sink = sink

    @classmethod
    @contextmanager
    def open(cls, path: Path) -> Iterator[ExchangeLog]:
        """Open *path* for appending, creating its directory, and close it on exit."""
        path.parent.mkdir(parents=True, exist_ok=True, mode=0o750)
        fd = os.open(path, os.O_WRONLY | os.O_CREAT | os.O_APPEND, 0o600)
        with os.fdopen(fd, "a", encoding="utf-8") as fh:
            logger.info("Logging to %s", path)
            yield cls(fh)

    def log(self, message: str) -> None:
        timestamp = datetime.now(timezone.utc).astimezone().isoformat(timespec="seconds")
        self._sink.write(f"[{timestamp}] {message}\n")
        self._sink.flush()

    def log_json(self, label: str, value: Any) -> None:
        block = json.dumps(value, indent=2, default=str)
        self.log(f"{label}:\n{block}")
