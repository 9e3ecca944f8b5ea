"""Shared fixtures."""

from __future__ import annotations

import io
from collections.abc import Callable
from pathlib import Path

import pytest

from mcpt.server.logsink import ExchangeLog


@pytest.fixture
def log_buffer() -> io.StringIO:
    return io.StringIO()


@pytest.fixture
def exchange_log(log_buffer: io.StringIO) -> ExchangeLog:
    return ExchangeLog(log_buffer)


@pytest.fixture
def make_script(tmp_path: Path) -> Callable[..., Path]:
    """Write an executable shell script under ``tmp_path`` and return its path."""

    def _make(name: str, body: str, mode: int = 0o755) -> Path:
        path = tmp_path / name
        path.write_text("#!/bin/sh\n" + body + "\n")
        path.chmod(mode)
        return path

    return _make
