"""A scriptable fake MCP server for stdio transport tests."""

from __future__ import annotations

import json
import sys
from pathlib import Path

import pytest

_FAKE_SERVER = r'''
import json
import os
import sys
import time

mode, record = sys.argv[1], sys.argv[2]


def log(msg):
    with open(record, "a") as fh:
        fh.write(json.dumps({"pid": os.getpid(), "msg": msg}) + "\n")


def send(obj):
    sys.stdout.write(json.dumps(obj) + "\n")
    sys.stdout.flush()


for line in sys.stdin:
    msg = json.loads(line)
    log(msg)
    method = msg.get("method")
    if method == "initialize":
        if mode == "init-crash":
            sys.stderr.write("boom: cannot start\n")
            sys.stderr.flush()
            sys.exit(2)
        send({
            "jsonrpc": "2.0",
            "id": msg["id"],
            "result": {
                "protocolVersion": msg["params"]["protocolVersion"],
                "capabilities": {},
                "serverInfo": {"name": "fake", "version": "0"},
            },
        })
        continue
    if "id" not in msg:
        continue
    if mode == "rpc-error":
        send({"jsonrpc": "2.0", "id": msg["id"], "error": {"code": -32000, "message": "tool exploded"}})
    elif mode == "garbage":
        sys.stdout.write("this is not json\n")
        sys.stdout.flush()
    elif mode == "silent":
        sys.exit(0)
    else:
        send({"jsonrpc": "2.0", "id": msg["id"], "result": {"method": method, "params": msg.get("params")}})

if mode == "linger":
    time.sleep(30)
if mode == "fail-exit":
    sys.stderr.write("shutdown failed\n")
    sys.exit(3)
'''


class FakeServer:
    """Builds command lines for the fake server and reads back what it saw."""

    def __init__(self, script: Path, record: Path) -> None:
        self.script = script
        self.record = record

    def command(self, mode: str = "echo") -> list[str]:
        return [sys.executable, str(self.script), mode, str(self.record)]

    def received(self) -> list[dict]:
        if not self.record.exists():
            return []
        return [json.loads(line) for line in self.record.read_text().splitlines()]


@pytest.fixture
def fake_server(tmp_path: Path) -> FakeServer:
    script = tmp_path / "fake_server.py"
    script.write_text(_FAKE_SERVER)
    return FakeServer(script, tmp_path / "received.jsonl")
