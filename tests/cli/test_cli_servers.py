"""Tests for ``mcpt mock``, ``mcpt proxy`` and ``mcpt guard``."""

from __future__ import annotations

import json
import sys
from pathlib import Path
from typing import Any

import pytest
from click.testing import CliRunner

from mcpt.cli import main

_INITIALIZE = json.dumps(
    {
        "jsonrpc": "2.0",
        "id": 1,
        "method": "initialize",
        "params": {"protocolVersion": "2024-11-05", "capabilities": {}, "clientInfo": {"name": "t", "version": "0"}},
    }
)
_INITIALIZED = json.dumps({"jsonrpc": "2.0", "method": "notifications/initialized"})


def _request(request_id: int, method: str, params: dict[str, Any] | None = None) -> str:
    message: dict[str, Any] = {"jsonrpc": "2.0", "id": request_id, "method": method}
    if params is not None:
        message["params"] = params
    return json.dumps(message)


def _responses(output: str) -> list[dict[str, Any]]:
    return [json.loads(line) for line in output.splitlines() if line.startswith('{"jsonrpc"')]


@pytest.fixture(autouse=True)
def log_dir(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    path = tmp_path / "logs"
    monkeypatch.setenv("MCPT_LOG_DIR", str(path))
    return path


class TestMockCommand:
    def test_serves_a_session(self, log_dir: Path) -> None:
        session = "\n".join(
            [
                _INITIALIZE,
                _INITIALIZED,
                _request(2, "tools/call", {"name": "hello", "arguments": {}}),
                _request(3, "prompts/get", {"name": "greet", "arguments": {"who": "Ada"}}),
                _request(4, "resources/read", {"uri": "mem://motd"}),
            ]
        )

        result = CliRunner().invoke(
            main,
            [
                "mock",
                "--tool", "hello", "Says hello",
                "--prompt", "greet", "Greets", "Hi {{who}}",
                "--resource", "mem://motd", "Message of the day", "be kind",
            ],
            input=session + "\n",
        )

        assert result.exit_code == 0, result.output
        init, call, prompt, resource = _responses(result.output)
        assert init["result"]["capabilities"] == {"tools": {}, "prompts": {}, "resources": {}}
        assert call["result"]["content"][0]["text"] == "hello i am hello mock tool and i confirm it's working"
        assert prompt["result"]["messages"][0]["content"]["text"] == "Hi Ada"
        assert resource["result"]["contents"][0]["text"] == "be kind"

        log_text = (log_dir / "mock.log").read_text()
        assert "Starting mock server with 1 tools, 1 prompts, and 1 resources" in log_text
        assert "Client disconnected (EOF)" in log_text

    def test_requires_a_registration(self) -> None:
        result = CliRunner().invoke(main, ["mock"], input="")
        assert result.exit_code == 2
        assert "register at least one" in result.output

    def test_malformed_input_exits_1(self) -> None:
        result = CliRunner().invoke(main, ["mock", "--tool", "hello", "Says hello"], input="{not json}\n")
        assert result.exit_code == 1
        assert "Server error" in result.output


class TestProxyCommand:
    def test_serves_manifest_tools(self, tmp_path: Path, make_script) -> None:
        make_script("add.sh", "echo $((a + b))")
        manifest = tmp_path / "tools.yaml"
        manifest.write_text(
            "tools:\n"
            "  add:\n"
            "    description: Adds two numbers\n"
            '    parameters: "a:int,b:int"\n'
            "    script: add.sh\n"
            "  greet:\n"
            '    parameters: "name:string"\n'
            "    command: 'echo \"Hello, $name\"'\n"
        )
        session = "\n".join(
            [
                _INITIALIZE,
                _INITIALIZED,
                _request(2, "tools/list"),
                _request(3, "tools/call", {"name": "add", "arguments": {"a": 3, "b": 4}}),
                _request(4, "tools/call", {"name": "greet", "arguments": {"name": "Ada"}}),
            ]
        )

        result = CliRunner().invoke(main, ["proxy", str(manifest)], input=session + "\n")

        assert result.exit_code == 0, result.output
        init, listing, add, greet = _responses(result.output)
        assert init["result"]["capabilities"] == {"tools": {}}
        assert [t["name"] for t in listing["result"]["tools"]] == ["add", "greet"]
        assert add["result"]["content"][0]["text"] == "7\n"
        assert greet["result"]["content"][0]["text"] == "Hello, Ada\n"

    def test_manifest_error(self, tmp_path: Path) -> None:
        manifest = tmp_path / "bad.yaml"
        manifest.write_text("tools: [unclosed")

        result = CliRunner().invoke(main, ["proxy", str(manifest)], input="")

        assert result.exit_code == 1
        assert "Manifest error" in result.output

    def test_registration_error(self, tmp_path: Path) -> None:
        manifest = tmp_path / "tools.yaml"
        manifest.write_text("tools:\n  gone:\n    script: missing.sh\n")

        result = CliRunner().invoke(main, ["proxy", str(manifest)], input="")

        assert result.exit_code == 1
        assert "Registration error" in result.output

    def test_missing_manifest(self, tmp_path: Path) -> None:
        result = CliRunner().invoke(main, ["proxy", str(tmp_path / "absent.yaml")])
        assert result.exit_code == 2


class TestGuardCommand:
    def test_filters_a_mock_server(self, log_dir: Path) -> None:
        session = "\n".join(
            [
                _INITIALIZE,
                _INITIALIZED,
                _request(2, "tools/list"),
                _request(3, "tools/call", {"name": "bye", "arguments": {}}),
                _request(4, "tools/call", {"name": "hello", "arguments": {}}),
            ]
        )

        result = CliRunner().invoke(
            main,
            [
                "guard",
                "--deny", "tools:bye",
                sys.executable, "-m", "mcpt.cli", "mock",
                "--tool", "hello", "Says hello",
                "--tool", "bye", "Says bye",
            ],
            input=session + "\n",
        )

        assert result.exit_code == 0, result.output
        init, listing, blocked, allowed = _responses(result.output)
        assert init["result"]["serverInfo"]["name"] == "mcp-guard-proxy"
        assert [t["name"] for t in listing["result"]["tools"]] == ["hello"]
        assert blocked["error"] == {"code": -32000, "message": "tool not found: bye"}
        assert allowed["result"]["content"][0]["text"] == "hello i am hello mock tool and i confirm it's working"

        log_text = (log_dir / "guard.log").read_text()
        assert "Filtered tool: bye" in log_text
        assert "Blocked call to filtered tool: bye" in log_text
        assert (log_dir / "guard.log").stat().st_mode & 0o777 == 0o600

    def test_upstream_failure_is_an_error_response(self) -> None:
        session = "\n".join([_INITIALIZE, _request(2, "tools/list")])

        result = CliRunner().invoke(main, ["guard", "/nonexistent/mcp-server"], input=session + "\n")

        assert result.exit_code == 0, result.output
        _, listing = _responses(result.output)
        assert listing["error"]["code"] == -32000
        assert "error forwarding request" in listing["error"]["message"]

    def test_requires_a_target(self) -> None:
        result = CliRunner().invoke(main, ["guard", "--allow", "tools:read_*"])
        assert result.exit_code == 2
