"""Tests for proxy manifest loading."""

from __future__ import annotations

from pathlib import Path

import pytest

from mcpt.errors import ManifestError, ToolRegistrationError
from mcpt.server.logsink import ExchangeLog
from mcpt.server.manifest import load_manifest
from mcpt.server.proxy import ProxyServer


def _write(tmp_path: Path, text: str) -> Path:
    path = tmp_path / "tools.yaml"
    path.write_text(text)
    return path


class TestLoadManifest:
    def test_valid_manifest(self, tmp_path: Path) -> None:
        manifest = load_manifest(
            _write(
                tmp_path,
                """
tools:
  add:
    description: Adds two numbers
    parameters: "a:int,b:int"
    script: ./add.sh
  greet:
    command: 'echo "Hello, $name"'
""",
            )
        )
        assert set(manifest.tools) == {"add", "greet"}
        assert manifest.tools["add"].script == "./add.sh"
        assert manifest.tools["greet"].parameters == ""
        assert manifest.base_dir == tmp_path.resolve()

    def test_missing_file(self, tmp_path: Path) -> None:
        with pytest.raises(ManifestError, match="Cannot read"):
            load_manifest(tmp_path / "absent.yaml")

    def test_yaml_error(self, tmp_path: Path) -> None:
        with pytest.raises(ManifestError, match="YAML parse error"):
            load_manifest(_write(tmp_path, "tools: [unclosed"))

    def test_not_a_mapping(self, tmp_path: Path) -> None:
        with pytest.raises(ManifestError, match="must be a mapping"):
            load_manifest(_write(tmp_path, "- just\n- a list\n"))

    def test_script_xor_command(self, tmp_path: Path) -> None:
        with pytest.raises(ManifestError, match="exactly one"):
            load_manifest(_write(tmp_path, "tools:\n  t:\n    script: a.sh\n    command: 'true'\n"))


class TestRegister:
    async def test_relative_script_resolves_against_manifest_dir(
        self, tmp_path: Path, exchange_log: ExchangeLog, make_script, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        make_script("add.sh", "echo $((a + b))")
        manifest = load_manifest(
            _write(tmp_path, 'tools:\n  add:\n    parameters: "a:int,b:int"\n    script: add.sh\n')
        )
        monkeypatch.chdir("/")

        server = ProxyServer(exchange_log)
        manifest.register(server)

        assert server.tools["add"].script_path == (tmp_path / "add.sh").resolve()
        assert await server.execute_tool("add", {"a": 3, "b": 4}) == "7\n"

    def test_registration_errors_propagate(self, tmp_path: Path, exchange_log: ExchangeLog) -> None:
        manifest = load_manifest(_write(tmp_path, "tools:\n  gone:\n    script: missing.sh\n"))
        with pytest.raises(ToolRegistrationError, match="script not found"):
            manifest.register(ProxyServer(exchange_log))
