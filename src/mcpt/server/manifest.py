"""Proxy manifests — YAML files declaring the tools a proxy server exposes.

Example::

    tools:
      add:
        description: Adds two numbers
        parameters: "a:int,b:int"
        script: ./add.sh
      greet:
        description: Greets someone
        parameters: "name:string"
        command: 'echo "Hello, $name"'

Relative script paths are resolved against the manifest's directory.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import TYPE_CHECKING, Any

import yaml
from pydantic import BaseModel, Field, ValidationError, model_validator

from mcpt.errors import ManifestError

if TYPE_CHECKING:
    from mcpt.server.proxy import ProxyServer


class ProxyToolSpec(BaseModel):
    """One tool entry of a proxy manifest."""

    description: str = ""
    parameters: str = ""
    script: str | None = None
    command: str | None = None

    @model_validator(mode="after")
    def _script_xor_command(self) -> ProxyToolSpec:
        if (self.script is None) == (self.command is None):
            msg = "exactly one of 'script' or 'command' is required"
            raise ValueError(msg)
        return self


class ProxyManifest(BaseModel):
    """Validated contents of a proxy manifest file."""

    tools: dict[str, ProxyToolSpec] = Field(default_factory=dict)
    base_dir: Path = Field(default_factory=Path.cwd, exclude=True)

    def register(self, server: ProxyServer) -> None:
        """Add every tool to *server*; registration errors propagate."""
        for name, spec in self.tools.items():
            script: Path | None = None
            if spec.script is not None:
                script = Path(os.path.expanduser(spec.script))
                if not script.is_absolute():
                    script = self.base_dir / script
            server.add_tool(name, spec.description, spec.parameters, script=script, command=spec.command)


def load_manifest(path: Path) -> ProxyManifest:
    """Read and validate a proxy manifest.

    Raises:
        ManifestError: On read errors, YAML parse errors, or schema failures.
    """
    try:
        raw = path.read_text(encoding="utf-8")
    except OSError as exc:
        raise ManifestError(f"Cannot read {path}: {exc}") from exc

    try:
        data: Any = yaml.safe_load(raw)
    except yaml.YAMLError as exc:
        raise ManifestError(f"YAML parse error: {exc}") from exc

    if not isinstance(data, dict):
        raise ManifestError("Proxy manifest must be a mapping")

    try:
        return ProxyManifest.model_validate({**data, "base_dir": path.resolve().parent})
    except ValidationError as exc:
        raise ManifestError(str(exc)) from exc
