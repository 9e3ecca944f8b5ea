"""ProxyServer — exposes shell scripts and inline commands as MCP tools.

Tool arguments reach the script as environment variables (``NAME=value``);
whatever the script prints on stdout becomes the tool result.  The script's
stderr goes to the server's own stderr and only a non-zero exit status
counts as a failure.
"""

from __future__ import annotations

import asyncio
import logging
import os
import shlex
import shutil
from pathlib import Path
from typing import TYPE_CHECKING, Any

from pydantic import model_validator

from mcpt.errors import InvalidParamsError, NotFoundError, ToolExecutionError, ToolRegistrationError
from mcpt.protocol.models import Parameter, ParameterType, Tool, normalize_parameter_type, render_value
from mcpt.server.dispatch import Responder, require_str
from mcpt.utils.telemetry import ATTR_EXIT_CODE, ATTR_TOOL_NAME, get_tracer

if TYPE_CHECKING:
    from mcpt.server.logsink import ExchangeLog

logger = logging.getLogger(__name__)
_tracer = get_tracer(__name__)

_SUPPORTED_TYPES = ", ".join(t.value for t in ParameterType)


def parse_parameters(spec: str) -> list[Parameter]:
    """Parse ``"name:type,name:type"`` into parameters.

    Type names are normalized first, so ``a:integer`` is accepted as ``int``.

    Raises:
        ToolRegistrationError: On a malformed entry, an empty name, or an
            unsupported type.
    """
    if not spec.strip():
        return []

    parameters: list[Parameter] = []
    for entry in spec.split(","):
        name, sep, type_name = entry.strip().partition(":")
        if not sep:
            msg = f"invalid parameter format: {entry.strip()!r}, expected name:type"
            raise ToolRegistrationError(msg)
        name = name.strip()
        if not name:
            msg = "parameter name cannot be empty"
            raise ToolRegistrationError(msg)
        try:
            param_type = ParameterType(normalize_parameter_type(type_name))
        except ValueError:
            msg = f"invalid parameter type: {type_name.strip()!r}, supported types: {_SUPPORTED_TYPES}"
            raise ToolRegistrationError(msg) from None
        parameters.append(Parameter(name=name, type=param_type))
    return parameters


def validate_script(path: str | Path) -> Path:
    """Resolve *path* and check it is an existing, executable, regular file."""
    resolved = Path(path).expanduser().resolve()
    try:
        info = resolved.stat()
    except OSError as exc:
        raise ToolRegistrationError(f"script not found: {resolved}") from exc
    if resolved.is_dir():
        raise ToolRegistrationError(f"not a script: {resolved} is a directory")
    if info.st_mode & 0o111 == 0:
        raise ToolRegistrationError(f"script is not executable: {resolved}")
    return resolved


def select_shell() -> str:
    """Prefer bash, fall back to the POSIX shell."""
    if Path("/bin/bash").is_file():
        return "/bin/bash"
    return shutil.which("bash") or "/bin/sh"


def build_input_schema(parameters: list[Parameter]) -> dict[str, Any]:
    """JSON-Schema object for *parameters*; every parameter is required."""
    schema: dict[str, Any] = {
        "type": "object",
        "properties": {p.name: {"type": p.type.json_schema_type} for p in parameters},
    }
    if parameters:
        schema["required"] = [p.name for p in parameters]
    return schema


class ProxyTool(Tool):
    """A registered tool backed by a script file or an inline shell command."""

    script_path: Path | None = None
    command: str | None = None

    @model_validator(mode="after")
    def _script_xor_command(self) -> ProxyTool:
        if (self.script_path is None) == (self.command is None):
            msg = "exactly one of 'script_path' or 'command' is required"
            raise ValueError(msg)
        return self

    @property
    def target(self) -> str:
        return str(self.script_path) if self.script_path is not None else self.command or ""


class ProxyServer(Responder):
    """Serves registered proxy tools over the stdio dispatch loop.

    Usage::

        with ExchangeLog.open(path) as log:
            server = ProxyServer(log)
            server.add_tool("add", "Adds two numbers", "a:int,b:int", script="./add.sh")
            await server.serve(sys.stdin, sys.stdout)
    """

    server_name = "mcp-proxy-server"
    server_version = "1.0.0"

    def __init__(self, log: ExchangeLog) -> None:
        super().__init__(log)
        self._tools: dict[str, ProxyTool] = {}

    @property
    def tools(self) -> dict[str, ProxyTool]:
        return dict(self._tools)

    def add_tool(
        self,
        name: str,
        description: str,
        params: str = "",
        *,
        script: str | Path | None = None,
        command: str | None = None,
    ) -> ProxyTool:
        """Validate and register a tool.

        Raises:
            ToolRegistrationError: If the parameter spec is invalid, the script
                fails validation, or not exactly one of *script*/*command* is
                given.
        """
        if (script is None) == (command is None):
            msg = f"tool {name!r}: exactly one of script or command is required"
            raise ToolRegistrationError(msg)

        parameters = parse_parameters(params)
        if command is not None:
            tool = ProxyTool(name=name, description=description, parameters=parameters, command=command)
        else:
            tool = ProxyTool(
                name=name,
                description=description,
                parameters=parameters,
                script_path=validate_script(script),  # type: ignore[arg-type]
            )
        self._tools[name] = tool
        logger.info("Registered proxy tool %s (%s)", name, tool.target)
        return tool

    def registered_counts(self) -> dict[str, int]:
        return {"tools": len(self._tools)}

    async def execute_tool(self, name: str, arguments: dict[str, Any]) -> str:
        """Run the tool's script or command and return its stdout."""
        tool = self._tools.get(name)
        if tool is None:
            raise NotFoundError("tool", name)

        if tool.script_path is not None:
            try:
                script = validate_script(tool.script_path)
            except ToolRegistrationError as exc:
                raise ToolExecutionError(name, str(exc)) from exc
            shell_input = shlex.quote(str(script))
        else:
            shell_input = tool.command or ""

        env = dict(os.environ)
        env.update({key: render_value(value) for key, value in arguments.items()})

        with _tracer.start_as_current_span("mcpt.proxy.execute") as span:
            span.set_attribute(ATTR_TOOL_NAME, name)
            try:
                proc = await asyncio.create_subprocess_exec(
                    select_shell(),
                    "-c",
                    shell_input,
                    stdin=asyncio.subprocess.DEVNULL,
                    stdout=asyncio.subprocess.PIPE,
                    env=env,
                )
                stdout, _ = await proc.communicate()
            except (OSError, ValueError) as exc:
                raise ToolExecutionError(name, str(exc)) from exc

            span.set_attribute(ATTR_EXIT_CODE, proc.returncode or 0)
            if proc.returncode != 0:
                raise ToolExecutionError(name, f"exit status {proc.returncode}")

        return stdout.decode(errors="replace")

    async def handle_tools_list(self, params: dict[str, Any]) -> dict[str, Any]:
        return {
            "tools": [
                {
                    "name": tool.name,
                    "description": tool.description,
                    "inputSchema": build_input_schema(tool.parameters),
                }
                for tool in self._tools.values()
            ]
        }

    async def handle_tools_call(self, params: dict[str, Any]) -> dict[str, Any]:
        name = require_str(params, "name")
        if name not in self._tools:
            raise NotFoundError("tool", name)
        if "arguments" not in params:
            msg = "missing 'arguments' parameter"
            raise InvalidParamsError(msg)
        arguments = params["arguments"]
        if not isinstance(arguments, dict):
            msg = "'arguments' parameter must be an object"
            raise InvalidParamsError(msg)

        self._log.log_json("Tool input", arguments)
        output = await self.execute_tool(name, arguments)
        self._log.log(f"Script output: {output}")
        return {"content": [{"type": "text", "text": output}]}
