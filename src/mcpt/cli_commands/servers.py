"""Server commands — ``mcpt mock``, ``mcpt proxy`` and ``mcpt guard`` serve MCP on stdin/stdout."""

from __future__ import annotations

import asyncio
import logging
import sys
from pathlib import Path
from typing import TYPE_CHECKING

import click
from rich.table import Table

from mcpt.cli_commands._output import err_console

if TYPE_CHECKING:
    from mcpt.server.dispatch import Responder
    from mcpt.server.guard import GuardPolicy
    from mcpt.server.proxy import ProxyServer


def _serve(responder: Responder) -> None:
    from mcpt.errors import DecodeError

    # Operators expect the per-request chatter on stderr.
    mcpt_logger = logging.getLogger("mcpt")
    if mcpt_logger.getEffectiveLevel() > logging.INFO:
        mcpt_logger.setLevel(logging.INFO)

    try:
        asyncio.run(responder.serve(sys.stdin, sys.stdout))
    except DecodeError as exc:
        err_console.print(f"[red]Server error:[/red] {exc}", highlight=False)
        sys.exit(1)


@click.command("mock")
@click.option("--tool", "tools", nargs=2, multiple=True, metavar="NAME DESCRIPTION", help="Register a tool.")
@click.option(
    "--prompt",
    "prompts",
    nargs=3,
    multiple=True,
    metavar="NAME DESCRIPTION TEMPLATE",
    help="Register a prompt; the template may use {{arg}} placeholders.",
)
@click.option(
    "--resource",
    "resources",
    nargs=3,
    multiple=True,
    metavar="URI DESCRIPTION CONTENT",
    help="Register a text resource.",
)
def mock_cmd(
    tools: tuple[tuple[str, str], ...],
    prompts: tuple[tuple[str, str, str], ...],
    resources: tuple[tuple[str, str, str], ...],
) -> None:
    """Serve a mock MCP server with canned responses on stdin/stdout."""
    from mcpt.config import ServerConfig
    from mcpt.server.logsink import ExchangeLog
    from mcpt.server.mock import MockServer

    if not (tools or prompts or resources):
        raise click.UsageError("register at least one --tool, --prompt or --resource")

    config = ServerConfig()
    with ExchangeLog.open(config.log_path("mock")) as log:
        server = MockServer(log)
        for name, description in tools:
            server.add_tool(name, description)
        for name, description, template in prompts:
            server.add_prompt(name, description, template)
        for uri, description, content in resources:
            server.add_resource(uri, description, content)
        log.log(
            f"Starting mock server with {len(tools)} tools, {len(prompts)} prompts, "
            f"and {len(resources)} resources"
        )
        _serve(server)


@click.command("proxy")
@click.argument("manifest", type=click.Path(exists=True, dir_okay=False, path_type=Path))
def proxy_cmd(manifest: Path) -> None:
    """Serve the shell tools declared in MANIFEST (YAML) on stdin/stdout."""
    from mcpt.config import ServerConfig
    from mcpt.errors import ManifestError, ToolRegistrationError
    from mcpt.server.logsink import ExchangeLog
    from mcpt.server.manifest import load_manifest
    from mcpt.server.proxy import ProxyServer

    try:
        spec = load_manifest(manifest)
    except ManifestError as exc:
        err_console.print(f"[red]Manifest error:[/red] {exc}", highlight=False)
        sys.exit(1)

    config = ServerConfig()
    with ExchangeLog.open(config.log_path("proxy")) as log:
        server = ProxyServer(log)
        try:
            spec.register(server)
        except ToolRegistrationError as exc:
            err_console.print(f"[red]Registration error:[/red] {exc}", highlight=False)
            sys.exit(1)
        _print_registered(server)
        log.log(f"Starting proxy server with {len(server.tools)} tools")
        _serve(server)


def _print_registered(server: ProxyServer) -> None:
    table = Table(title="Registered proxy tools")
    table.add_column("Name", style="cyan")
    table.add_column("Runs")
    table.add_column("Parameters")

    for tool in server.tools.values():
        kind = "script" if tool.script_path is not None else "command"
        params = ", ".join(f"{p.name}:{p.type.value}" for p in tool.parameters)
        table.add_row(tool.name, f"{kind}: {tool.target}", params)

    err_console.print(table)


@click.command("guard", context_settings={"ignore_unknown_options": True, "allow_interspersed_args": False})
@click.option("--allow", "-a", multiple=True, metavar="[TYPE:]PATTERN,...", help="Only expose matching entries.")
@click.option("--deny", "-d", multiple=True, metavar="[TYPE:]PATTERN,...", help="Hide matching entries.")
@click.argument("target", nargs=-1, required=True, type=click.UNPROCESSED)
def guard_cmd(allow: tuple[str, ...], deny: tuple[str, ...], target: tuple[str, ...]) -> None:
    """Serve TARGET on stdin/stdout with tools, prompts and resources filtered.

    TYPE is one of tools, prompts or resources (default tools); PATTERN may
    use shell-style wildcards.  A deny match wins over an allow match.

    \b
        mcpt guard --allow tools:read_* --deny edit_*,write_* npx -y server-filesystem ~
    """
    from mcpt.config import ClientConfig, ServerConfig
    from mcpt.server.guard import GuardPolicy, GuardServer
    from mcpt.server.logsink import ExchangeLog
    from mcpt.transport import create_transport

    ctx = click.get_current_context()
    debug = (ctx.obj or {}).get("debug")

    try:
        upstream = create_transport(ClientConfig.from_target(list(target), debug=debug))
    except ValueError as exc:
        err_console.print(f"[red]Error:[/red] {exc}", highlight=False)
        sys.exit(1)

    policy = GuardPolicy.from_args(allow, deny)
    _print_policy(policy)
    with ExchangeLog.open(ServerConfig().log_path("guard")) as log:
        log.log(f"Starting guard proxy for: {' '.join(target)}")
        _serve(GuardServer(log, upstream, policy))


def _print_policy(policy: GuardPolicy) -> None:
    from mcpt.server.guard import EntityKind

    table = Table(title="Guard filtering configuration")
    table.add_column("Type", style="cyan")
    table.add_column("Allow")
    table.add_column("Deny")

    for kind in EntityKind:
        allow = policy.allow.get(kind, [])
        deny = policy.deny.get(kind, [])
        if allow or deny:
            table.add_row(kind.value, ", ".join(allow), ", ".join(deny))

    err_console.print(table)
