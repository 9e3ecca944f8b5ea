"""Client commands — ``mcpt tools``, ``call``, ``resources``, ``read-resource``,
``prompts`` and ``get-prompt``.

Every command takes ``TARGET...``: either the server command line to spawn
(``mcpt tools npx -y @modelcontextprotocol/server-everything``) or a single
``http://``/``https://`` base URL.
"""

from __future__ import annotations

import asyncio
import json
import sys
from typing import TYPE_CHECKING, Any

import click

from mcpt.cli_commands._output import (
    console,
    print_content,
    print_json,
    print_prompts_table,
    print_resources_table,
    print_tools_table,
)

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable

    from mcpt.client import MCPClient

_PASSTHROUGH = {"ignore_unknown_options": True, "allow_interspersed_args": False}

_target_argument = click.argument("target", nargs=-1, required=True, type=click.UNPROCESSED)
_format_option = click.option(
    "--format",
    "-f",
    "output_format",
    type=click.Choice(["table", "json"]),
    default="table",
    help="Output format.",
)
_params_option = click.option("--params", "-p", default="{}", help="Arguments as a JSON object.")


def _execute(target: tuple[str, ...], call: Callable[[MCPClient], Awaitable[dict[str, Any]]]) -> dict[str, Any]:
    """Run one client call against *target*, exiting 1 on any bridge error."""
    from mcpt.client import MCPClient
    from mcpt.config import ClientConfig
    from mcpt.errors import MCPError

    ctx = click.get_current_context(silent=True)
    debug = (ctx.obj or {}).get("debug") if ctx is not None else None

    try:
        client = MCPClient.from_config(ClientConfig.from_target(list(target), debug=debug))
        return asyncio.run(call(client))
    except (MCPError, ValueError) as exc:
        console.print(f"[red]Error:[/red] {exc}", highlight=False)
        sys.exit(1)


def _parse_params(raw: str) -> dict[str, Any]:
    try:
        params = json.loads(raw)
    except json.JSONDecodeError as exc:
        raise click.BadParameter(f"invalid JSON: {exc}", param_hint="--params") from exc
    if not isinstance(params, dict):
        raise click.BadParameter("must be a JSON object", param_hint="--params")
    return params


@click.command("tools", context_settings=_PASSTHROUGH)
@_format_option
@_target_argument
def tools_cmd(output_format: str, target: tuple[str, ...]) -> None:
    """List the tools a server exposes."""
    result = _execute(target, lambda client: client.list_tools())
    if output_format == "json":
        print_json(result)
    elif result.get("tools"):
        print_tools_table(result["tools"])
    else:
        console.print("[yellow]No tools available.[/yellow]")


@click.command("call", context_settings=_PASSTHROUGH)
@_format_option
@_params_option
@click.argument("name")
@_target_argument
def call_cmd(output_format: str, params: str, name: str, target: tuple[str, ...]) -> None:
    """Call tool NAME on the server."""
    arguments = _parse_params(params)
    result = _execute(target, lambda client: client.call_tool(name, arguments))
    if output_format == "json":
        print_json(result)
    else:
        print_content(result)


@click.command("resources", context_settings=_PASSTHROUGH)
@_format_option
@_target_argument
def resources_cmd(output_format: str, target: tuple[str, ...]) -> None:
    """List the resources a server exposes."""
    result = _execute(target, lambda client: client.list_resources())
    if output_format == "json":
        print_json(result)
    elif result.get("resources"):
        print_resources_table(result["resources"])
    else:
        console.print("[yellow]No resources available.[/yellow]")


@click.command("read-resource", context_settings=_PASSTHROUGH)
@_format_option
@click.argument("uri")
@_target_argument
def read_resource_cmd(output_format: str, uri: str, target: tuple[str, ...]) -> None:
    """Read resource URI from the server."""
    result = _execute(target, lambda client: client.read_resource(uri))
    if output_format == "json":
        print_json(result)
    else:
        print_content(result)


@click.command("prompts", context_settings=_PASSTHROUGH)
@_format_option
@_target_argument
def prompts_cmd(output_format: str, target: tuple[str, ...]) -> None:
    """List the prompts a server exposes."""
    result = _execute(target, lambda client: client.list_prompts())
    if output_format == "json":
        print_json(result)
    elif result.get("prompts"):
        print_prompts_table(result["prompts"])
    else:
        console.print("[yellow]No prompts available.[/yellow]")


@click.command("get-prompt", context_settings=_PASSTHROUGH)
@_format_option
@_params_option
@click.argument("name")
@_target_argument
def get_prompt_cmd(output_format: str, params: str, name: str, target: tuple[str, ...]) -> None:
    """Render prompt NAME with the given arguments."""
    arguments = _parse_params(params)
    result = _execute(target, lambda client: client.get_prompt(name, arguments))
    if output_format == "json":
        print_json(result)
    else:
        print_content(result)
