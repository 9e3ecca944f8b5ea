"""CLI subcommand registration."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    import click


def register_commands(cli: click.Group) -> None:
    """Register all subcommands on the CLI group."""
    from mcpt.cli_commands.client import (
        call_cmd,
        get_prompt_cmd,
        prompts_cmd,
        read_resource_cmd,
        resources_cmd,
        tools_cmd,
    )
    from mcpt.cli_commands.servers import guard_cmd, mock_cmd, proxy_cmd

    cli.add_command(tools_cmd)
    cli.add_command(call_cmd)
    cli.add_command(resources_cmd)
    cli.add_command(read_resource_cmd)
    cli.add_command(prompts_cmd)
    cli.add_command(get_prompt_cmd)
    cli.add_command(mock_cmd)
    cli.add_command(proxy_cmd)
    cli.add_command(guard_cmd)
