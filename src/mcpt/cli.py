"""mcpt CLI entrypoint."""

from __future__ import annotations

import click

from mcpt import __version__
from mcpt.cli_commands._output import configure_logging, err_console


@click.group()
@click.version_option(version=__version__, prog_name="mcpt")
@click.option("--verbose", "-v", is_flag=True, help="Log protocol traffic to stderr.")
@click.option("--telemetry", is_flag=True, help="Export trace spans to stderr (needs the otel extra).")
@click.pass_context
def main(ctx: click.Context, verbose: bool, telemetry: bool) -> None:
    """Talk to MCP servers, or serve mock and proxy ones."""
    from mcpt.config import debug_from_env

    debug = verbose or debug_from_env()
    ctx.ensure_object(dict)["debug"] = debug
    configure_logging(debug=debug)

    if telemetry:
        from mcpt.utils.telemetry import configure_telemetry

        try:
            configure_telemetry()
        except ImportError as exc:
            err_console.print(f"[yellow]Telemetry disabled:[/yellow] {exc}", highlight=False)


# Register subcommands
from mcpt.cli_commands import register_commands  # noqa: E402

register_commands(main)

if __name__ == "__main__":
    main()
