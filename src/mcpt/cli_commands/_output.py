"""Shared CLI output formatters."""

from __future__ import annotations

import json
import logging
from typing import Any

from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

console = Console()
# Servers speak JSON-RPC on stdout, so diagnostics always go to stderr.
err_console = Console(stderr=True)


def configure_logging(*, debug: bool = False) -> None:
    """Route log records to stderr through rich."""
    logging.basicConfig(
        level=logging.DEBUG if debug else logging.WARNING,
        format="%(message)s",
        handlers=[RichHandler(console=err_console, show_path=False)],
        force=True,
    )


def print_json(data: Any) -> None:
    console.print_json(json.dumps(data, default=str))


def print_tools_table(tools: list[dict[str, Any]]) -> None:
    """Pretty-print ``tools/list`` entries with their parameter names."""
    table = Table(title="Tools")
    table.add_column("Name", style="cyan")
    table.add_column("Parameters")
    table.add_column("Description")

    for tool in tools:
        schema = tool.get("inputSchema") or {}
        properties = schema.get("properties") or {}
        required = set(schema.get("required") or [])
        params = ", ".join(
            f"{name}:{(spec or {}).get('type', 'any')}" + ("" if name in required else "?")
            for name, spec in properties.items()
        )
        table.add_row(tool.get("name", "?"), params, _truncate(tool.get("description", "")))

    console.print(table)


def print_resources_table(resources: list[dict[str, Any]]) -> None:
    table = Table(title="Resources")
    table.add_column("URI", style="cyan")
    table.add_column("MIME type")
    table.add_column("Description")

    for resource in resources:
        table.add_row(
            resource.get("uri", "?"),
            resource.get("mimeType", ""),
            _truncate(resource.get("description", "")),
        )

    console.print(table)


def print_prompts_table(prompts: list[dict[str, Any]]) -> None:
    table = Table(title="Prompts")
    table.add_column("Name", style="cyan")
    table.add_column("Arguments")
    table.add_column("Description")

    for prompt in prompts:
        args = ", ".join(str(a.get("name", "?")) for a in prompt.get("arguments") or [])
        table.add_row(prompt.get("name", "?"), args, _truncate(prompt.get("description", "")))

    console.print(table)


def print_content(result: dict[str, Any]) -> None:
    """Print the text parts of a ``tools/call``, ``resources/read`` or ``prompts/get`` result."""
    texts: list[str] = []
    for item in result.get("content") or []:
        if item.get("type") == "text":
            texts.append(str(item.get("text", "")))
    for item in result.get("contents") or []:
        if "text" in item:
            texts.append(str(item["text"]))
    for message in result.get("messages") or []:
        content = message.get("content") or {}
        if content.get("type") == "text":
            texts.append(f"[{message.get('role', '?')}] {content.get('text', '')}")

    if not texts:
        print_json(result)
        return
    for text in texts:
        console.print(text, markup=False, highlight=False)


def _truncate(text: str, max_len: int = 80) -> str:
    if len(text) <= max_len:
        return text
    return text[: max_len - 3] + "..."
