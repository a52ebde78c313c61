"""Tools command for y3-bridge CLI.

Prints the static tool catalogue served by the front end. No bridge
connection required.
"""

from __future__ import annotations

__all__ = ["tools"]

import json

import click

from y3_bridge.mcp.tools import build_tools

from ..styling import style_label


@click.command()
@click.option("--json", "as_json", is_flag=True, help="Output tool definitions as JSON")
def tools(as_json: bool) -> None:
    """Show the game tools and their parameters."""
    definitions = build_tools()

    if as_json:
        payload = [tool.model_dump(mode="json", by_alias=True, exclude_none=True) for tool in definitions]
        click.echo(json.dumps(payload, indent=2, ensure_ascii=False))
        return

    click.echo("\n" + style_label("Tools") + f" {len(definitions)}\n")
    for tool in definitions:
        click.echo(f"  {tool.name}")
        click.echo(f"    {tool.description}")
        properties = tool.inputSchema.get("properties", {})
        required = set(tool.inputSchema.get("required", []))
        for name in properties:
            marker = " (required)" if name in required else ""
            click.echo(click.style(f"    - {name}{marker}", dim=True))
        click.echo()
