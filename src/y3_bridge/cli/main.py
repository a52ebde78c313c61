"""Main CLI entry point for y3-bridge.

Defines the CLI group and registers all subcommands.

Commands:
    config - Configuration display (show, path)
    logs   - Session log viewing (list, show)
    serve  - Run the MCP front end on stdio
    tools  - Show the tool catalogue

Subcommand help:
    y3-bridge COMMAND -h         Show help for a specific command
"""

from __future__ import annotations

__all__ = ["cli", "main"]

import sys

import click

from y3_bridge import __version__

from .commands.config import config
from .commands.logs import logs
from .commands.serve import serve
from .commands.tools import tools


class ReorderedGroup(click.Group):
    """Custom group that shows commands before custom help text."""

    def format_epilog(self, ctx: click.Context, formatter: click.HelpFormatter) -> None:
        """Add extra help after commands section."""
        formatter.write(
            """
Quick Start:
  The editor extension hosts the bridge on 127.0.0.1:25897.
  Register the front end with your MCP client, e.g.:

    {"mcpServers": {"y3-helper": {"command": "y3-bridge", "args": ["serve"]}}}

  y3-bridge tools                  List the game tools
  y3-bridge logs show -n 50        Tail the newest session log
"""
        )


@click.group(
    cls=ReorderedGroup,
    invoke_without_command=True,
    context_settings={"help_option_names": ["-h", "--help"]},
)
@click.option("--version", "-v", is_flag=True, help="Show version")
@click.pass_context
def cli(ctx: click.Context, version: bool) -> None:
    """y3-bridge: MCP bridge for Y3 game sessions."""
    if version:
        click.echo(f"y3-bridge {__version__}")
        sys.exit(0)
    if ctx.invoked_subcommand is None:
        click.echo(ctx.get_help())


# Register commands
cli.add_command(config)
cli.add_command(logs)
cli.add_command(serve)
cli.add_command(tools)


def main() -> None:
    """CLI entry point."""
    cli()
