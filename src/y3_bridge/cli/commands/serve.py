"""Serve command for y3-bridge CLI.

Runs the MCP front end on stdin/stdout, forwarding tool calls to the
bridge host. stdout is reserved for the protocol; every message from this
command goes to stderr.
"""

from __future__ import annotations

__all__ = ["serve"]

import asyncio
import sys
from pathlib import Path

import click

from y3_bridge.config import load_config_strict
from y3_bridge.exceptions import ConfigurationError, IpcConnectionError
from y3_bridge.log_config import configure_logging
from y3_bridge.mcp.server import run_stdio_server

from ..styling import style_error


@click.command()
@click.option("--host", help="Bridge host address (overrides config)")
@click.option("--port", type=click.IntRange(1024, 65535), help="Bridge TCP port (overrides config)")
@click.option(
    "--config",
    "config_path",
    type=click.Path(dir_okay=False, path_type=Path),
    help="Config file (default: app config dir)",
)
@click.option("--debug", is_flag=True, help="Verbose logging on stderr")
def serve(host: str | None, port: int | None, config_path: Path | None, debug: bool) -> None:
    """Run the MCP server on stdio.

    Connects to the bridge hosted by the editor extension and serves the
    game tools until stdin closes.
    """
    try:
        loaded_config = load_config_strict(config_path)
    except ConfigurationError as e:
        click.echo(style_error(str(e)), err=True)
        sys.exit(1)

    overrides = {key: value for key, value in (("host", host), ("port", port)) if value is not None}
    if overrides:
        loaded_config = loaded_config.model_copy(update=overrides)

    configure_logging(loaded_config, debug=debug)

    try:
        asyncio.run(run_stdio_server(loaded_config))
    except IpcConnectionError as e:
        click.echo(style_error(f"Failed to start MCP server: {e}"), err=True)
        sys.exit(1)
    except KeyboardInterrupt:
        pass
