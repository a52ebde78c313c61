"""Logs command group for y3-bridge CLI.

Reads session log files directly from disk. No running host required.
"""

from __future__ import annotations

__all__ = ["logs"]

import sys
from datetime import datetime
from pathlib import Path

import click

from y3_bridge.config import load_config
from y3_bridge.session.log_store import SessionLog

from ..styling import style_dim, style_error, style_label

_config_option = click.option(
    "--config",
    "config_path",
    type=click.Path(dir_okay=False, path_type=Path),
    help="Config file (default: app config dir)",
)


def _format_size(size: int) -> str:
    """Format a byte count for display."""
    if size < 1024:
        return f"{size} B"
    if size < 1024 * 1024:
        return f"{size / 1024:.1f} KB"
    return f"{size / (1024 * 1024):.1f} MB"


@click.group()
def logs() -> None:
    """Session log viewing commands.

    Each game session writes one log file; the newest five are kept.
    """
    pass


@logs.command("list")
@_config_option
def logs_list(config_path: Path | None) -> None:
    """List session log files, newest first."""
    log_dir = load_config(config_path).log_dir
    files = SessionLog.list_log_files(log_dir)

    if not files:
        click.echo(style_dim(f"No session logs in {log_dir}"))
        return

    click.echo("\n" + style_label("Session logs") + f" {log_dir}\n")
    for path in files:
        try:
            stat = path.stat()
        except OSError:
            continue  # Rotated away since listing
        modified = datetime.fromtimestamp(stat.st_mtime).strftime("%Y-%m-%d %H:%M:%S")
        click.echo(f"  {path.name}")
        click.echo(style_dim(f"    {modified}  {_format_size(stat.st_size)}"))
    click.echo()


@logs.command("show")
@click.option(
    "--lines",
    "-n",
    "limit",
    type=click.IntRange(min=1),
    default=100,
    show_default=True,
    help="Number of lines to show",
)
@_config_option
@click.argument("file", required=False, type=click.Path(dir_okay=False, path_type=Path))
def logs_show(limit: int, config_path: Path | None, file: Path | None) -> None:
    """Print the last lines of a session log.

    FILE defaults to the newest session log. A bare file name is looked up
    in the session log directory.
    """
    log_dir = load_config(config_path).log_dir

    if file is None:
        files = SessionLog.list_log_files(log_dir)
        if not files:
            click.echo(style_dim(f"No session logs in {log_dir}"))
            return
        log_path = files[0]
    elif not file.exists() and not file.is_absolute():
        log_path = Path(log_dir).expanduser() / file
    else:
        log_path = file

    try:
        content = log_path.read_text(encoding="utf-8")
    except OSError as e:
        click.echo(style_error(f"Failed to read log file: {e}"), err=True)
        sys.exit(1)

    lines = [line for line in content.split("\n") if line.strip()]
    for line in lines[-limit:]:
        click.echo(line)
