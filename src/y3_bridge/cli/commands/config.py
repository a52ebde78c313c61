"""Config command group for y3-bridge CLI.

Provides configuration display subcommands.
"""

from __future__ import annotations

__all__ = ["config"]

import json
import sys
from pathlib import Path

import click

from y3_bridge.config import get_config_path, get_system_log_path, load_config_strict
from y3_bridge.exceptions import ConfigurationError

from ..styling import style_error, style_header


def _default_marker() -> str:
    """Return styled (default) marker."""
    return click.style(" (default)", dim=True)


def _load_raw_config(config_path: Path) -> dict[str, object]:
    """Load raw JSON from config file without Pydantic defaults."""
    if not config_path.exists():
        return {}
    with open(config_path, encoding="utf-8") as f:
        result = json.load(f)
    return result if isinstance(result, dict) else {}


@click.group()
def config() -> None:
    """Configuration management commands."""
    pass


@config.command("show")
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
@click.option(
    "--config",
    "config_path",
    type=click.Path(dir_okay=False, path_type=Path),
    help="Config file (default: app config dir)",
)
def config_show(as_json: bool, config_path: Path | None) -> None:
    """Display the effective configuration.

    Values marked (default) are not in the config file.
    """
    config_file_path = config_path or get_config_path()

    try:
        loaded_config = load_config_strict(config_file_path)
    except ConfigurationError as e:
        click.echo(style_error(str(e)), err=True)
        sys.exit(1)
    raw_config = _load_raw_config(config_file_path)

    if as_json:
        config_dict = loaded_config.model_dump(mode="json")
        config_dict["_computed"] = {
            "config_file": str(config_file_path),
            "system_log": str(get_system_log_path(loaded_config)),
        }
        click.echo(json.dumps(config_dict, indent=2))
        return

    click.echo(f"\ny3-bridge configuration ({config_file_path}):\n")

    sections = {
        "Bridge": ["host", "port", "call_timeout_seconds", "connect_timeout_seconds"],
        "Session": [
            "monitor_interval_seconds",
            "launch_timeout_seconds",
            "restart_timeout_seconds",
            "capture_window_seconds",
            "stop_grace_seconds",
        ],
        "Logging": ["log_dir", "max_log_files"],
        "Protocol": ["protocol_version", "server_name", "server_version"],
    }
    values = loaded_config.model_dump()
    for title, keys in sections.items():
        click.echo(style_header(title))
        for key in keys:
            marker = "" if key in raw_config else _default_marker()
            click.echo(f"  {key}: {values[key]}{marker}")
        if title == "Logging":
            click.echo(f"  system log: {get_system_log_path(loaded_config)}")
        click.echo()


@config.command("path")
def config_path_cmd() -> None:
    """Show the config file path."""
    path = get_config_path()
    click.echo(str(path))
    if not path.exists():
        click.echo(click.style("(file does not exist, defaults in use)", dim=True), err=True)
