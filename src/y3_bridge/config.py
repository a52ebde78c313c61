"""Bridge configuration for y3-bridge.

Defines the configuration model shared by the host (session side) and the
front end (stdio side). Components receive a BridgeConfig at construction
and never read process-wide state themselves.

Example usage:
    # Load from config file (defaults if not exists)
    config = load_config()

    # Save configuration
    save_config(config)
"""

from __future__ import annotations

__all__ = [
    "BridgeConfig",
    "get_config_path",
    "get_system_log_path",
    "load_config",
    "load_config_strict",
    "save_config",
]

import json
import logging
from pathlib import Path

import click
from pydantic import BaseModel, Field, ValidationError

from y3_bridge import __version__
from y3_bridge.constants import (
    APP_NAME,
    DEFAULT_BRIDGE_HOST,
    DEFAULT_BRIDGE_PORT,
    DEFAULT_CALL_TIMEOUT_SECONDS,
    DEFAULT_CAPTURE_WINDOW_SECONDS,
    DEFAULT_CONNECT_TIMEOUT_SECONDS,
    DEFAULT_LAUNCH_TIMEOUT_SECONDS,
    DEFAULT_LOG_DIR,
    DEFAULT_MAX_LOG_FILES,
    DEFAULT_MONITOR_INTERVAL_SECONDS,
    DEFAULT_RESTART_TIMEOUT_SECONDS,
    DEFAULT_STOP_GRACE_SECONDS,
    MCP_PROTOCOL_VERSION,
    SERVER_NAME,
)
from y3_bridge.exceptions import ConfigurationError

_logger = logging.getLogger(f"{APP_NAME}.config")


class BridgeConfig(BaseModel):
    """Bridge configuration.

    Attributes:
        host: Address the host listens on and the front end connects to.
        port: TCP port of the bridge.
        log_dir: Directory holding one log file per game session.
        max_log_files: Session log files retained after rotation.
        monitor_interval_seconds: Connection monitor tick.
        launch_timeout_seconds: Attach wait after launching the game.
        restart_timeout_seconds: Reattach wait after quick restart.
        capture_window_seconds: Output collection window for commands.
        stop_grace_seconds: Wait after the in-band quit command.
        call_timeout_seconds: Deadline for each correlated bridge call.
        connect_timeout_seconds: Deadline for opening the bridge connection.
        protocol_version: Protocol revision announced to the front end.
        server_name: Server name announced to the front end.
        server_version: Server version announced to the front end.
    """

    host: str = Field(default=DEFAULT_BRIDGE_HOST, min_length=1)
    port: int = Field(default=DEFAULT_BRIDGE_PORT, ge=1024, le=65535)
    log_dir: Path = Field(default=DEFAULT_LOG_DIR)
    max_log_files: int = Field(default=DEFAULT_MAX_LOG_FILES, ge=1)
    monitor_interval_seconds: float = Field(default=DEFAULT_MONITOR_INTERVAL_SECONDS, gt=0)
    launch_timeout_seconds: float = Field(default=DEFAULT_LAUNCH_TIMEOUT_SECONDS, gt=0)
    restart_timeout_seconds: float = Field(default=DEFAULT_RESTART_TIMEOUT_SECONDS, gt=0)
    capture_window_seconds: float = Field(default=DEFAULT_CAPTURE_WINDOW_SECONDS, ge=0)
    stop_grace_seconds: float = Field(default=DEFAULT_STOP_GRACE_SECONDS, ge=0)
    call_timeout_seconds: float = Field(default=DEFAULT_CALL_TIMEOUT_SECONDS, gt=0)
    connect_timeout_seconds: float = Field(default=DEFAULT_CONNECT_TIMEOUT_SECONDS, gt=0)
    protocol_version: str = MCP_PROTOCOL_VERSION
    server_name: str = SERVER_NAME
    server_version: str = __version__

    model_config = {"extra": "ignore"}  # Ignore unknown fields for forward compat


def get_config_path() -> Path:
    """Get the full path to the config file.

    Uses click.get_app_dir() which returns:
    - macOS: ~/Library/Application Support/y3-bridge
    - Linux: ~/.config/y3-bridge (XDG compliant)
    - Windows: C:\\Users\\<user>\\AppData\\Roaming\\y3-bridge

    Returns:
        Path to config.json in the config directory.
    """
    return Path(click.get_app_dir(APP_NAME)) / "config.json"


def get_system_log_path(config: BridgeConfig) -> Path:
    """Get full path to the bridge's own system log.

    Lives beside (not inside) the session log directory so session
    rotation never touches it.

    Args:
        config: Bridge configuration.

    Returns:
        Path: Full path to system.jsonl.
    """
    return Path(config.log_dir).expanduser().parent / "system.jsonl"


def load_config(path: Path | None = None) -> BridgeConfig:
    """Load configuration from file.

    If the config file doesn't exist, returns default configuration.
    Invalid JSON or validation errors return default config with a warning.

    Args:
        path: Config file to read. Defaults to get_config_path().

    Returns:
        BridgeConfig: Loaded or default configuration.
    """
    config_path = path or get_config_path()

    if not config_path.exists():
        return BridgeConfig()

    try:
        with config_path.open(encoding="utf-8") as f:
            data = json.load(f)
        return BridgeConfig.model_validate(data)
    except json.JSONDecodeError as e:
        _logger.warning(
            {
                "event": "config_invalid_json",
                "message": f"Invalid JSON in config, using defaults: {e}",
                "error_type": type(e).__name__,
                "error_message": str(e),
                "details": {"config_path": str(config_path)},
            }
        )
        return BridgeConfig()
    except ValidationError as e:
        _logger.warning(
            {
                "event": "config_validation_failed",
                "message": f"Invalid config values, using defaults: {e}",
                "error_type": type(e).__name__,
                "error_message": str(e),
                "details": {"config_path": str(config_path)},
            }
        )
        return BridgeConfig()
    except OSError as e:
        _logger.warning(
            {
                "event": "config_read_failed",
                "message": f"Failed to read config file, using defaults: {e}",
                "error_type": type(e).__name__,
                "error_message": str(e),
                "details": {"config_path": str(config_path)},
            }
        )
        return BridgeConfig()


def load_config_strict(path: Path | None = None) -> BridgeConfig:
    """Load configuration, raising on a broken file.

    Unlike load_config(), this function raises ConfigurationError for
    invalid JSON, unreadable files, or validation errors. A missing file
    still yields defaults.

    Args:
        path: Config file to read. Defaults to get_config_path().

    Returns:
        BridgeConfig: Validated configuration.

    Raises:
        ConfigurationError: If the file is unreadable or invalid.
    """
    config_path = path or get_config_path()

    if not config_path.exists():
        return BridgeConfig()

    try:
        with config_path.open(encoding="utf-8") as f:
            data = json.load(f)
    except json.JSONDecodeError as e:
        raise ConfigurationError(f"Invalid JSON in {config_path}: {e}") from e
    except OSError as e:
        raise ConfigurationError(f"Cannot read {config_path}: {e}") from e

    try:
        return BridgeConfig.model_validate(data)
    except ValidationError as e:
        raise ConfigurationError(f"Invalid config in {config_path}: {e}") from e


def save_config(config: BridgeConfig, path: Path | None = None) -> Path:
    """Save configuration to file.

    Creates the config directory if it doesn't exist.

    Args:
        config: Configuration to save.
        path: Destination. Defaults to get_config_path().

    Returns:
        Path the configuration was written to.

    Raises:
        OSError: If unable to write config file.
    """
    config_path = path or get_config_path()
    config_path.parent.mkdir(parents=True, exist_ok=True)

    with config_path.open("w", encoding="utf-8") as f:
        json.dump(config.model_dump(mode="json"), f, indent=2)
        f.write("\n")  # Trailing newline

    return config_path
