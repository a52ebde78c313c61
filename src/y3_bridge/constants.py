"""Application-wide constants for y3-bridge.

Constants that define application behavior.
For user-configurable settings per deployment, see config.py.
"""

__all__ = [
    # Application identity
    "APP_NAME",
    "SERVER_NAME",
    "MCP_PROTOCOL_VERSION",
    "JSONRPC_VERSION",
    # Bridge transport
    "DEFAULT_BRIDGE_HOST",
    "DEFAULT_BRIDGE_PORT",
    "DEFAULT_CALL_TIMEOUT_SECONDS",
    "DEFAULT_CONNECT_TIMEOUT_SECONDS",
    "READ_CHUNK_BYTES",
    # Session timing
    "DEFAULT_MONITOR_INTERVAL_SECONDS",
    "DEFAULT_LAUNCH_TIMEOUT_SECONDS",
    "DEFAULT_RESTART_TIMEOUT_SECONDS",
    "DEFAULT_CAPTURE_WINDOW_SECONDS",
    "DEFAULT_STOP_GRACE_SECONDS",
    # Log storage
    "DEFAULT_LOG_DIR",
    "DEFAULT_MAX_LOG_FILES",
    "DEFAULT_LOG_LIMIT",
    "LOG_FILE_SUFFIX",
    # In-band game commands
    "COMMAND_NOTIFICATION",
    "QUICK_RESTART_COMMAND",
    "FORCE_QUIT_LUA",
]

from pathlib import Path

from platformdirs import user_log_dir

# ============================================================================
# Application Identity
# ============================================================================

# Application name used for directory names and logger names
APP_NAME: str = "y3-bridge"

# Name reported to the front end during capability negotiation
SERVER_NAME: str = "y3-helper"

# MCP protocol revision announced in the initialize result
MCP_PROTOCOL_VERSION: str = "2024-11-05"

# Envelope tag required on every front-end request
JSONRPC_VERSION: str = "2.0"

# ============================================================================
# Bridge Transport
# ============================================================================

# TCP rather than a Unix socket so an elevated editor process and an
# unprivileged front end can still reach each other
DEFAULT_BRIDGE_HOST: str = "127.0.0.1"
DEFAULT_BRIDGE_PORT: int = 25897

# Per-request deadline for correlated calls (seconds)
DEFAULT_CALL_TIMEOUT_SECONDS: float = 30.0

# Timeout for establishing the bridge connection (seconds)
DEFAULT_CONNECT_TIMEOUT_SECONDS: float = 5.0

# Bytes requested per read from the underlying stream
READ_CHUNK_BYTES: int = 64 * 1024

# ============================================================================
# Session Timing
# ============================================================================

# Connection monitor tick. The client registry only offers point-in-time
# snapshots, so attach/detach is detected by diffing on this interval.
DEFAULT_MONITOR_INTERVAL_SECONDS: float = 0.5

# How long launch waits for the first client attach (slow machines need it)
DEFAULT_LAUNCH_TIMEOUT_SECONDS: float = 60.0

# How long quick restart waits for the client to come back
DEFAULT_RESTART_TIMEOUT_SECONDS: float = 10.0

# Output collection window after sending a command
DEFAULT_CAPTURE_WINDOW_SECONDS: float = 1.0

# Wait after the in-band quit command before releasing the client
DEFAULT_STOP_GRACE_SECONDS: float = 1.0

# ============================================================================
# Log Storage
# ============================================================================

# Platform-specific log directory:
# - macOS: ~/Library/Logs/y3-bridge/sessions
# - Linux: ~/.local/state/y3-bridge/log/sessions
# - Windows: %LOCALAPPDATA%\y3-bridge\Logs\sessions
DEFAULT_LOG_DIR: Path = Path(user_log_dir(APP_NAME)) / "sessions"

# Session log files retained in the log directory
DEFAULT_MAX_LOG_FILES: int = 5

# Lines returned by get_logs when no limit is given
DEFAULT_LOG_LIMIT: int = 100

LOG_FILE_SUFFIX: str = ".log"

# ============================================================================
# In-band Game Commands
# ============================================================================

# One-way notification method understood by the game console client
COMMAND_NOTIFICATION: str = "command"

# Console command that reloads all scripts without restarting the process
QUICK_RESTART_COMMAND: str = ".rr"

# Forces the local player out of the game
FORCE_QUIT_LUA: str = """
local player = y3.player:get_local()
if player then
    GameAPI.role_force_quit(player.handle, 'Game stopped')
end
"""
