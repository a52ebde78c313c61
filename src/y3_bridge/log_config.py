"""Logging configuration.

Owns the application logger configuration (handlers, formatters).
Other modules get their own child logger via:
    _logger = logging.getLogger(f"{APP_NAME}.bridge")

Child loggers propagate to the application logger, which never propagates
to root. This module owns the configuration; others just call log_event().

Console output goes to stderr because the front end uses stdout for the
protocol stream.
"""

from __future__ import annotations

__all__ = [
    "ConsoleFormatter",
    "configure_logging",
    "log_event",
]

import logging

from y3_bridge.config import BridgeConfig, get_system_log_path
from y3_bridge.constants import APP_NAME
from y3_bridge.models import BridgeSystemEvent
from y3_bridge.utils.logging.iso_formatter import ISO8601Formatter

# Application logger - initially with stderr only
# File handler added via configure_logging() after config is loaded
_logger = logging.getLogger(APP_NAME)
_logger.setLevel(logging.DEBUG)
_logger.propagate = False


class ConsoleFormatter(logging.Formatter):
    """Human-readable formatter for console output.

    Extracts 'message' or 'event' field from dict messages for cleaner stderr output.
    """

    def format(self, record: logging.LogRecord) -> str:
        """Format log record for console output."""
        if isinstance(record.msg, dict):
            msg = record.msg.get("message") or record.msg.get("event", "")
            return f"{record.levelname}: {msg}"
        # Use getMessage() to substitute %s placeholders with args
        return f"{record.levelname}: {record.getMessage()}"


def _stderr_handler(level: int) -> logging.Handler:
    handler = logging.StreamHandler()
    handler.setLevel(level)
    handler.setFormatter(ConsoleFormatter())
    return handler


# Initialize with stderr-only until config is loaded
if not _logger.handlers:
    _logger.addHandler(_stderr_handler(logging.INFO))


def configure_logging(config: BridgeConfig, *, debug: bool = False) -> None:
    """Configure application logging with file handler.

    Sets up:
    - stderr handler: INFO+ (DEBUG+ with debug=True)
    - file handler: WARNING+ only (errors and issues worth reviewing)

    Args:
        config: Bridge configuration with log directory.
        debug: Lower the console level to DEBUG.
    """
    # Close and clear any existing handlers to avoid resource leaks
    for handler in _logger.handlers:
        handler.close()
    _logger.handlers.clear()

    _logger.addHandler(_stderr_handler(logging.DEBUG if debug else logging.INFO))

    log_path = get_system_log_path(config)
    try:
        log_path.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_path, mode="a", encoding="utf-8")
    except OSError as e:
        log_event(
            logging.WARNING,
            BridgeSystemEvent(
                event="file_logging_failed",
                message="Failed to configure file logging",
                error_type=type(e).__name__,
                error_message=str(e),
                details={"log_path": str(log_path)},
            ),
        )
        return

    file_handler.setLevel(logging.WARNING)
    file_handler.setFormatter(ISO8601Formatter())
    _logger.addHandler(file_handler)


def log_event(level: int, event: BridgeSystemEvent, logger: logging.Logger | None = None) -> None:
    """Log a BridgeSystemEvent at the specified level.

    Serializes the event to a dict (excluding None values) and logs it.
    The ISO8601Formatter adds the timestamp during serialization.

    Args:
        level: Logging level (e.g., logging.INFO, logging.WARNING).
        event: The event to log.
        logger: Child logger to log through. Defaults to the application logger.
    """
    (logger or _logger).log(level, event.model_dump(exclude_none=True))
