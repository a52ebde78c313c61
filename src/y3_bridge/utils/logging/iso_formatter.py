"""JSONL log formatting with ISO 8601 timestamps."""

from __future__ import annotations

__all__ = ["ISO8601Formatter"]

import json
import logging
from datetime import datetime, timezone


class ISO8601Formatter(logging.Formatter):
    """Formats records as one JSON object per line, timestamp first.

    Format: YYYY-MM-DDTHH:MM:SS.sssZ
    Example: {"time": "2025-12-04T10:48:37.123Z", "event": "client_attached", ...}
    """

    def format(self, record: logging.LogRecord) -> str:
        """Format log record as JSONL with ISO 8601 timestamp.

        Args:
            record: The log record to format

        Returns:
            str: JSON-formatted log entry with timestamp
        """
        timestamp = (
            datetime.fromtimestamp(record.created, tz=timezone.utc)
            .isoformat(timespec="milliseconds")
            .replace("+00:00", "Z")
        )

        # Structured records carry a dict, everything else becomes a message
        if isinstance(record.msg, dict):
            log_data = {"level": record.levelname, **record.msg}
        else:
            log_data = {"level": record.levelname, "message": record.getMessage()}

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        return json.dumps({"time": timestamp, **log_data}, default=str)
