"""Per-session log files with retention-capped rotation.

Each session writes to its own file in the log directory:
    session-<session id>-<epoch ms>.log

Every line is stored as:
    [2025-01-15T10:48:37.123Z] <message>

Opening a new file first deletes the oldest files (by modification time)
until at most ``max_files - 1`` remain, so the directory never holds more
than ``max_files`` session logs. Files are kept when a session stops.
"""

from __future__ import annotations

__all__ = [
    "SessionLog",
]

import logging
import time
from datetime import datetime, timezone
from pathlib import Path
from typing import TextIO

from y3_bridge.constants import APP_NAME, DEFAULT_LOG_LIMIT, DEFAULT_MAX_LOG_FILES, LOG_FILE_SUFFIX
from y3_bridge.log_config import log_event
from y3_bridge.models import BridgeSystemEvent

_logger = logging.getLogger(f"{APP_NAME}.session.log")


def _timestamp() -> str:
    return datetime.now(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


class SessionLog:
    """Append-only log file owned by one game session.

    Usage:
        log = SessionLog("session_1700000000000", Path("/tmp/logs"))
        log.append("hello")
        log.read_tail(10)  # ['[2025-...Z] hello']
        log.close()
    """

    def __init__(self, session_id: str, log_dir: Path, max_files: int = DEFAULT_MAX_LOG_FILES) -> None:
        """Rotate the directory and open a new log file.

        Args:
            session_id: Session the file belongs to (part of the file name).
            log_dir: Directory holding session logs; created if missing.
            max_files: Files retained including the new one.

        Raises:
            OSError: If the directory or file cannot be created.
        """
        self._dir = Path(log_dir).expanduser()
        self._dir.mkdir(parents=True, exist_ok=True)
        self._max_files = max_files

        self._rotate()

        self.path = self._dir / f"session-{session_id}-{int(time.time() * 1000)}{LOG_FILE_SUFFIX}"
        self._file: TextIO | None = self.path.open("a", encoding="utf-8")
        self._line_count = 0

    @property
    def line_count(self) -> int:
        """Non-empty lines written through this instance."""
        return self._line_count

    @property
    def closed(self) -> bool:
        return self._file is None

    def append(self, message: str) -> None:
        """Write one timestamped entry.

        Writes after close() are dropped. Write failures are logged and
        never raised, since this runs inside the game client's output path.
        """
        if self._file is None:
            _logger.debug(
                {
                    "event": "log_append_after_close",
                    "message": f"Dropped line for closed log {self.path.name}",
                }
            )
            return

        entry = f"[{_timestamp()}] {message}\n"
        try:
            self._file.write(entry)
            self._file.flush()
        except OSError as e:
            log_event(
                logging.ERROR,
                BridgeSystemEvent(
                    event="log_append_failed",
                    message=f"Failed to append to {self.path.name}: {e}",
                    error_type=type(e).__name__,
                    error_message=str(e),
                ),
                _logger,
            )
            return
        self._line_count += sum(1 for line in entry.split("\n") if line.strip())

    def read_tail(self, limit: int = DEFAULT_LOG_LIMIT) -> list[str]:
        """Return the last ``limit`` non-empty lines, oldest first.

        Args:
            limit: Maximum number of lines.

        Returns:
            Lines without terminators; empty if the file cannot be read.
        """
        if limit <= 0:
            return []
        try:
            content = self.path.read_text(encoding="utf-8")
        except OSError as e:
            log_event(
                logging.ERROR,
                BridgeSystemEvent(
                    event="log_read_failed",
                    message=f"Failed to read {self.path.name}: {e}",
                    error_type=type(e).__name__,
                    error_message=str(e),
                ),
                _logger,
            )
            return []
        lines = [line for line in content.split("\n") if line.strip()]
        return lines[-limit:]

    def close(self) -> None:
        """Close the file; it stays on disk. Safe to call twice."""
        if self._file is None:
            return
        try:
            self._file.close()
        finally:
            self._file = None

    def _rotate(self) -> None:
        files = self.list_log_files(self._dir)
        if len(files) < self._max_files:
            return

        for old in files[self._max_files - 1 :]:
            try:
                old.unlink()
            except OSError as e:
                log_event(
                    logging.WARNING,
                    BridgeSystemEvent(
                        event="log_rotation_failed",
                        message=f"Failed to delete old log {old.name}: {e}",
                        error_type=type(e).__name__,
                        error_message=str(e),
                    ),
                    _logger,
                )
                continue
            log_event(
                logging.INFO,
                BridgeSystemEvent(
                    event="log_rotated",
                    message=f"Deleted old log: {old.name}",
                    details={"path": str(old)},
                ),
                _logger,
            )

    @staticmethod
    def list_log_files(log_dir: Path) -> list[Path]:
        """Session log files in a directory, newest (by mtime) first.

        Args:
            log_dir: Directory to scan; a missing directory yields [].
        """
        directory = Path(log_dir).expanduser()
        if not directory.is_dir():
            return []
        entries = []
        for path in directory.glob(f"*{LOG_FILE_SUFFIX}"):
            try:
                entries.append((path.stat().st_mtime, path))
            except OSError:
                continue  # Deleted between glob and stat
        entries.sort(key=lambda item: item[0], reverse=True)
        return [path for _, path in entries]
