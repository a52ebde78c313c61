"""Pydantic models shared across y3-bridge.

This module contains two categories of models:

Operation Result Models (FrozenModel-based):
- FrozenModel: Base class for immutable models
- LaunchResult, StatusResult, LogsResult, ExecuteResult, RestartResult,
  StopResult: payloads returned by the six remote operations

Logging Models:
- BridgeSystemEvent: System log entries for host and front end
"""

from __future__ import annotations

__all__ = [
    # Operation Result Models
    "ExecuteResult",
    "FrozenModel",
    "LaunchResult",
    "LogsResult",
    "RestartResult",
    "StatusResult",
    "StopResult",
    # Logging Models
    "BridgeSystemEvent",
]

from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field


# =============================================================================
# Operation Result Models
# =============================================================================


class FrozenModel(BaseModel):
    """Base class for immutable result payloads.

    Only fields that were explicitly set are serialized, so an optional
    field left at its default does not appear on the wire while a field
    explicitly set to None is sent as null.
    """

    model_config = ConfigDict(frozen=True)

    def to_dict(self) -> dict[str, Any]:
        """Convert to JSON-serializable dict for the bridge reply."""
        return self.model_dump(mode="json", exclude_unset=True)


class LaunchResult(FrozenModel):
    """Result of launch_game.

    Attributes:
        success: Whether a client attached before the deadline.
        session_id: ID of the session that was created.
        status: Session status after the call.
        message: Human-readable outcome.
    """

    success: bool
    session_id: str
    status: str
    message: str


class StatusResult(FrozenModel):
    """Result of get_game_status.

    Attributes:
        running: True only while the session status is running.
        session_id: Current session ID, null when there is no session.
        status: Session status, or "no_session".
        uptime: Milliseconds since the session was created.
    """

    running: bool
    session_id: Optional[str]
    status: str
    uptime: Optional[int] = None


class LogsResult(FrozenModel):
    """Result of get_logs.

    Attributes:
        success: False when there is no session.
        log_count: Number of lines returned.
        logs: Lines joined with newlines.
        message: Explanation when success is False.
    """

    success: bool
    log_count: Optional[int] = None
    logs: Optional[str] = None
    message: Optional[str] = None


class ExecuteResult(FrozenModel):
    """Result of execute_lua.

    Attributes:
        success: False when no code was given.
        output: Log lines appended during the capture window.
        message: Explanation when success is False.
    """

    success: bool
    output: Optional[str] = None
    message: Optional[str] = None


class RestartResult(FrozenModel):
    """Result of quick_restart.

    Attributes:
        success: Whether the client came back before the deadline.
        message: Human-readable outcome.
        output: Log lines appended since the restart was requested.
    """

    success: bool
    message: str
    output: Optional[str] = None


class StopResult(FrozenModel):
    """Result of stop_game.

    Attributes:
        success: Always True; stop never fails.
        message: Human-readable outcome.
    """

    success: bool
    message: str


# =============================================================================
# Logging Models
# =============================================================================


class BridgeSystemEvent(BaseModel):
    """One system log entry (console, and system.jsonl for WARNING+).

    Note: 'time' is None when created, populated by ISO8601Formatter during logging.
    """

    # --- core ---
    time: Optional[str] = Field(
        None,
        description="ISO 8601 timestamp (UTC), added by formatter during serialization",
    )
    event: Optional[str] = Field(
        None,
        description="Machine-friendly event name, e.g. 'client_attached', 'rpc_timeout'",
    )
    message: str = Field(description="Human-readable log message")

    # --- session context ---
    session_id: Optional[str] = Field(
        None,
        description="Game session the event belongs to",
    )
    status: Optional[str] = Field(
        None,
        description="Session status after the event",
    )

    # --- rpc context ---
    method: Optional[str] = Field(
        None,
        description="RPC or envelope method name",
    )
    request_id: Optional[str] = Field(
        None,
        description="Correlation ID of the request",
    )
    peer: Optional[str] = Field(
        None,
        description="Remote address of the bridge connection",
    )

    # --- error details ---
    error_type: Optional[str] = Field(
        None,
        description="Exception class name, e.g. 'ConnectionResetError'",
    )
    error_message: Optional[str] = Field(
        None,
        description="Short error text from exception",
    )

    # --- additional structured details ---
    details: Optional[Dict[str, Any]] = Field(
        None,
        description="Additional context as key-value pairs",
    )

    model_config = ConfigDict(extra="allow")
