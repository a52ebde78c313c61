"""Typed parameters for the six game operations.

Every operation accepts a closed set of named fields. Unknown fields and
wrong types are rejected with a pydantic ValidationError before the
coordinator is reached; the bridge server turns that into -32602.

The same models produce the inputSchema advertised by tools/list.
"""

from __future__ import annotations

__all__ = [
    "EmptyParams",
    "ExecuteLuaParams",
    "GetLogsParams",
    "LaunchGameParams",
    "OPERATION_PARAMS",
]

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from y3_bridge.constants import DEFAULT_LOG_LIMIT


class _OperationParams(BaseModel):
    """Base for operation parameters: immutable, unknown fields rejected."""

    model_config = ConfigDict(frozen=True, extra="forbid")


class EmptyParams(_OperationParams):
    """Parameters of operations that take none."""


class LaunchGameParams(_OperationParams):
    """Parameters of launch_game."""

    multi_mode: bool = Field(default=False, description="Launch several local players")
    multi_players: Optional[int] = Field(
        default=None,
        ge=1,
        description="Number of players when multi_mode is set",
    )
    tracy: bool = Field(default=False, description="Enable the Tracy profiler")


class GetLogsParams(_OperationParams):
    """Parameters of get_logs."""

    limit: int = Field(
        default=DEFAULT_LOG_LIMIT,
        ge=0,
        description="Return the most recent N log lines (0 means the default of 100)",
    )


class ExecuteLuaParams(_OperationParams):
    """Parameters of execute_lua."""

    code: str = Field(description="Lua code to run in the game's Lua environment")


# Operation name -> parameter model
OPERATION_PARAMS: dict[str, type[_OperationParams]] = {
    "launch_game": LaunchGameParams,
    "get_logs": GetLogsParams,
    "execute_lua": ExecuteLuaParams,
    "stop_game": EmptyParams,
    "get_game_status": EmptyParams,
    "quick_restart": EmptyParams,
}
