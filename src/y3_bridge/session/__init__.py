"""Session package: the single game session and its collaborators.

- interfaces.py: Protocols for launcher, client registry, readiness, client
- log_store.py: Per-session log files with rotation
- params.py: Typed parameters of the six operations
- coordinator.py: State machine, connection monitor, operations
"""

from .coordinator import GameSession, SessionCoordinator, SessionStatus
from .interfaces import ClientRegistry, EnvironmentReadiness, GameClient, GameLauncher
from .log_store import SessionLog
from .params import (
    OPERATION_PARAMS,
    EmptyParams,
    ExecuteLuaParams,
    GetLogsParams,
    LaunchGameParams,
)

__all__ = [
    # Coordinator
    "GameSession",
    "SessionCoordinator",
    "SessionStatus",
    # Collaborators
    "ClientRegistry",
    "EnvironmentReadiness",
    "GameClient",
    "GameLauncher",
    # Log storage
    "SessionLog",
    # Parameters
    "EmptyParams",
    "ExecuteLuaParams",
    "GetLogsParams",
    "LaunchGameParams",
    "OPERATION_PARAMS",
]
