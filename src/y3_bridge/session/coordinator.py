"""Game session coordinator.

Owns the single game session and its state machine:

    launching -> running -> stopped
    running -> restarting -> running | stopped
    any -> stopped (stop_game)

A background monitor samples the client registry every tick. The registry
only exposes a snapshot of live handles, so attach and detach are detected
by diffing that snapshot against the session's client reference:

- launching/restarting without a client: attach the newest handle
- running with a client that left the snapshot: detach, mark stopped
- restarting with a client that left the snapshot: detach, stay restarting

Each tick runs synchronously (no await inside), so its transitions are
atomic with respect to the operations below. Operations likewise commit
status changes before awaiting.

Output captured by execute_lua and quick_restart is the set of log lines
appended during a fixed window after the command. Lines from concurrent
commands or slow output are not attributed to a specific command.
"""

from __future__ import annotations

__all__ = [
    "GameSession",
    "SessionCoordinator",
    "SessionStatus",
]

import asyncio
import logging
import time
from collections.abc import Callable
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from y3_bridge.config import BridgeConfig
from y3_bridge.constants import (
    APP_NAME,
    COMMAND_NOTIFICATION,
    DEFAULT_LOG_LIMIT,
    FORCE_QUIT_LUA,
    QUICK_RESTART_COMMAND,
)
from y3_bridge.exceptions import (
    ClientNotConnectedError,
    GameLaunchError,
    LuaExecutionError,
    SessionNotFoundError,
)
from y3_bridge.log_config import log_event
from y3_bridge.models import (
    BridgeSystemEvent,
    ExecuteResult,
    LaunchResult,
    LogsResult,
    RestartResult,
    StatusResult,
    StopResult,
)
from y3_bridge.session.interfaces import ClientRegistry, EnvironmentReadiness, GameClient, GameLauncher
from y3_bridge.session.log_store import SessionLog
from y3_bridge.session.params import ExecuteLuaParams, GetLogsParams, LaunchGameParams

_logger = logging.getLogger(f"{APP_NAME}.session")


class SessionStatus(str, Enum):
    """Lifecycle states of a game session."""

    LAUNCHING = "launching"
    RUNNING = "running"
    STOPPED = "stopped"
    RESTARTING = "restarting"


@dataclass
class _PrintHook:
    """A client whose print was wrapped, and how to undo it."""

    client: GameClient
    original: Callable[..., Any]
    had_instance_attr: bool


@dataclass
class GameSession:
    """The tracked lifecycle of one launched game.

    Attributes:
        id: Time-derived session ID.
        status: Current lifecycle state.
        start_time: Epoch seconds at creation.
        log: Log file owned by this session.
        client: Attached client handle (not owned).
        hooks: Clients whose print was wrapped for this session.
        stopping: In-flight stop, shared by every caller waiting on it.
    """

    id: str
    status: SessionStatus
    start_time: float
    log: SessionLog
    client: GameClient | None = None
    hooks: list[_PrintHook] = field(default_factory=list)
    stopping: asyncio.Task[None] | None = field(default=None, repr=False)

    def is_hooked(self, client: GameClient) -> bool:
        return any(hook.client is client for hook in self.hooks)


class SessionCoordinator:
    """Runs the game session state machine and the six game operations.

    Usage:
        coordinator = SessionCoordinator(config, launcher, registry, readiness)
        coordinator.start()
        result = await coordinator.launch(LaunchGameParams())
        ...
        await coordinator.dispose()
    """

    def __init__(
        self,
        config: BridgeConfig,
        launcher: GameLauncher,
        registry: ClientRegistry,
        readiness: EnvironmentReadiness,
    ) -> None:
        """Initialize the coordinator.

        Args:
            config: Timings and log storage settings.
            launcher: Starts the game process.
            registry: Snapshot source for live client handles.
            readiness: Preconditions awaited before each launch.
        """
        self._config = config
        self._launcher = launcher
        self._registry = registry
        self._readiness = readiness
        self._session: GameSession | None = None
        self._monitor_task: asyncio.Task[None] | None = None
        self._last_session_ms = 0

    @property
    def session(self) -> GameSession | None:
        """The current session, if any."""
        return self._session

    @property
    def monitoring(self) -> bool:
        """Whether the connection monitor is running."""
        return self._monitor_task is not None and not self._monitor_task.done()

    # -------------------------------------------------------------------------
    # Lifecycle
    # -------------------------------------------------------------------------

    def start(self) -> None:
        """Start the connection monitor. Idempotent."""
        if self.monitoring:
            return
        self._monitor_task = asyncio.create_task(self._monitor())

    async def dispose(self) -> None:
        """Stop the monitor and the active session, if any."""
        if self._monitor_task is not None:
            self._monitor_task.cancel()
            try:
                await self._monitor_task
            except asyncio.CancelledError:
                pass
            self._monitor_task = None

        if self._session is not None:
            await self.stop()

    # -------------------------------------------------------------------------
    # Connection monitor
    # -------------------------------------------------------------------------

    async def _monitor(self) -> None:
        interval = self._config.monitor_interval_seconds
        while True:
            try:
                self.check_client()
            except Exception as e:
                # A misbehaving registry must not end monitoring
                _logger.exception(
                    {
                        "event": "monitor_tick_failed",
                        "message": f"Connection monitor tick failed: {e}",
                        "error_type": type(e).__name__,
                    }
                )
            await asyncio.sleep(interval)

    def check_client(self) -> None:
        """Run one monitor tick against the current registry snapshot."""
        session = self._session
        if session is None:
            return

        if session.status in (SessionStatus.LAUNCHING, SessionStatus.RESTARTING) and session.client is None:
            handles = self._registry.snapshot()
            if handles:
                self._attach(session, handles[-1])

        if session.status is SessionStatus.RUNNING and session.client is not None:
            if not self._is_alive(session.client):
                session.status = SessionStatus.STOPPED
                session.client = None
                log_event(
                    logging.INFO,
                    BridgeSystemEvent(
                        event="client_detached",
                        message=f"Client disconnected from session {session.id}",
                        session_id=session.id,
                        status=session.status.value,
                    ),
                    _logger,
                )

        if session.status is SessionStatus.RESTARTING and session.client is not None:
            if not self._is_alive(session.client):
                session.client = None
                log_event(
                    logging.INFO,
                    BridgeSystemEvent(
                        event="client_dropped_during_restart",
                        message="Client disconnected during restart, waiting for reconnection",
                        session_id=session.id,
                        status=session.status.value,
                    ),
                    _logger,
                )

    def _is_alive(self, client: GameClient) -> bool:
        return any(handle is client for handle in self._registry.snapshot())

    def _attach(self, session: GameSession, client: GameClient) -> None:
        session.client = client
        session.status = SessionStatus.RUNNING

        if not session.is_hooked(client):
            self._hook_output(session, client)

        log_event(
            logging.INFO,
            BridgeSystemEvent(
                event="client_attached",
                message=f"Client attached to session {session.id}",
                session_id=session.id,
                status=session.status.value,
            ),
            _logger,
        )

    def _hook_output(self, session: GameSession, client: GameClient) -> None:
        """Wrap client.print so every line is also appended to the session log."""
        original = client.print
        had_instance_attr = "print" in getattr(client, "__dict__", {})
        log = session.log

        def hooked_print(message: str) -> Any:
            log.append(str(message))
            return original(message)

        try:
            client.print = hooked_print  # type: ignore[method-assign]
        except AttributeError as e:
            log_event(
                logging.WARNING,
                BridgeSystemEvent(
                    event="client_hook_failed",
                    message=f"Cannot capture output of client: {e}",
                    session_id=session.id,
                    error_type=type(e).__name__,
                    error_message=str(e),
                ),
                _logger,
            )
            return
        session.hooks.append(_PrintHook(client, original, had_instance_attr))

    @staticmethod
    def _unhook_output(session: GameSession) -> None:
        for hook in session.hooks:
            if hook.had_instance_attr:
                hook.client.print = hook.original  # type: ignore[method-assign]
            else:
                try:
                    del hook.client.print
                except AttributeError:
                    pass
        session.hooks.clear()

    async def _wait_for_client(self, session: GameSession, timeout: float) -> bool:
        """Poll until the session has a client and is running.

        Returns:
            True once attached, False on deadline or if the session stops.
        """
        loop = asyncio.get_running_loop()
        deadline = loop.time() + timeout
        while loop.time() < deadline:
            if session.client is not None and session.status is SessionStatus.RUNNING:
                return True
            if session.status is SessionStatus.STOPPED:
                return False
            await asyncio.sleep(self._config.monitor_interval_seconds)
        return False

    # -------------------------------------------------------------------------
    # Operations
    # -------------------------------------------------------------------------

    async def launch(self, params: LaunchGameParams | None = None) -> LaunchResult:
        """Start a new game session.

        Stops a session that is not yet stopped, waits for the environment,
        then launches and waits for a client to attach.

        Args:
            params: Launch options.

        Returns:
            LaunchResult; success is False if no client attached in time.

        Raises:
            GameLaunchError: If the launcher raised.
        """
        params = params or LaunchGameParams()

        previous = self._session
        if previous is not None:
            if previous.stopping is not None or previous.status is not SessionStatus.STOPPED:
                await self._await_stop(previous)
            else:
                self._release(previous)

        await self._readiness.editor_ready()
        await self._readiness.map_ready()

        session_id = self._new_session_id()
        session = GameSession(
            id=session_id,
            status=SessionStatus.LAUNCHING,
            start_time=time.time(),
            log=SessionLog(session_id, self._config.log_dir, self._config.max_log_files),
        )
        self._session = session
        log_event(
            logging.INFO,
            BridgeSystemEvent(
                event="session_launching",
                message=f"Launching game session {session_id}",
                session_id=session_id,
                status=session.status.value,
                details=params.model_dump(),
            ),
            _logger,
        )

        try:
            # Automated launches never attach a debugger
            await self._launcher.launch({}, params.multi_mode, params.multi_players, params.tracy)
        except Exception as e:
            session.status = SessionStatus.STOPPED
            log_event(
                logging.ERROR,
                BridgeSystemEvent(
                    event="session_launch_failed",
                    message=f"Game launch failed: {e}",
                    session_id=session_id,
                    status=session.status.value,
                    error_type=type(e).__name__,
                    error_message=str(e),
                ),
                _logger,
            )
            raise GameLaunchError(f"Game launch failed: {e}", data={"original_error": str(e)}) from e

        connected = await self._wait_for_client(session, self._config.launch_timeout_seconds)
        if not connected:
            session.status = SessionStatus.STOPPED
            log_event(
                logging.WARNING,
                BridgeSystemEvent(
                    event="session_attach_timeout",
                    message=f"No client attached to session {session_id}",
                    session_id=session_id,
                    status=session.status.value,
                ),
                _logger,
            )
            return LaunchResult(
                success=False,
                session_id=session_id,
                status=SessionStatus.STOPPED.value,
                message="Game launched but client connection timeout",
            )

        return LaunchResult(
            success=True,
            session_id=session_id,
            status=session.status.value,
            message="Game launched successfully",
        )

    def get_status(self) -> StatusResult:
        """Report the current session without side effects."""
        session = self._session
        if session is None:
            return StatusResult(running=False, session_id=None, status="no_session")

        return StatusResult(
            running=session.status is SessionStatus.RUNNING,
            session_id=session.id,
            status=session.status.value,
            uptime=int((time.time() - session.start_time) * 1000),
        )

    def get_logs(self, params: GetLogsParams | None = None) -> LogsResult:
        """Return the most recent session log lines."""
        params = params or GetLogsParams()
        session = self._session
        if session is None:
            return LogsResult(success=False, message="No active session")

        lines = session.log.read_tail(params.limit or DEFAULT_LOG_LIMIT)
        return LogsResult(success=True, log_count=len(lines), logs="\n".join(lines))

    async def execute_lua(self, params: ExecuteLuaParams) -> ExecuteResult:
        """Send code to the attached client and collect the output it logs.

        Raises:
            SessionNotFoundError: If there is no session.
            ClientNotConnectedError: If no client is attached.
            LuaExecutionError: If the code could not be sent.
        """
        session, client = self._require_client()

        if not params.code:
            return ExecuteResult(success=False, message="No code provided")

        before = session.log.line_count
        try:
            client.notify(COMMAND_NOTIFICATION, {"data": params.code})
        except Exception as e:
            raise LuaExecutionError(f"Failed to send code to game: {e}") from e

        await asyncio.sleep(self._config.capture_window_seconds)

        return ExecuteResult(success=True, output=self._lines_since(session, before))

    async def quick_restart(self) -> RestartResult:
        """Reload the game's scripts in place and wait for the client to come back.

        Raises:
            SessionNotFoundError: If there is no session.
            ClientNotConnectedError: If no client is attached.
            LuaExecutionError: If the restart command could not be sent.
        """
        session, client = self._require_client()

        before = session.log.line_count
        session.status = SessionStatus.RESTARTING
        try:
            client.notify(COMMAND_NOTIFICATION, {"data": QUICK_RESTART_COMMAND})
        except Exception as e:
            session.status = SessionStatus.RUNNING
            raise LuaExecutionError(f"Failed to send restart command: {e}") from e

        log_event(
            logging.INFO,
            BridgeSystemEvent(
                event="session_restarting",
                message=f"Quick restart requested for session {session.id}",
                session_id=session.id,
                status=session.status.value,
            ),
            _logger,
        )

        reconnected = await self._wait_for_client(session, self._config.restart_timeout_seconds)
        if not reconnected:
            session.status = SessionStatus.STOPPED
            log_event(
                logging.WARNING,
                BridgeSystemEvent(
                    event="session_restart_timeout",
                    message=f"Client did not reconnect to session {session.id}",
                    session_id=session.id,
                    status=session.status.value,
                ),
                _logger,
            )
            return RestartResult(success=False, message="Game restart timeout - client did not reconnect")

        return RestartResult(
            success=True,
            message="Game restarted successfully",
            output=self._lines_since(session, before),
        )

    async def stop(self) -> StopResult:
        """Stop the current session.

        Asks the client to quit, releases it, and closes the session log.
        Failures of the in-band quit are logged and never stop the cleanup.
        A stop already in flight is awaited rather than repeated.
        """
        session = self._session
        if session is None:
            return StopResult(success=True, message="No active session")

        await self._await_stop(session)
        return StopResult(success=True, message="Game stopped")

    async def _await_stop(self, session: GameSession) -> None:
        if session.stopping is None:
            session.stopping = asyncio.create_task(self._stop_session(session))
        await asyncio.shield(session.stopping)

    async def _stop_session(self, session: GameSession) -> None:
        client = session.client
        if client is not None:
            try:
                client.notify(COMMAND_NOTIFICATION, {"data": FORCE_QUIT_LUA})
                await asyncio.sleep(self._config.stop_grace_seconds)
            except Exception as e:
                log_event(
                    logging.WARNING,
                    BridgeSystemEvent(
                        event="stop_command_failed",
                        message=f"Ignoring error while stopping client: {e}",
                        session_id=session.id,
                        error_type=type(e).__name__,
                        error_message=str(e),
                    ),
                    _logger,
                )
            finally:
                try:
                    client.dispose()
                except Exception as e:
                    log_event(
                        logging.WARNING,
                        BridgeSystemEvent(
                            event="client_dispose_failed",
                            message=f"Ignoring error while disposing client: {e}",
                            session_id=session.id,
                            error_type=type(e).__name__,
                            error_message=str(e),
                        ),
                        _logger,
                    )

        session.status = SessionStatus.STOPPED
        session.client = None
        self._release(session)
        if self._session is session:
            self._session = None

        log_event(
            logging.INFO,
            BridgeSystemEvent(
                event="session_stopped",
                message=f"Game session {session.id} stopped",
                session_id=session.id,
                status=session.status.value,
            ),
            _logger,
        )

    # -------------------------------------------------------------------------
    # Helpers
    # -------------------------------------------------------------------------

    def _require_client(self) -> tuple[GameSession, GameClient]:
        session = self._session
        if session is None:
            raise SessionNotFoundError("No active game session")
        if session.client is None:
            raise ClientNotConnectedError("Game client is not connected")
        return session, session.client

    @staticmethod
    def _lines_since(session: GameSession, before: int) -> str:
        count = session.log.line_count - before
        if count <= 0:
            return ""
        return "\n".join(session.log.read_tail(count))

    def _release(self, session: GameSession) -> None:
        """Restore hooked clients, then close the session log."""
        self._unhook_output(session)
        session.log.close()

    def _new_session_id(self) -> str:
        now_ms = max(int(time.time() * 1000), self._last_session_ms + 1)
        self._last_session_ms = now_ms
        return f"session_{now_ms}"
