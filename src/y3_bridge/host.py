"""Host side lifecycle: session coordinator plus bridge server.

The embedding environment owns a BridgeHost and calls its lifecycle
methods explicitly:

    host = BridgeHost(config, launcher, registry, readiness)
    await host.start()     # monitor running, bridge listening
    ...
    await host.stop()      # listener and connections closed
    await host.dispose()   # active session stopped, monitor cancelled
"""

from __future__ import annotations

__all__ = [
    "BridgeHost",
]

import logging
from typing import Any

from y3_bridge.bridge.server import RpcHandler, RpcServer
from y3_bridge.config import BridgeConfig
from y3_bridge.constants import APP_NAME
from y3_bridge.log_config import log_event
from y3_bridge.models import BridgeSystemEvent
from y3_bridge.session.coordinator import SessionCoordinator
from y3_bridge.session.interfaces import ClientRegistry, EnvironmentReadiness, GameLauncher
from y3_bridge.session.params import EmptyParams, ExecuteLuaParams, GetLogsParams, LaunchGameParams

_logger = logging.getLogger(f"{APP_NAME}.host")


class BridgeHost:
    """Owns one SessionCoordinator and the RpcServer exposing it."""

    def __init__(
        self,
        config: BridgeConfig,
        launcher: GameLauncher,
        registry: ClientRegistry,
        readiness: EnvironmentReadiness,
    ) -> None:
        self.config = config
        self.coordinator = SessionCoordinator(config, launcher, registry, readiness)
        self.server = RpcServer(self._build_handlers(), config.host, config.port)
        self._started = False

    @property
    def started(self) -> bool:
        return self._started

    async def start(self) -> None:
        """Start the connection monitor and listen for the front end.

        Raises:
            OSError: If the bridge port cannot be bound.
        """
        if self._started:
            return
        self.coordinator.start()
        await self.server.start()
        self._started = True
        log_event(
            logging.INFO,
            BridgeSystemEvent(
                event="host_started",
                message=f"Bridge host started on {self.config.host}:{self.server.port}",
            ),
            _logger,
        )

    async def stop(self) -> None:
        """Close the listener and every front-end connection."""
        await self.server.stop()
        self._started = False

    async def dispose(self) -> None:
        """Stop serving and tear down the coordinator and its session."""
        await self.stop()
        await self.coordinator.dispose()
        log_event(
            logging.INFO,
            BridgeSystemEvent(event="host_disposed", message="Bridge host disposed"),
            _logger,
        )

    def _build_handlers(self) -> dict[str, RpcHandler]:
        coordinator = self.coordinator

        async def launch_game(params: dict[str, Any]) -> dict[str, Any]:
            result = await coordinator.launch(LaunchGameParams.model_validate(params))
            return result.to_dict()

        def get_game_status(params: dict[str, Any]) -> dict[str, Any]:
            EmptyParams.model_validate(params)
            return coordinator.get_status().to_dict()

        def get_logs(params: dict[str, Any]) -> dict[str, Any]:
            return coordinator.get_logs(GetLogsParams.model_validate(params)).to_dict()

        async def execute_lua(params: dict[str, Any]) -> dict[str, Any]:
            result = await coordinator.execute_lua(ExecuteLuaParams.model_validate(params))
            return result.to_dict()

        async def quick_restart(params: dict[str, Any]) -> dict[str, Any]:
            EmptyParams.model_validate(params)
            return (await coordinator.quick_restart()).to_dict()

        async def stop_game(params: dict[str, Any]) -> dict[str, Any]:
            EmptyParams.model_validate(params)
            return (await coordinator.stop()).to_dict()

        return {
            "launch_game": launch_game,
            "get_game_status": get_game_status,
            "get_logs": get_logs,
            "execute_lua": execute_lua,
            "quick_restart": quick_restart,
            "stop_game": stop_game,
        }
