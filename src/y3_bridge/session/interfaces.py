"""Protocols for the collaborators a SessionCoordinator is wired to.

The coordinator never spawns the game, never accepts game connections and
never constructs client handles. Those are provided by the embedding
environment through the protocols below (structural subtyping, no
inheritance from our code required).

Example adapter:

    class ConsoleClientRegistry:
        def __init__(self, console):
            self._console = console

        def snapshot(self):
            return tuple(self._console.all_clients)
"""

from __future__ import annotations

__all__ = [
    "ClientRegistry",
    "EnvironmentReadiness",
    "GameClient",
    "GameLauncher",
]

from collections.abc import Sequence
from typing import Any, Protocol, runtime_checkable


@runtime_checkable
class GameClient(Protocol):
    """Handle to one connected game client.

    The coordinator only holds a non-owning reference. It wraps ``print``
    to copy output into the session log and restores it on stop.
    """

    def print(self, message: str) -> Any:
        """Emit one line of game output."""
        ...

    def notify(self, method: str, params: dict[str, Any]) -> None:
        """Send a one-way message to the game (no reply expected).

        Raises:
            Exception: Any transport failure; callers decide whether to swallow it.
        """
        ...

    def dispose(self) -> None:
        """Release the handle's transport resources."""
        ...


@runtime_checkable
class ClientRegistry(Protocol):
    """Point-in-time view of the live client handles.

    Membership changes are the only attach/detach signal: there are no
    connect or disconnect events.
    """

    def snapshot(self) -> Sequence[GameClient]:
        """Currently alive handles, oldest first (last is most recently added)."""
        ...


@runtime_checkable
class GameLauncher(Protocol):
    """Starts the game process."""

    async def launch(
        self,
        lua_args: dict[str, str],
        multi_mode: bool,
        player_count: int | None,
        tracy: bool,
    ) -> None:
        """Launch the game and return once the process has been started.

        Args:
            lua_args: Script arguments passed to the game.
            multi_mode: Launch several local players.
            player_count: Number of players in multi mode.
            tracy: Enable the Tracy profiler.

        Raises:
            Exception: Launch failures of any kind.
        """
        ...


@runtime_checkable
class EnvironmentReadiness(Protocol):
    """Preconditions that must hold before a launch."""

    async def editor_ready(self) -> None:
        """Return once the editor is available."""
        ...

    async def map_ready(self) -> None:
        """Return once a map project is loaded."""
        ...
