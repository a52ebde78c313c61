"""Shared fixtures: fakes for the game-side collaborators and fast timings."""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable
from pathlib import Path
from typing import Any

import pytest

from y3_bridge.config import BridgeConfig


class FakeGameClient:
    """In-memory stand-in for a connected game client."""

    def __init__(self, name: str = "client") -> None:
        self.name = name
        self.printed: list[str] = []
        self.notifications: list[tuple[str, dict[str, Any]]] = []
        self.disposed = False
        self.dispose_calls = 0
        self.fail_notify = False
        self.on_notify: Callable[[str, dict[str, Any]], None] | None = None

    def print(self, message: str) -> None:
        self.printed.append(message)

    def notify(self, method: str, params: dict[str, Any]) -> None:
        if self.fail_notify:
            raise ConnectionResetError("client socket closed")
        self.notifications.append((method, params))
        if self.on_notify is not None:
            self.on_notify(method, params)

    def dispose(self) -> None:
        self.disposed = True
        self.dispose_calls += 1

    def __repr__(self) -> str:
        return f"FakeGameClient({self.name!r})"


class FakeClientRegistry:
    """Live-handle registry backed by a plain list."""

    def __init__(self) -> None:
        self.clients: list[FakeGameClient] = []

    def snapshot(self) -> tuple[FakeGameClient, ...]:
        return tuple(self.clients)

    def add(self, client: FakeGameClient) -> None:
        self.clients.append(client)

    def remove(self, client: FakeGameClient) -> None:
        self.clients.remove(client)


class FakeLauncher:
    """Records launches; optionally runs a hook or raises."""

    def __init__(self) -> None:
        self.calls: list[tuple[dict[str, str], bool, int | None, bool]] = []
        self.on_launch: Callable[[], None] | None = None
        self.error: Exception | None = None
        self.events: list[str] | None = None

    async def launch(
        self,
        lua_args: dict[str, str],
        multi_mode: bool,
        player_count: int | None,
        tracy: bool,
    ) -> None:
        if self.events is not None:
            self.events.append("launch")
        self.calls.append((lua_args, multi_mode, player_count, tracy))
        if self.error is not None:
            raise self.error
        if self.on_launch is not None:
            self.on_launch()


class FakeReadiness:
    """Environment readiness that is always satisfied."""

    def __init__(self, events: list[str] | None = None) -> None:
        self.events = events if events is not None else []

    async def editor_ready(self) -> None:
        self.events.append("editor_ready")

    async def map_ready(self) -> None:
        self.events.append("map_ready")


@pytest.fixture
def fast_config(tmp_path: Path) -> BridgeConfig:
    """Config with short timings and a temporary log directory."""
    return BridgeConfig(
        log_dir=tmp_path / "sessions",
        monitor_interval_seconds=0.01,
        launch_timeout_seconds=0.5,
        restart_timeout_seconds=0.3,
        capture_window_seconds=0.05,
        stop_grace_seconds=0.0,
        call_timeout_seconds=2.0,
        connect_timeout_seconds=1.0,
    )


@pytest.fixture
def registry() -> FakeClientRegistry:
    return FakeClientRegistry()


@pytest.fixture
def launcher() -> FakeLauncher:
    return FakeLauncher()


@pytest.fixture
def readiness() -> FakeReadiness:
    return FakeReadiness()


@pytest.fixture
def game_client() -> FakeGameClient:
    return FakeGameClient("game")


@pytest.fixture
def make_client() -> Callable[[str], FakeGameClient]:
    """Factory for additional game clients."""
    return FakeGameClient


@pytest.fixture
def wait_until() -> Callable[..., Awaitable[None]]:
    """Poll a predicate until true; fails the test after the timeout."""

    async def _wait_until(predicate: Callable[[], bool], timeout: float = 2.0) -> None:
        loop = asyncio.get_running_loop()
        deadline = loop.time() + timeout
        while not predicate():
            if loop.time() > deadline:
                pytest.fail("condition not reached in time")
            await asyncio.sleep(0.005)

    return _wait_until
