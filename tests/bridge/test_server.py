"""Tests for RpcServer.

Talks to the server over a raw loopback socket so the exact wire replies
can be asserted.
"""

from __future__ import annotations

import asyncio
import json
from collections.abc import AsyncIterator
from typing import Any

import pytest
from pydantic import BaseModel, ConfigDict

from y3_bridge.bridge.protocol import encode_ndjson
from y3_bridge.bridge.server import RpcServer
from y3_bridge.exceptions import ErrorCode, SessionNotFoundError


class _LimitParams(BaseModel):
    model_config = ConfigDict(extra="forbid")
    limit: int


def _handlers(release: asyncio.Event) -> dict[str, Any]:
    async def slow(params: dict[str, Any]) -> str:
        await release.wait()
        return "slow"

    def fast(params: dict[str, Any]) -> str:
        return "fast"

    async def echo(params: dict[str, Any]) -> dict[str, Any]:
        return params

    def missing_session(params: dict[str, Any]) -> None:
        raise SessionNotFoundError("No active game session")

    def validated(params: dict[str, Any]) -> int:
        return _LimitParams.model_validate(params).limit

    def broken(params: dict[str, Any]) -> None:
        raise RuntimeError("boom")

    return {
        "slow": slow,
        "fast": fast,
        "echo": echo,
        "missing_session": missing_session,
        "validated": validated,
        "broken": broken,
    }


@pytest.fixture
async def release() -> asyncio.Event:
    return asyncio.Event()


@pytest.fixture
async def server(release: asyncio.Event) -> AsyncIterator[RpcServer]:
    server = RpcServer(_handlers(release), "127.0.0.1", 0)
    await server.start()
    yield server
    release.set()
    await server.stop()


@pytest.fixture
async def conn(server: RpcServer) -> AsyncIterator[tuple[asyncio.StreamReader, asyncio.StreamWriter]]:
    reader, writer = await asyncio.open_connection("127.0.0.1", server.port)
    yield reader, writer
    writer.close()


async def _send(writer: asyncio.StreamWriter, msg: dict[str, Any] | bytes) -> None:
    writer.write(msg if isinstance(msg, bytes) else encode_ndjson(msg))
    await writer.drain()


async def _recv(reader: asyncio.StreamReader) -> dict[str, Any]:
    line = await asyncio.wait_for(reader.readline(), timeout=2.0)
    return json.loads(line)


class TestDispatch:
    """Tests for method dispatch and replies."""

    async def test_sync_handler_result(self, conn) -> None:
        """A sync handler's return value becomes the result."""
        reader, writer = conn
        await _send(writer, {"id": "1", "method": "fast", "params": {}})
        assert await _recv(reader) == {"id": "1", "result": "fast"}

    async def test_async_handler_result(self, conn) -> None:
        """An async handler is awaited; missing params become {}."""
        reader, writer = conn
        await _send(writer, {"id": "2", "method": "echo"})
        assert await _recv(reader) == {"id": "2", "result": {}}

    async def test_unknown_method(self, conn) -> None:
        """Unknown methods yield -32601."""
        reader, writer = conn
        await _send(writer, {"id": "3", "method": "fly"})
        reply = await _recv(reader)
        assert reply["id"] == "3"
        assert reply["error"]["code"] == ErrorCode.METHOD_NOT_FOUND
        assert "fly" in reply["error"]["message"]

    async def test_bridge_error_keeps_domain_code(self, conn) -> None:
        """Domain errors keep their own code."""
        reader, writer = conn
        await _send(writer, {"id": "4", "method": "missing_session", "params": {}})
        reply = await _recv(reader)
        assert reply["error"] == {"code": -32004, "message": "No active game session"}

    async def test_validation_error_is_invalid_params(self, conn) -> None:
        """pydantic validation failures yield -32602 with details."""
        reader, writer = conn
        await _send(writer, {"id": "5", "method": "validated", "params": {"limit": "x", "extra": 1}})
        reply = await _recv(reader)
        assert reply["error"]["code"] == ErrorCode.INVALID_PARAMS
        assert any(item.startswith("limit") for item in reply["error"]["data"])
        assert any(item.startswith("extra") for item in reply["error"]["data"])

    async def test_non_object_params_rejected(self, conn) -> None:
        """params must be an object."""
        reader, writer = conn
        await _send(writer, {"id": "6", "method": "echo", "params": [1, 2]})
        reply = await _recv(reader)
        assert reply["error"]["code"] == ErrorCode.INVALID_PARAMS

    async def test_unexpected_exception_is_internal_error(self, conn) -> None:
        """Any other exception yields -32603 with its text."""
        reader, writer = conn
        await _send(writer, {"id": "7", "method": "broken", "params": {}})
        reply = await _recv(reader)
        assert reply["error"] == {"code": ErrorCode.INTERNAL_ERROR, "message": "boom"}


class TestMalformedInput:
    """Tests for parse failures."""

    async def test_parse_error_reply_and_connection_survives(self, conn) -> None:
        """A bad line gets id "" and -32700; the next line is still served."""
        reader, writer = conn
        await _send(writer, b"{oops\n")
        await _send(writer, {"id": "8", "method": "fast"})

        assert await _recv(reader) == {"id": "", "error": {"code": -32700, "message": "Parse error"}}
        assert await _recv(reader) == {"id": "8", "result": "fast"}

    async def test_fragmented_request(self, conn) -> None:
        """A request split over several writes is handled once complete."""
        reader, writer = conn
        data = encode_ndjson({"id": "9", "method": "echo", "params": {"a": 1}})
        await _send(writer, data[:7])
        await asyncio.sleep(0.01)
        await _send(writer, data[7:])
        assert await _recv(reader) == {"id": "9", "result": {"a": 1}}


class TestConcurrency:
    """Tests for overlapping requests on one connection."""

    async def test_slow_request_does_not_block_fast_one(self, conn, release: asyncio.Event) -> None:
        """Replies are written as handlers finish, not in request order."""
        reader, writer = conn
        await _send(writer, {"id": "slow-1", "method": "slow"})
        await _send(writer, {"id": "fast-1", "method": "fast"})

        assert await _recv(reader) == {"id": "fast-1", "result": "fast"}
        release.set()
        assert await _recv(reader) == {"id": "slow-1", "result": "slow"}

    async def test_notification_gets_no_reply(self, conn) -> None:
        """Messages without an id are dispatched silently."""
        reader, writer = conn
        await _send(writer, {"method": "fast"})
        await _send(writer, {"id": "10", "method": "fast"})
        assert await _recv(reader) == {"id": "10", "result": "fast"}


class TestLifecycle:
    """Tests for start/stop."""

    async def test_stop_closes_connections(self, server: RpcServer, conn) -> None:
        """stop() closes every accepted connection."""
        reader, _ = conn
        await asyncio.sleep(0.02)
        assert server.connection_count == 1

        await server.stop()

        assert await asyncio.wait_for(reader.read(), timeout=2.0) == b""
        assert server.connection_count == 0

    async def test_methods_listed(self, server: RpcServer) -> None:
        """Registered method names are exposed."""
        assert set(server.methods) == {"slow", "fast", "echo", "missing_session", "validated", "broken"}
