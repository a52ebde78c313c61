"""Tests for the pending call table.

Tests correlation bookkeeping: settle-once semantics, deadlines and
bulk rejection on connection close.
"""

from __future__ import annotations

import asyncio

import pytest

from y3_bridge.bridge.pending import PendingCallTable
from y3_bridge.exceptions import ConnectionClosedError, RpcTimeoutError


class TestRegister:
    """Tests for PendingCallTable.register()."""

    async def test_register_tracks_entry(self) -> None:
        """A registered call is present until settled."""
        table = PendingCallTable()
        call = table.register("1", "get_logs", timeout=5.0)

        assert "1" in table
        assert len(table) == 1
        assert call.method == "get_logs"
        assert call.deadline > call.created_at
        assert not call.future.done()
        table.discard("1")

    async def test_duplicate_id_rejected(self) -> None:
        """At most one entry may exist per id."""
        table = PendingCallTable()
        table.register("1", "a", timeout=5.0)

        with pytest.raises(ValueError, match="Duplicate"):
            table.register("1", "b", timeout=5.0)
        table.discard("1")


class TestSettle:
    """Tests for resolve()/reject()/discard()."""

    async def test_resolve_sets_result_and_removes(self) -> None:
        """resolve() settles the future and removes the entry."""
        table = PendingCallTable()
        call = table.register("1", "get_game_status", timeout=5.0)

        assert table.resolve("1", {"running": False}) is True
        assert await call.future == {"running": False}
        assert "1" not in table

    async def test_second_resolve_is_noop(self) -> None:
        """Settling an already-removed entry returns False."""
        table = PendingCallTable()
        call = table.register("1", "m", timeout=5.0)
        table.resolve("1", "first")

        assert table.resolve("1", "second") is False
        assert table.reject("1", RuntimeError("late")) is False
        assert await call.future == "first"

    async def test_unknown_id_is_ignored(self) -> None:
        """Replies for ids never registered are ignored."""
        table = PendingCallTable()
        assert table.resolve("missing", None) is False

    async def test_reject_sets_exception(self) -> None:
        """reject() settles the future with the error."""
        table = PendingCallTable()
        call = table.register("1", "m", timeout=5.0)
        table.reject("1", ConnectionClosedError("gone"))

        with pytest.raises(ConnectionClosedError):
            await call.future

    async def test_discard_leaves_future_unsettled(self) -> None:
        """discard() only removes the bookkeeping."""
        table = PendingCallTable()
        call = table.register("1", "m", timeout=5.0)
        table.discard("1")

        assert "1" not in table
        assert not call.future.done()


class TestDeadline:
    """Tests for per-call timeouts."""

    async def test_expired_call_rejects_with_timeout(self) -> None:
        """A call without a reply rejects with RpcTimeoutError and is removed."""
        table = PendingCallTable()
        call = table.register("1", "launch_game", timeout=0.02)

        with pytest.raises(RpcTimeoutError, match="Request timeout: launch_game"):
            await call.future
        assert len(table) == 0

    async def test_reply_after_timeout_is_noop(self) -> None:
        """A late reply after expiry does not resolve twice."""
        table = PendingCallTable()
        call = table.register("1", "m", timeout=0.01)
        await asyncio.sleep(0.05)

        assert table.resolve("1", "late") is False
        assert isinstance(call.future.exception(), RpcTimeoutError)

    async def test_settled_call_does_not_expire(self) -> None:
        """Resolving cancels the deadline timer."""
        table = PendingCallTable()
        call = table.register("1", "m", timeout=0.02)
        table.resolve("1", "ok")
        await asyncio.sleep(0.05)

        assert call.future.result() == "ok"


class TestRejectAll:
    """Tests for reject_all()."""

    async def test_rejects_every_entry(self) -> None:
        """All outstanding calls fail with the same error and the table clears."""
        table = PendingCallTable()
        calls = [table.register(str(i), "m", timeout=5.0) for i in range(3)]

        assert table.reject_all(ConnectionClosedError("Connection closed")) == 3
        assert len(table) == 0
        for call in calls:
            assert isinstance(call.future.exception(), ConnectionClosedError)

    async def test_empty_table(self) -> None:
        """Nothing to reject returns zero."""
        assert PendingCallTable().reject_all(ConnectionClosedError("x")) == 0
