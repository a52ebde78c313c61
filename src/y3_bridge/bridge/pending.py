"""Pending call bookkeeping for correlated bridge requests.

This module provides the internal table that correlates sent requests
with their replies. Each PendingCall wraps an asyncio future plus a
deadline timer.

The typical lifecycle is:
1. register() creates the entry and arms the deadline timer
2. The caller awaits entry.future
3. resolve()/reject() on reply, or the timer fires and rejects with
   RpcTimeoutError, or reject_all() on connection close
4. The entry is removed; later attempts to settle it are no-ops
"""

from __future__ import annotations

__all__ = [
    "PendingCall",
    "PendingCallTable",
]

import asyncio
import time
from dataclasses import dataclass, field
from typing import Any

from y3_bridge.exceptions import RpcTimeoutError


@dataclass
class PendingCall:
    """One in-flight request.

    Attributes:
        id: Correlation ID sent on the wire.
        method: Method name (for error messages and logging).
        created_at: Monotonic time the call was registered.
        deadline: Monotonic time after which the call times out.
        future: Receives the result or the error.
    """

    id: str
    method: str
    created_at: float
    deadline: float
    future: asyncio.Future[Any]
    _timer: asyncio.TimerHandle | None = field(default=None, repr=False)


class PendingCallTable:
    """In-flight requests of one bridge connection, keyed by ID.

    At most one entry exists per ID. Every settle operation removes the
    entry first, so a late reply after a timeout (or a second reply for
    the same ID) finds nothing and is ignored.
    """

    def __init__(self) -> None:
        self._calls: dict[str, PendingCall] = {}

    def __len__(self) -> int:
        return len(self._calls)

    def __contains__(self, request_id: object) -> bool:
        return request_id in self._calls

    def register(self, request_id: str, method: str, timeout: float) -> PendingCall:
        """Create an entry and arm its deadline.

        Args:
            request_id: Correlation ID.
            method: Method being called.
            timeout: Seconds until the call is rejected with RpcTimeoutError.

        Returns:
            The new PendingCall; await its future for the outcome.

        Raises:
            ValueError: If an entry with this ID already exists.
        """
        if request_id in self._calls:
            raise ValueError(f"Duplicate pending call id: {request_id}")

        loop = asyncio.get_running_loop()
        now = time.monotonic()
        call = PendingCall(
            id=request_id,
            method=method,
            created_at=now,
            deadline=now + timeout,
            future=loop.create_future(),
        )
        call._timer = loop.call_later(timeout, self._expire, request_id)
        self._calls[request_id] = call
        return call

    def resolve(self, request_id: str, result: Any) -> bool:
        """Settle an entry with a result.

        Returns:
            True if an entry was found and settled, False otherwise.
        """
        call = self._pop(request_id)
        if call is None:
            return False
        if not call.future.done():
            call.future.set_result(result)
        return True

    def reject(self, request_id: str, error: BaseException) -> bool:
        """Settle an entry with an error.

        Returns:
            True if an entry was found and settled, False otherwise.
        """
        call = self._pop(request_id)
        if call is None:
            return False
        if not call.future.done():
            call.future.set_exception(error)
        return True

    def discard(self, request_id: str) -> None:
        """Remove an entry without settling it (e.g. the send failed)."""
        self._pop(request_id)

    def reject_all(self, error: BaseException) -> int:
        """Reject every entry with the same error and clear the table.

        Returns:
            Number of entries rejected.
        """
        ids = list(self._calls)
        for request_id in ids:
            self.reject(request_id, error)
        return len(ids)

    def _pop(self, request_id: str) -> PendingCall | None:
        call = self._calls.pop(request_id, None)
        if call is not None and call._timer is not None:
            call._timer.cancel()
        return call

    def _expire(self, request_id: str) -> None:
        call = self._calls.get(request_id)
        if call is None:
            return
        self.reject(request_id, RpcTimeoutError(f"Request timeout: {call.method}"))
