"""Bridge client (front-end side).

Handles the front end's calls into the host over one persistent stream:
- Connection to the host's TCP listener
- Correlated requests with per-call deadlines
- One-way notifications
- Failing every in-flight call when the connection drops

Protocol (NDJSON, see bridge.protocol):
- Client sends: {"id": "3", "method": "execute_lua", "params": {"code": "..."}}
- Host sends:   {"id": "3", "result": {...}} or {"id": "3", "error": {...}}
- Replies may arrive in any order; correlation is by id only
"""

from __future__ import annotations

__all__ = [
    "RpcClient",
]

import asyncio
import itertools
import logging
from typing import Any

from y3_bridge.bridge.pending import PendingCallTable
from y3_bridge.bridge.protocol import (
    LineFramer,
    decode_ndjson,
    encode_ndjson,
    make_notification,
    make_request,
)
from y3_bridge.constants import (
    APP_NAME,
    DEFAULT_CALL_TIMEOUT_SECONDS,
    DEFAULT_CONNECT_TIMEOUT_SECONDS,
    READ_CHUNK_BYTES,
)
from y3_bridge.exceptions import ConnectionClosedError, IpcConnectionError, RemoteCallError
from y3_bridge.log_config import log_event
from y3_bridge.models import BridgeSystemEvent

_logger = logging.getLogger(f"{APP_NAME}.bridge.client")


class RpcClient:
    """Caller side of the bridge.

    Usage:
        client = RpcClient("127.0.0.1", 25897)
        await client.connect()

        status = await client.call("get_game_status")
        await client.notify("command", {"data": "print(1)"})

        await client.close()
    """

    def __init__(
        self,
        host: str,
        port: int,
        *,
        call_timeout: float = DEFAULT_CALL_TIMEOUT_SECONDS,
        connect_timeout: float = DEFAULT_CONNECT_TIMEOUT_SECONDS,
    ) -> None:
        """Initialize bridge client.

        Args:
            host: Host address to connect to.
            port: TCP port to connect to.
            call_timeout: Default deadline for call() in seconds.
            connect_timeout: Deadline for establishing the connection.
        """
        self._host = host
        self._port = port
        self._call_timeout = call_timeout
        self._connect_timeout = connect_timeout
        self._reader: asyncio.StreamReader | None = None
        self._writer: asyncio.StreamWriter | None = None
        self._read_task: asyncio.Task[None] | None = None
        self._pending = PendingCallTable()
        self._ids = itertools.count(1)

    @property
    def connected(self) -> bool:
        """Check if the bridge connection is open."""
        return self._writer is not None

    @property
    def pending_count(self) -> int:
        """Number of calls awaiting a reply."""
        return len(self._pending)

    async def connect(self) -> None:
        """Connect to the host.

        Raises:
            IpcConnectionError: If the host is not reachable in time.
        """
        if self.connected:
            return

        try:
            reader, writer = await asyncio.wait_for(
                asyncio.open_connection(self._host, self._port),
                timeout=self._connect_timeout,
            )
        except asyncio.TimeoutError as e:
            raise IpcConnectionError(
                f"Timeout connecting to bridge at {self._host}:{self._port}"
            ) from e
        except OSError as e:
            raise IpcConnectionError(
                f"Cannot connect to bridge at {self._host}:{self._port}: {e}",
                data={"error_type": type(e).__name__},
            ) from e

        self.attach(reader, writer)
        log_event(
            logging.INFO,
            BridgeSystemEvent(
                event="bridge_connected",
                message=f"Connected to bridge at {self._host}:{self._port}",
                peer=f"{self._host}:{self._port}",
            ),
            _logger,
        )

    def attach(self, reader: asyncio.StreamReader, writer: asyncio.StreamWriter) -> None:
        """Use an already-open stream pair and start reading replies.

        Args:
            reader: Stream replies are read from.
            writer: Stream requests are written to.
        """
        self._reader = reader
        self._writer = writer
        self._read_task = asyncio.create_task(self._read_loop())

    async def call(
        self,
        method: str,
        params: dict[str, Any] | None = None,
        *,
        timeout: float | None = None,
    ) -> Any:
        """Send a request and wait for its reply.

        Args:
            method: Remote method name.
            params: Method parameters.
            timeout: Overrides the default call deadline.

        Returns:
            The reply's result member.

        Raises:
            IpcConnectionError: If not connected.
            RemoteCallError: If the reply carries an error object.
            RpcTimeoutError: If no reply arrives before the deadline.
            ConnectionClosedError: If the connection drops first.
        """
        writer = self._writer
        if writer is None:
            raise IpcConnectionError("Not connected to bridge")

        request_id = str(next(self._ids))
        entry = self._pending.register(
            request_id,
            method,
            timeout if timeout is not None else self._call_timeout,
        )

        try:
            writer.write(encode_ndjson(make_request(request_id, method, params)))
            await writer.drain()
        except (ConnectionResetError, BrokenPipeError, OSError) as e:
            self._pending.discard(request_id)
            raise ConnectionClosedError(f"Connection closed while sending {method}: {e}") from e

        try:
            return await entry.future
        except asyncio.CancelledError:
            self._pending.discard(request_id)
            raise

    async def notify(self, method: str, params: dict[str, Any] | None = None) -> None:
        """Send a one-way notification; no reply is tracked.

        Raises:
            IpcConnectionError: If not connected.
        """
        writer = self._writer
        if writer is None:
            raise IpcConnectionError("Not connected to bridge")
        writer.write(encode_ndjson(make_notification(method, params)))
        await writer.drain()

    async def close(self) -> None:
        """Close the connection and fail all in-flight calls."""
        if self._read_task is not None:
            self._read_task.cancel()
            try:
                await self._read_task
            except asyncio.CancelledError:
                pass
            self._read_task = None
        await self._release()

    async def _read_loop(self) -> None:
        """Read replies until EOF or error, then release the connection."""
        framer = LineFramer()
        reader = self._reader
        try:
            while reader is not None:
                chunk = await reader.read(READ_CHUNK_BYTES)
                if not chunk:
                    break
                for line in framer.feed(chunk):
                    self._handle_line(line)
        except (ConnectionResetError, BrokenPipeError, OSError) as e:
            log_event(
                logging.WARNING,
                BridgeSystemEvent(
                    event="bridge_read_error",
                    message=f"Error reading from bridge: {e}",
                    error_type=type(e).__name__,
                    error_message=str(e),
                ),
                _logger,
            )
        self._read_task = None
        await self._release()

    def _handle_line(self, line: bytes) -> None:
        msg = decode_ndjson(line)
        if msg is None:
            log_event(
                logging.WARNING,
                BridgeSystemEvent(
                    event="bridge_invalid_json",
                    message="Discarding unparseable line from bridge",
                    details={"line": line[:200].decode("utf-8", errors="replace")},
                ),
                _logger,
            )
            return

        request_id = msg.get("id")
        if not isinstance(request_id, str):
            request_id = str(request_id) if request_id is not None else ""

        if "error" in msg and msg["error"] is not None:
            settled = self._pending.reject(request_id, RemoteCallError.from_error_object(msg["error"]))
        else:
            settled = self._pending.resolve(request_id, msg.get("result"))

        if not settled:
            # Late reply after timeout, or a reply to a notification
            log_event(
                logging.DEBUG,
                BridgeSystemEvent(
                    event="bridge_unmatched_reply",
                    message=f"Ignoring reply with no pending call: id={request_id!r}",
                    request_id=request_id,
                ),
                _logger,
            )

    async def _release(self) -> None:
        writer = self._writer
        self._reader = None
        self._writer = None

        rejected = self._pending.reject_all(ConnectionClosedError("Connection closed"))
        if rejected:
            log_event(
                logging.WARNING,
                BridgeSystemEvent(
                    event="bridge_closed_with_pending",
                    message=f"Bridge connection closed with {rejected} call(s) in flight",
                    details={"rejected": rejected},
                ),
                _logger,
            )

        if writer is not None:
            try:
                writer.close()
                await writer.wait_closed()
            except OSError:
                pass  # Already closed
