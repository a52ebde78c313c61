"""Bridge server (host side).

Handles:
- Accepting front-end connections on the bridge TCP port
- Line framing and JSON parsing per connection
- Dispatching requests to the bound method table
- Writing back result or error replies

Each request is handled in its own task, so a slow operation (a launch
waiting for the game client) never blocks a status query on the same
connection. Replies carry the request id and may be written out of order.
A line that cannot be parsed is answered with a parse error whose id is
"" and the connection stays open.
"""

from __future__ import annotations

__all__ = [
    "RpcHandler",
    "RpcServer",
    "format_validation_errors",
]

import asyncio
import inspect
import logging
from collections.abc import Awaitable, Callable, Mapping
from typing import Any

from pydantic import ValidationError

from y3_bridge.bridge.protocol import (
    LineFramer,
    decode_ndjson,
    encode_ndjson,
    make_error,
    make_result,
)
from y3_bridge.constants import APP_NAME, READ_CHUNK_BYTES
from y3_bridge.exceptions import BridgeError, ErrorCode, MethodNotFoundError
from y3_bridge.log_config import log_event
from y3_bridge.models import BridgeSystemEvent

_logger = logging.getLogger(f"{APP_NAME}.bridge.server")

# Handler type: receives params dict, returns the result (sync or async)
RpcHandler = Callable[[dict[str, Any]], "Awaitable[Any] | Any"]


class RpcServer:
    """Serves a fixed method table over newline-delimited JSON.

    Usage:
        server = RpcServer({"get_game_status": handle_status}, "127.0.0.1", 25897)
        await server.start()
        ...
        await server.stop()
    """

    def __init__(self, handlers: Mapping[str, RpcHandler], host: str, port: int) -> None:
        """Initialize the server.

        Args:
            handlers: Method name to handler mapping.
            host: Address to listen on.
            port: TCP port to listen on (0 picks a free port).
        """
        self._handlers = dict(handlers)
        self._host = host
        self._port = port
        self._server: asyncio.AbstractServer | None = None
        self._connections: set[asyncio.StreamWriter] = set()
        self._tasks: set[asyncio.Task[None]] = set()

    @property
    def methods(self) -> list[str]:
        """Registered method names."""
        return list(self._handlers)

    @property
    def port(self) -> int:
        """Port actually bound (differs from the configured one when 0)."""
        if self._server is not None and self._server.sockets:
            return self._server.sockets[0].getsockname()[1]
        return self._port

    @property
    def connection_count(self) -> int:
        """Number of open front-end connections."""
        return len(self._connections)

    async def start(self) -> None:
        """Start listening.

        Raises:
            OSError: If the address is already in use.
        """
        self._server = await asyncio.start_server(self._handle_connection, self._host, self._port)
        log_event(
            logging.INFO,
            BridgeSystemEvent(
                event="bridge_listening",
                message=f"Bridge listening on {self._host}:{self.port}",
                details={"methods": self.methods},
            ),
            _logger,
        )

    async def stop(self) -> None:
        """Stop listening, close every connection and cancel running handlers."""
        if self._server is not None:
            self._server.close()

        for writer in list(self._connections):
            writer.close()
        self._connections.clear()

        for task in list(self._tasks):
            task.cancel()
        if self._tasks:
            await asyncio.gather(*self._tasks, return_exceptions=True)
        self._tasks.clear()

        if self._server is not None:
            await self._server.wait_closed()
            self._server = None

    async def dispatch(self, message: dict[str, Any]) -> dict[str, Any]:
        """Run one request and build its reply.

        Args:
            message: Decoded request with id, method and optional params.

        Returns:
            Result or error reply carrying the request id.
        """
        request_id = message.get("id", "")
        method = message.get("method")
        params = message.get("params")

        if not isinstance(method, str) or not method:
            return make_error(request_id, {"code": ErrorCode.INVALID_REQUEST, "message": "Missing method name"})
        if params is None:
            params = {}
        if not isinstance(params, dict):
            return make_error(
                request_id,
                {"code": ErrorCode.INVALID_PARAMS, "message": "params must be an object"},
            )

        try:
            handler = self._handlers.get(method)
            if handler is None:
                raise MethodNotFoundError(f"Unknown method: {method}")
            result = handler(params)
            if inspect.isawaitable(result):
                result = await result
            return make_result(request_id, result)
        except BridgeError as e:
            log_event(
                logging.WARNING,
                BridgeSystemEvent(
                    event="rpc_request_failed",
                    message=f"{method} failed: {e.message}",
                    method=method,
                    request_id=str(request_id),
                    error_type=type(e).__name__,
                    error_message=e.message,
                ),
                _logger,
            )
            return make_error(request_id, e.to_json_rpc_error())
        except ValidationError as e:
            return make_error(
                request_id,
                {
                    "code": ErrorCode.INVALID_PARAMS,
                    "message": f"Invalid params for {method}",
                    "data": format_validation_errors(e),
                },
            )
        except Exception as e:
            _logger.exception(
                {
                    "event": "rpc_handler_error",
                    "message": f"Unexpected error in {method}: {e}",
                    "method": method,
                    "request_id": str(request_id),
                    "error_type": type(e).__name__,
                }
            )
            return make_error(request_id, {"code": ErrorCode.INTERNAL_ERROR, "message": str(e)})

    async def _handle_connection(self, reader: asyncio.StreamReader, writer: asyncio.StreamWriter) -> None:
        """Handle one front-end connection until EOF."""
        peer = _format_peer(writer)
        self._connections.add(writer)
        log_event(
            logging.INFO,
            BridgeSystemEvent(event="bridge_client_connected", message=f"Bridge client connected: {peer}", peer=peer),
            _logger,
        )

        framer = LineFramer()
        try:
            while True:
                chunk = await reader.read(READ_CHUNK_BYTES)
                if not chunk:
                    break
                for line in framer.feed(chunk):
                    await self._handle_line(line, writer, peer)
        except (ConnectionResetError, BrokenPipeError, OSError) as e:
            log_event(
                logging.WARNING,
                BridgeSystemEvent(
                    event="bridge_connection_error",
                    message=f"Bridge connection error: {e}",
                    peer=peer,
                    error_type=type(e).__name__,
                    error_message=str(e),
                ),
                _logger,
            )
        finally:
            # Handlers still running keep going; their replies are dropped
            self._connections.discard(writer)
            try:
                writer.close()
                await writer.wait_closed()
            except OSError:
                pass
            log_event(
                logging.INFO,
                BridgeSystemEvent(
                    event="bridge_client_disconnected",
                    message=f"Bridge client disconnected: {peer}",
                    peer=peer,
                ),
                _logger,
            )

    async def _handle_line(self, line: bytes, writer: asyncio.StreamWriter, peer: str) -> None:
        msg = decode_ndjson(line)
        if msg is None:
            log_event(
                logging.WARNING,
                BridgeSystemEvent(
                    event="bridge_parse_error",
                    message="Invalid JSON from bridge client",
                    peer=peer,
                    details={"line": line[:200].decode("utf-8", errors="replace")},
                ),
                _logger,
            )
            await _send(
                writer,
                make_error("", {"code": ErrorCode.PARSE_ERROR, "message": "Parse error"}),
            )
            return

        task = asyncio.create_task(self._respond(msg, writer))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    async def _respond(self, msg: dict[str, Any], writer: asyncio.StreamWriter) -> None:
        reply = await self.dispatch(msg)
        if "id" not in msg:
            return  # Notification
        await _send(writer, reply)


async def _send(writer: asyncio.StreamWriter, msg: dict[str, Any]) -> None:
    """Write one message; a closed connection drops it silently."""
    if writer.is_closing():
        return
    try:
        writer.write(encode_ndjson(msg))
        await writer.drain()
    except (ConnectionResetError, BrokenPipeError, OSError):
        pass  # Front end went away; nothing to deliver to


def _format_peer(writer: asyncio.StreamWriter) -> str:
    peername = writer.get_extra_info("peername")
    if isinstance(peername, tuple) and len(peername) >= 2:
        return f"{peername[0]}:{peername[1]}"
    return str(peername)


def format_validation_errors(error: ValidationError) -> list[str]:
    """Flatten pydantic errors into "field: message" strings."""
    messages = []
    for item in error.errors():
        loc = ".".join(str(part) for part in item["loc"])
        messages.append(f"{loc}: {item['msg']}" if loc else item["msg"])
    return messages
