"""Stdio transport for the MCP front end.

Reads newline-delimited JSON-RPC envelopes from stdin and writes responses
to stdout, one JSON object per line. Every request is handled in its own
task, so a long tool call (launch_game) does not hold up a ping or a
status query. A line that cannot be parsed gets a parse error with a null id.

stdout carries only protocol messages; all logging goes to stderr.
"""

from __future__ import annotations

__all__ = [
    "StdioTransport",
]

import asyncio
import logging
import sys
from typing import TYPE_CHECKING, Any, BinaryIO

from y3_bridge.bridge.protocol import LineFramer, decode_ndjson, encode_ndjson
from y3_bridge.constants import APP_NAME, JSONRPC_VERSION, READ_CHUNK_BYTES
from y3_bridge.exceptions import ErrorCode
from y3_bridge.log_config import log_event
from y3_bridge.models import BridgeSystemEvent

if TYPE_CHECKING:
    from y3_bridge.mcp.router import ProtocolRouter

_logger = logging.getLogger(f"{APP_NAME}.mcp.stdio")


async def _connect_stdin_reader() -> asyncio.StreamReader:
    loop = asyncio.get_running_loop()
    reader = asyncio.StreamReader()
    protocol = asyncio.StreamReaderProtocol(reader)
    await loop.connect_read_pipe(lambda: protocol, sys.stdin.buffer)
    return reader


class StdioTransport:
    """Serves a ProtocolRouter over a byte stream pair.

    Usage:
        transport = StdioTransport(router)
        await transport.run()  # returns when stdin reaches EOF
    """

    def __init__(
        self,
        router: ProtocolRouter,
        *,
        reader: asyncio.StreamReader | None = None,
        output: BinaryIO | None = None,
    ) -> None:
        """Initialize the transport.

        Args:
            router: Handles decoded envelopes.
            reader: Input stream. Defaults to stdin.
            output: Binary output. Defaults to stdout.
        """
        self._router = router
        self._reader = reader
        self._output = output
        self._tasks: set[asyncio.Task[None]] = set()

    async def run(self) -> None:
        """Serve until the input reaches EOF, then finish in-flight requests."""
        reader = self._reader or await _connect_stdin_reader()
        framer = LineFramer()

        while True:
            chunk = await reader.read(READ_CHUNK_BYTES)
            if not chunk:
                break
            for line in framer.feed(chunk):
                self._handle_line(line)

        log_event(
            logging.INFO,
            BridgeSystemEvent(event="stdin_closed", message="Stdin closed, exiting"),
            _logger,
        )
        if self._tasks:
            await asyncio.gather(*self._tasks, return_exceptions=True)

    def _handle_line(self, line: bytes) -> None:
        request = decode_ndjson(line)
        if request is None:
            log_event(
                logging.WARNING,
                BridgeSystemEvent(
                    event="mcp_parse_error",
                    message="Failed to parse request from stdin",
                    details={"line": line[:200].decode("utf-8", errors="replace")},
                ),
                _logger,
            )
            self.send(
                {
                    "jsonrpc": JSONRPC_VERSION,
                    "id": None,
                    "error": {"code": int(ErrorCode.PARSE_ERROR), "message": "Parse error"},
                }
            )
            return

        task = asyncio.create_task(self._respond(request))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    async def _respond(self, request: dict[str, Any]) -> None:
        response = await self._router.handle_request(request)
        if response is not None:
            self.send(response)

    def send(self, message: dict[str, Any]) -> None:
        """Write one message and flush."""
        output = self._output or sys.stdout.buffer
        output.write(encode_ndjson(message))
        output.flush()
