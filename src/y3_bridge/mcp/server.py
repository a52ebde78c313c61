"""MCP front-end process.

Connects to the host's bridge, then serves MCP over stdio until stdin
closes. Launched by an MCP client (e.g. an AI assistant) as a subprocess.
"""

from __future__ import annotations

__all__ = [
    "run_stdio_server",
]

import asyncio
import logging
from typing import BinaryIO

from y3_bridge.bridge.client import RpcClient
from y3_bridge.config import BridgeConfig
from y3_bridge.constants import APP_NAME
from y3_bridge.log_config import log_event
from y3_bridge.mcp.router import ProtocolRouter
from y3_bridge.mcp.stdio import StdioTransport
from y3_bridge.mcp.tools import ToolRegistry
from y3_bridge.models import BridgeSystemEvent

_logger = logging.getLogger(f"{APP_NAME}.mcp")


async def run_stdio_server(
    config: BridgeConfig,
    *,
    reader: asyncio.StreamReader | None = None,
    output: BinaryIO | None = None,
) -> None:
    """Run the front end until stdin reaches EOF.

    Args:
        config: Bridge address and timeouts.
        reader: Input stream. Defaults to stdin.
        output: Binary output. Defaults to stdout.

    Raises:
        IpcConnectionError: If the host's bridge is not reachable.
    """
    log_event(
        logging.INFO,
        BridgeSystemEvent(event="mcp_starting", message="Starting MCP server"),
        _logger,
    )

    client = RpcClient(
        config.host,
        config.port,
        call_timeout=config.call_timeout_seconds,
        connect_timeout=config.connect_timeout_seconds,
    )
    await client.connect()

    try:
        router = ProtocolRouter(ToolRegistry(client), config)
        transport = StdioTransport(router, reader=reader, output=output)
        log_event(
            logging.INFO,
            BridgeSystemEvent(event="mcp_started", message="MCP server started"),
            _logger,
        )
        await transport.run()
    finally:
        await client.close()
        log_event(
            logging.INFO,
            BridgeSystemEvent(event="mcp_stopped", message="MCP server stopped"),
            _logger,
        )
