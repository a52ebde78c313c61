"""MCP front end: JSON-RPC over stdio, forwarding tool calls to the host.

- tools.py: Static tool catalogue and argument validation
- router.py: Envelope validation and method dispatch
- stdio.py: Line transport over stdin/stdout
- server.py: Process wiring (bridge connection + transport)
"""

from .router import ProtocolRouter
from .server import run_stdio_server
from .stdio import StdioTransport
from .tools import TOOL_DESCRIPTIONS, ToolRegistry, build_tools

__all__ = [
    "ProtocolRouter",
    "StdioTransport",
    "TOOL_DESCRIPTIONS",
    "ToolRegistry",
    "build_tools",
    "run_stdio_server",
]
