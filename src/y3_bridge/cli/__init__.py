"""Command-line interface for y3-bridge.

Provides commands for running the MCP front end and inspecting the tool
catalogue, session logs and configuration.
"""

from .main import cli, main

__all__ = ["cli", "main"]
