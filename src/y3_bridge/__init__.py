"""y3-bridge: game session bridge between an MCP front end and the editor host."""

__version__ = "1.0.0"
