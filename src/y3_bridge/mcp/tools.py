"""Tool catalogue exposed to MCP clients.

The catalogue is static: six game operations, each with a description and
an inputSchema generated from its parameter model. Calls are validated
against the same model and then forwarded over the bridge under the same
method name.
"""

from __future__ import annotations

__all__ = [
    "TOOL_DESCRIPTIONS",
    "ToolRegistry",
    "build_tools",
]

from typing import TYPE_CHECKING, Any

from mcp.types import Tool
from pydantic import BaseModel, ValidationError

from y3_bridge.bridge.server import format_validation_errors
from y3_bridge.exceptions import InvalidParamsError
from y3_bridge.session.params import OPERATION_PARAMS

if TYPE_CHECKING:
    from y3_bridge.bridge.client import RpcClient


TOOL_DESCRIPTIONS: dict[str, str] = {
    "launch_game": "Launch the Y3 game.",
    "get_logs": "Get the game console log. Returns the most recent log lines.",
    "execute_lua": (
        "Run Lua code in the running game. The code runs in the game's Lua "
        "environment and can use the game API."
    ),
    "stop_game": "Stop the current game session.",
    "get_game_status": "Get the game status: whether it is running, the session ID and uptime.",
    "quick_restart": (
        "Quick restart (.rr command). Reloads all Lua scripts without restarting "
        "the game process. Useful for testing code changes."
    ),
}


def _input_schema(model: type[BaseModel]) -> dict[str, Any]:
    schema = model.model_json_schema()
    schema.pop("title", None)
    schema.pop("description", None)
    schema.setdefault("properties", {})
    return schema


def build_tools() -> list[Tool]:
    """Build the tool definitions in catalogue order."""
    return [
        Tool(name=name, description=description, inputSchema=_input_schema(OPERATION_PARAMS[name]))
        for name, description in TOOL_DESCRIPTIONS.items()
    ]


class ToolRegistry:
    """Lists the game tools and forwards calls to the host.

    Usage:
        registry = ToolRegistry(rpc_client)
        registry.list_tools()
        await registry.call_tool("get_logs", {"limit": 20})
    """

    def __init__(self, client: RpcClient) -> None:
        self._client = client
        self._tools = {tool.name: tool for tool in build_tools()}

    def list_tools(self) -> list[Tool]:
        return list(self._tools.values())

    def has_tool(self, name: str) -> bool:
        return name in self._tools

    def validate_arguments(self, name: str, arguments: dict[str, Any] | None) -> dict[str, Any]:
        """Check arguments against the tool's parameter model.

        Args:
            name: Tool name.
            arguments: Raw arguments from tools/call.

        Returns:
            Arguments as sent over the bridge (only fields the caller set).

        Raises:
            InvalidParamsError: Unknown tool, or arguments that do not validate.
        """
        model = OPERATION_PARAMS.get(name)
        if model is None or name not in self._tools:
            raise InvalidParamsError(f"Unknown tool: {name}")

        try:
            params = model.model_validate(arguments or {})
        except ValidationError as e:
            raise InvalidParamsError(
                f"Invalid arguments for {name}",
                data=format_validation_errors(e),
            ) from e
        return params.model_dump(mode="json", exclude_unset=True)

    async def call_tool(self, name: str, arguments: dict[str, Any] | None = None) -> Any:
        """Validate and forward a tool call to the host.

        Returns:
            The host's result payload.

        Raises:
            InvalidParamsError: If validation fails (nothing is sent).
            BridgeError: Any error from the bridge call itself.
        """
        validated = self.validate_arguments(name, arguments)
        return await self._client.call(name, validated)
