"""Tests for the tool catalogue and argument validation."""

from __future__ import annotations

from unittest.mock import AsyncMock

import pytest

from y3_bridge.exceptions import ErrorCode, InvalidParamsError
from y3_bridge.mcp.tools import TOOL_DESCRIPTIONS, ToolRegistry, build_tools


@pytest.fixture
def rpc_client() -> AsyncMock:
    client = AsyncMock()
    client.call.return_value = {"success": True}
    return client


@pytest.fixture
def tool_registry(rpc_client: AsyncMock) -> ToolRegistry:
    return ToolRegistry(rpc_client)


class TestCatalogue:
    """Tests for build_tools()."""

    def test_six_tools_in_order(self) -> None:
        """The catalogue lists the six game operations."""
        names = [tool.name for tool in build_tools()]
        assert names == [
            "launch_game",
            "get_logs",
            "execute_lua",
            "stop_game",
            "get_game_status",
            "quick_restart",
        ]
        assert names == list(TOOL_DESCRIPTIONS)

    def test_execute_lua_requires_code(self) -> None:
        """execute_lua declares code as a required string."""
        tool = {t.name: t for t in build_tools()}["execute_lua"]

        assert tool.inputSchema["type"] == "object"
        assert tool.inputSchema["required"] == ["code"]
        assert tool.inputSchema["properties"]["code"]["type"] == "string"

    def test_parameterless_tools_have_empty_properties(self) -> None:
        """Tools without parameters still advertise an object schema."""
        tools = {t.name: t for t in build_tools()}
        for name in ("stop_game", "get_game_status", "quick_restart"):
            schema = tools[name].inputSchema
            assert schema["type"] == "object"
            assert schema["properties"] == {}
            assert "required" not in schema

    def test_launch_game_options(self) -> None:
        """launch_game advertises its three optional fields."""
        schema = {t.name: t for t in build_tools()}["launch_game"].inputSchema
        assert set(schema["properties"]) == {"multi_mode", "multi_players", "tracy"}
        assert "required" not in schema

    def test_get_logs_default_limit(self) -> None:
        """get_logs documents the default of 100 lines."""
        schema = {t.name: t for t in build_tools()}["get_logs"].inputSchema
        assert schema["properties"]["limit"]["default"] == 100


class TestValidateArguments:
    """Tests for ToolRegistry.validate_arguments()."""

    def test_only_set_fields_are_forwarded(self, tool_registry: ToolRegistry) -> None:
        """Defaults stay implicit so the host applies its own."""
        assert tool_registry.validate_arguments("launch_game", {"tracy": True}) == {"tracy": True}
        assert tool_registry.validate_arguments("get_game_status", None) == {}

    def test_unknown_tool(self, tool_registry: ToolRegistry) -> None:
        """Unknown names are invalid params."""
        with pytest.raises(InvalidParamsError, match="Unknown tool: fly"):
            tool_registry.validate_arguments("fly", {})

    def test_missing_required_field(self, tool_registry: ToolRegistry) -> None:
        """A missing required field is reported by location."""
        with pytest.raises(InvalidParamsError) as exc_info:
            tool_registry.validate_arguments("execute_lua", {})

        assert exc_info.value.code == ErrorCode.INVALID_PARAMS
        assert any(item.startswith("code") for item in exc_info.value.data)

    def test_wrong_type(self, tool_registry: ToolRegistry) -> None:
        """A non-integer limit is rejected."""
        with pytest.raises(InvalidParamsError):
            tool_registry.validate_arguments("get_logs", {"limit": "many"})

    def test_unknown_field(self, tool_registry: ToolRegistry) -> None:
        """Fields outside the schema are rejected."""
        with pytest.raises(InvalidParamsError):
            tool_registry.validate_arguments("stop_game", {"force": True})


class TestCallTool:
    """Tests for ToolRegistry.call_tool()."""

    async def test_forwards_under_same_name(self, tool_registry: ToolRegistry, rpc_client: AsyncMock) -> None:
        """Validated arguments are sent as the bridge call's params."""
        result = await tool_registry.call_tool("get_logs", {"limit": 20})

        assert result == {"success": True}
        rpc_client.call.assert_awaited_once_with("get_logs", {"limit": 20})

    async def test_invalid_arguments_never_sent(self, tool_registry: ToolRegistry, rpc_client: AsyncMock) -> None:
        """Validation failures stop before the bridge."""
        with pytest.raises(InvalidParamsError):
            await tool_registry.call_tool("get_logs", {"limit": -1})

        rpc_client.call.assert_not_awaited()
