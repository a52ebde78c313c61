"""JSON-RPC 2.0 envelope handling for the MCP front end.

Supported methods:
- initialize: protocol version, server info, capabilities
- ping: empty result
- tools/list: the static tool catalogue
- tools/call: validate arguments locally, forward to the host over the bridge

Requests without an id are notifications (e.g. notifications/initialized)
and never get a reply. Errors raised by the host for a tool call become a
tools/call result with isError set, so the model sees the structured error.
"""

from __future__ import annotations

__all__ = [
    "ProtocolRouter",
]

import json
import logging
from typing import TYPE_CHECKING, Any

from mcp.types import (
    CallToolResult,
    Implementation,
    InitializeResult,
    ServerCapabilities,
    TextContent,
    ToolsCapability,
)

from y3_bridge.constants import APP_NAME, JSONRPC_VERSION
from y3_bridge.exceptions import BridgeError, ErrorCode, InvalidParamsError
from y3_bridge.log_config import log_event
from y3_bridge.models import BridgeSystemEvent

if TYPE_CHECKING:
    from y3_bridge.config import BridgeConfig
    from y3_bridge.mcp.tools import ToolRegistry

_logger = logging.getLogger(f"{APP_NAME}.mcp")


def _dump(model: Any) -> dict[str, Any]:
    return model.model_dump(mode="json", by_alias=True, exclude_none=True)


class ProtocolRouter:
    """Validates envelopes and dispatches them.

    Usage:
        router = ProtocolRouter(registry, config)
        response = await router.handle_request({"jsonrpc": "2.0", "id": 1, "method": "tools/list"})
    """

    def __init__(self, registry: ToolRegistry, config: BridgeConfig) -> None:
        self._registry = registry
        self._config = config

    async def handle_request(self, request: dict[str, Any]) -> dict[str, Any] | None:
        """Handle one decoded envelope.

        Args:
            request: Decoded JSON object from the front stream.

        Returns:
            Response envelope, or None for notifications.
        """
        if "id" not in request:
            log_event(
                logging.DEBUG,
                BridgeSystemEvent(
                    event="mcp_notification",
                    message=f"Notification received: {request.get('method')}",
                    method=str(request.get("method")),
                ),
                _logger,
            )
            return None

        request_id = request.get("id")
        method = request.get("method")
        params = request.get("params")

        if request.get("jsonrpc") != JSONRPC_VERSION or not isinstance(method, str):
            return self._error_response(request_id, ErrorCode.INVALID_REQUEST, "Invalid Request")

        try:
            if method == "initialize":
                result = self._handle_initialize()
            elif method == "ping":
                result = {}
            elif method == "tools/list":
                result = {"tools": [_dump(tool) for tool in self._registry.list_tools()]}
            elif method == "tools/call":
                result = await self._handle_tools_call(params)
            else:
                log_event(
                    logging.WARNING,
                    BridgeSystemEvent(
                        event="mcp_method_not_found",
                        message=f"Method not found: {method}",
                        method=method,
                        request_id=str(request_id),
                    ),
                    _logger,
                )
                return self._error_response(request_id, ErrorCode.METHOD_NOT_FOUND, f"Method not found: {method}")
        except InvalidParamsError as e:
            return self._error_response(request_id, e.code, e.message, e.data)
        except Exception as e:
            _logger.exception(
                {
                    "event": "mcp_request_failed",
                    "message": f"Error handling {method}: {e}",
                    "method": method,
                    "request_id": str(request_id),
                    "error_type": type(e).__name__,
                }
            )
            return self._error_response(request_id, ErrorCode.INTERNAL_ERROR, str(e))

        return {"jsonrpc": JSONRPC_VERSION, "id": request_id, "result": result}

    def _handle_initialize(self) -> dict[str, Any]:
        result = InitializeResult(
            protocolVersion=self._config.protocol_version,
            capabilities=ServerCapabilities(tools=ToolsCapability()),
            serverInfo=Implementation(name=self._config.server_name, version=self._config.server_version),
        )
        return _dump(result)

    async def _handle_tools_call(self, params: Any) -> dict[str, Any]:
        if not isinstance(params, dict):
            raise InvalidParamsError("tools/call params must be an object")

        name = params.get("name")
        if not isinstance(name, str) or not name:
            raise InvalidParamsError("Tool name is required")

        arguments = params.get("arguments")
        if arguments is not None and not isinstance(arguments, dict):
            raise InvalidParamsError("Tool arguments must be an object")

        # Raises InvalidParamsError before anything reaches the bridge
        validated = self._registry.validate_arguments(name, arguments)

        try:
            payload = await self._registry.call_tool(name, validated)
        except BridgeError as e:
            log_event(
                logging.WARNING,
                BridgeSystemEvent(
                    event="tool_call_failed",
                    message=f"Tool {name} failed: {e.message}",
                    method=name,
                    error_type=type(e).__name__,
                    error_message=e.message,
                    details={"code": e.code},
                ),
                _logger,
            )
            return self._tool_result(e.to_json_rpc_error(), is_error=True)

        return self._tool_result(payload)

    @staticmethod
    def _tool_result(payload: Any, *, is_error: bool = False) -> dict[str, Any]:
        text = json.dumps(payload, indent=2, ensure_ascii=False)
        return _dump(CallToolResult(content=[TextContent(type="text", text=text)], isError=is_error))

    @staticmethod
    def _error_response(request_id: Any, code: int, message: str, data: Any = None) -> dict[str, Any]:
        error: dict[str, Any] = {"code": int(code), "message": message}
        if data is not None:
            error["data"] = data
        return {"jsonrpc": JSONRPC_VERSION, "id": request_id, "error": error}
