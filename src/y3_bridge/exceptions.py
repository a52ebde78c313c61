"""Custom exceptions for y3-bridge.

This module contains all custom exceptions used throughout the package.
Exceptions are organized into three categories:

Transport Errors (per call, connection keeps working):
    - RpcTimeoutError: No reply within the call deadline
    - ConnectionClosedError: Connection dropped with the call in flight
    - RemoteCallError: Peer answered with an error object
    - IpcConnectionError: Bridge connection could not be established

Protocol Errors (per call):
    - InvalidParamsError: Parameters failed boundary validation
    - MethodNotFoundError: Unknown method or operation name

Domain Errors (session state does not allow the operation):
    - GameLaunchError, LuaExecutionError, SessionNotFoundError,
      ClientNotConnectedError

All of the above derive from BridgeError, which is an McpError carrying
an ErrorData (code, message, data) so it serializes straight into a
JSON-RPC error object.

Usage:
    from y3_bridge.exceptions import ClientNotConnectedError, ErrorCode
"""

from __future__ import annotations

__all__ = [
    "BridgeError",
    "ClientNotConnectedError",
    "ConfigurationError",
    "ConnectionClosedError",
    "ErrorCode",
    "GameLaunchError",
    "InvalidParamsError",
    "IpcConnectionError",
    "LuaExecutionError",
    "MethodNotFoundError",
    "RemoteCallError",
    "RpcTimeoutError",
    "SessionNotFoundError",
]

from enum import IntEnum
from typing import Any

from mcp import McpError
from mcp.types import (
    INTERNAL_ERROR,
    INVALID_PARAMS,
    INVALID_REQUEST,
    METHOD_NOT_FOUND,
    PARSE_ERROR,
    ErrorData,
)


class ErrorCode(IntEnum):
    """JSON-RPC error codes used on both the bridge and the front envelope.

    Domain codes live in the reserved server range -32000 to -32099.
    """

    # JSON-RPC 2.0 standard codes
    PARSE_ERROR = PARSE_ERROR
    INVALID_REQUEST = INVALID_REQUEST
    METHOD_NOT_FOUND = METHOD_NOT_FOUND
    INVALID_PARAMS = INVALID_PARAMS
    INTERNAL_ERROR = INTERNAL_ERROR

    # Game session codes
    GAME_NOT_RUNNING = -32001
    GAME_LAUNCH_FAILED = -32002
    LUA_EXECUTION_FAILED = -32003
    SESSION_NOT_FOUND = -32004
    IPC_CONNECTION_FAILED = -32005
    CLIENT_NOT_CONNECTED = -32006


class BridgeError(McpError):
    """Base class for errors that travel as JSON-RPC error objects.

    Attributes:
        code: JSON-RPC error code.
        message: Human-readable error text.
        data: Optional structured details.
    """

    code: int = ErrorCode.INTERNAL_ERROR

    def __init__(self, message: str, *, code: int | None = None, data: Any = None) -> None:
        """Initialize BridgeError.

        Args:
            message: Human-readable error text.
            code: Overrides the class default code.
            data: Optional structured details for the error object.
        """
        if code is not None:
            self.code = code
        super().__init__(ErrorData(code=int(self.code), message=message, data=data))
        self.message = message
        self.data = data

    def to_json_rpc_error(self) -> dict[str, Any]:
        """Convert to JSON-RPC error object."""
        error: dict[str, Any] = {
            "code": self.error.code,
            "message": self.error.message,
        }
        if self.error.data is not None:
            error["data"] = self.error.data
        return error

    def __str__(self) -> str:
        """Return human-readable string representation."""
        return self.message


# =============================================================================
# Transport Errors
# =============================================================================


class RpcTimeoutError(BridgeError):
    """No reply arrived before the call deadline."""

    code = ErrorCode.INTERNAL_ERROR


class ConnectionClosedError(BridgeError):
    """The connection closed while the call was still pending."""

    code = ErrorCode.IPC_CONNECTION_FAILED


class IpcConnectionError(BridgeError):
    """The bridge connection could not be established or is not open."""

    code = ErrorCode.IPC_CONNECTION_FAILED


class RemoteCallError(BridgeError):
    """The peer answered a call with an error object.

    The peer's code, message and data are preserved as-is.
    """

    @classmethod
    def from_error_object(cls, error: Any) -> RemoteCallError:
        """Build from the ``error`` member of a reply.

        Args:
            error: Error object from the wire; tolerates malformed values.

        Returns:
            RemoteCallError with the peer's fields.
        """
        if not isinstance(error, dict):
            return cls(str(error))
        code = error.get("code", ErrorCode.INTERNAL_ERROR)
        if not isinstance(code, int):
            code = ErrorCode.INTERNAL_ERROR
        return cls(str(error.get("message", "Unknown error")), code=code, data=error.get("data"))


# =============================================================================
# Protocol Errors
# =============================================================================


class InvalidParamsError(BridgeError):
    """Parameters were missing, unknown, or of the wrong type."""

    code = ErrorCode.INVALID_PARAMS


class MethodNotFoundError(BridgeError):
    """No handler or operation is registered under the requested name."""

    code = ErrorCode.METHOD_NOT_FOUND


# =============================================================================
# Domain Errors
# =============================================================================


class GameLaunchError(BridgeError):
    """The launcher raised while starting the game.

    The launcher's exception is chained as ``__cause__`` and its text is
    copied into ``data.original_error``.
    """

    code = ErrorCode.GAME_LAUNCH_FAILED


class LuaExecutionError(BridgeError):
    """Sending code to the attached client failed."""

    code = ErrorCode.LUA_EXECUTION_FAILED


class SessionNotFoundError(BridgeError):
    """There is no active game session."""

    code = ErrorCode.SESSION_NOT_FOUND


class ClientNotConnectedError(BridgeError):
    """The session has no attached game client."""

    code = ErrorCode.CLIENT_NOT_CONNECTED


class ConfigurationError(Exception):
    """Configuration is invalid or unreadable.

    Raised when:
    - Config file contains invalid JSON
    - Config file fails Pydantic validation
    - Config file cannot be read
    """
