"""NDJSON wire format shared by the bridge client, bridge server and stdio front end.

This module provides the NDJSON (Newline-Delimited JSON) encoding/decoding
and line framing used on every byte stream in y3-bridge.

Protocol format:
- Messages are JSON objects encoded in compact form (no spaces)
- Each message is terminated by a newline character
- Encoding: UTF-8, no length prefixes

Bridge message shapes:
- Request:      {"id": "1", "method": "get_logs", "params": {"limit": 10}}
- Notification: {"method": "command", "params": {"data": ".rr"}}
- Result:       {"id": "1", "result": {...}}
- Error:        {"id": "1", "error": {"code": -32602, "message": "...", "data": ...}}

Example messages:
    {"id":"7","method":"get_game_status","params":{}}\\n
    {"id":"7","result":{"running":true,"session_id":"session_1700000000000","status":"running"}}\\n
    {"id":"","error":{"code":-32700,"message":"Parse error"}}\\n
"""

from __future__ import annotations

__all__ = [
    "LineFramer",
    "decode_ndjson",
    "encode_ndjson",
    "make_error",
    "make_notification",
    "make_request",
    "make_result",
]

import json
from typing import Any


def encode_ndjson(msg: dict[str, Any]) -> bytes:
    """Encode a message for NDJSON transmission.

    Uses compact JSON (no spaces after separators) with newline delimiter.
    Non-ASCII text is kept as UTF-8 rather than escaped.

    Args:
        msg: Dictionary to encode.

    Returns:
        UTF-8 encoded bytes with trailing newline.

    Example:
        >>> encode_ndjson({"id": "1", "result": {}})
        b'{"id":"1","result":{}}\\n'
    """
    return (json.dumps(msg, separators=(",", ":"), ensure_ascii=False) + "\n").encode("utf-8")


def decode_ndjson(line: bytes) -> dict[str, Any] | None:
    """Decode an NDJSON message.

    Args:
        line: UTF-8 encoded bytes (with or without trailing newline).

    Returns:
        Decoded dictionary, or None if line is empty, contains invalid
        JSON, or holds a JSON value that is not an object.

    Example:
        >>> decode_ndjson(b'{"id":"1"}\\n')
        {'id': '1'}
        >>> decode_ndjson(b'[1, 2]')
        None
    """
    if not line or not line.strip():
        return None
    try:
        result = json.loads(line.decode("utf-8"))
    except (json.JSONDecodeError, UnicodeDecodeError):
        return None
    if not isinstance(result, dict):
        return None
    return result


class LineFramer:
    """Splits a byte stream into newline-terminated frames.

    Chunks from the transport are appended to an internal buffer; every
    complete line is returned and the trailing partial line is kept for
    the next chunk, so a frame may span any number of reads.

    Usage:
        framer = LineFramer()
        for line in framer.feed(chunk):
            handle(line)
    """

    def __init__(self) -> None:
        self._buffer = bytearray()

    @property
    def pending(self) -> bytes:
        """Bytes of the incomplete trailing fragment."""
        return bytes(self._buffer)

    def feed(self, chunk: bytes) -> list[bytes]:
        """Append a chunk and return the complete, non-blank lines.

        Args:
            chunk: Raw bytes read from the stream.

        Returns:
            Complete lines without their terminator, in arrival order.
        """
        self._buffer.extend(chunk)
        *complete, rest = bytes(self._buffer).split(b"\n")
        self._buffer = bytearray(rest)
        return [line.rstrip(b"\r") for line in complete if line.strip()]


def make_request(request_id: str, method: str, params: dict[str, Any] | None = None) -> dict[str, Any]:
    """Build a correlated request."""
    msg: dict[str, Any] = {"id": request_id, "method": method}
    if params is not None:
        msg["params"] = params
    return msg


def make_notification(method: str, params: dict[str, Any] | None = None) -> dict[str, Any]:
    """Build a one-way notification (no id, no reply expected)."""
    msg: dict[str, Any] = {"method": method}
    if params is not None:
        msg["params"] = params
    return msg


def make_result(request_id: Any, result: Any) -> dict[str, Any]:
    """Build a success reply."""
    return {"id": request_id, "result": result}


def make_error(request_id: Any, error: dict[str, Any]) -> dict[str, Any]:
    """Build an error reply.

    Args:
        request_id: ID of the request being answered ("" when unknown).
        error: JSON-RPC error object (code, message, optional data).
    """
    return {"id": request_id, "error": error}
