"""Bridge package: NDJSON RPC between the front end and the host.

- protocol.py: Line framing, encode/decode, message builders
- pending.py: In-flight request table with deadlines
- client.py: Caller side (front end -> host)
- server.py: Server side (host), dispatches to a method table

Architecture:
    - Host listens on 127.0.0.1:25897 and serves the six game operations
    - Front end connects once and keeps the connection for its lifetime
    - Both sides tolerate malformed lines and out-of-order replies
"""

from .client import RpcClient
from .pending import PendingCall, PendingCallTable
from .protocol import (
    LineFramer,
    decode_ndjson,
    encode_ndjson,
    make_error,
    make_notification,
    make_request,
    make_result,
)
from .server import RpcHandler, RpcServer, format_validation_errors

__all__ = [
    # Client (front-end side)
    "RpcClient",
    # Server (host side)
    "RpcHandler",
    "RpcServer",
    "format_validation_errors",
    # Pending calls
    "PendingCall",
    "PendingCallTable",
    # Wire format
    "LineFramer",
    "decode_ndjson",
    "encode_ndjson",
    "make_error",
    "make_notification",
    "make_request",
    "make_result",
]
