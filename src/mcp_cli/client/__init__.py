"""
MIT License
Copyright (c) 2026 arpan404
See LICENSE file for full license text.

Server client package.

Contains the retry engine, connection lifecycle helpers and the SDK-backed
transport used to reach stdio and HTTP servers.
"""

from .connection import (
    call_tool,
    connect_to_server,
    connected,
    get_tool,
    list_tools,
    safe_close,
)
from .retry import RetryBudget, backoff_delay, error_message, is_transient_error, with_retry
from .types import (
    CloseFn,
    ConnectedClient,
    Connector,
    RetryBudgetExhaustedError,
    ServerInfo,
    Session,
    ToolCallError,
    ToolInfo,
)

__all__ = [
    "CloseFn",
    "ConnectedClient",
    "Connector",
    "RetryBudget",
    "RetryBudgetExhaustedError",
    "ServerInfo",
    "Session",
    "ToolCallError",
    "ToolInfo",
    "backoff_delay",
    "call_tool",
    "connect_to_server",
    "connected",
    "error_message",
    "get_tool",
    "is_transient_error",
    "list_tools",
    "safe_close",
    "with_retry",
]
