"""
MIT License
Copyright (c) 2026 arpan404
See LICENSE file for full license text.

mcp-cli: a lightweight command-line client for MCP servers.

Lists, searches, inspects and calls tools exposed by stdio and HTTP
servers configured in ``mcp_servers.json``.
"""

__version__ = "0.1.0"

from .cache import ToolListCache
from .client import RetryBudget, ToolInfo, is_transient_error, with_retry
from .config import HttpServerConfig, McpServersConfig, StdioServerConfig, load_config
from .errors import CliError, ErrorCode, MCPCliError
from .pool import run_bounded
from .settings import RuntimeSettings

__all__ = [
    "__version__",
    "CliError",
    "ErrorCode",
    "HttpServerConfig",
    "MCPCliError",
    "McpServersConfig",
    "RetryBudget",
    "RuntimeSettings",
    "StdioServerConfig",
    "ToolInfo",
    "ToolListCache",
    "is_transient_error",
    "load_config",
    "run_bounded",
    "with_retry",
]
