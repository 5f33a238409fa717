"""
MIT License
Copyright (c) 2026 arpan404
See LICENSE file for full license text.

Structured CLI errors with actionable recovery hints.

Each error carries what went wrong (type), why it failed (details) and how
to fix it (suggestion). The numeric code doubles as the process exit status.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import IntEnum


class ErrorCode(IntEnum):
    """Error categories, matching process exit statuses."""

    CLIENT_ERROR = 1  # Invalid arguments, config issues
    SERVER_ERROR = 2  # Tool execution failed
    NETWORK_ERROR = 3  # Connection failed
    AUTH_ERROR = 4  # Authentication failed


@dataclass(frozen=True, slots=True)
class CliError:
    """One user-facing error report."""

    code: ErrorCode
    type: str
    message: str
    details: str | None = None
    suggestion: str | None = None

    def format(self) -> str:
        """Render the error for the diagnostics stream."""
        lines = [f"Error [{self.type}]: {self.message}"]
        if self.details:
            lines.append(f"  Details: {self.details}")
        if self.suggestion:
            lines.append(f"  Suggestion: {self.suggestion}")
        return "\n".join(lines)


class MCPCliError(RuntimeError):
    """Base error carrying a structured ``CliError`` report."""

    def __init__(self, error: CliError) -> None:
        super().__init__(error.format())
        self.error = error

    @property
    def exit_code(self) -> int:
        return int(self.error.code)


class ConfigError(MCPCliError):
    """Raised when the server configuration cannot be loaded."""


class CommandError(MCPCliError):
    """Raised by commands for usage, tool and connection failures."""


# ---------------------------------------------------------------------------
# Config errors
# ---------------------------------------------------------------------------


def config_not_found_error(path: str) -> CliError:
    return CliError(
        code=ErrorCode.CLIENT_ERROR,
        type="CONFIG_NOT_FOUND",
        message=f"Config file not found: {path}",
        suggestion=(
            'Create mcp_servers.json with: { "mcpServers": { "server-name": '
            '{ "command": "..." } } }'
        ),
    )


def config_search_error(searched: list[str]) -> CliError:
    return CliError(
        code=ErrorCode.CLIENT_ERROR,
        type="CONFIG_NOT_FOUND",
        message="No mcp_servers.json found in search paths",
        details=f"Searched: {', '.join(searched)}",
        suggestion=(
            "Create mcp_servers.json in current directory or use -c/--config "
            "to specify path"
        ),
    )


def config_invalid_json_error(path: str, parse_error: str | None = None) -> CliError:
    return CliError(
        code=ErrorCode.CLIENT_ERROR,
        type="CONFIG_INVALID_JSON",
        message=f"Invalid JSON in config file: {path}",
        details=parse_error,
        suggestion="Check for syntax errors: missing commas, unquoted keys, trailing commas",
    )


def config_missing_field_error(path: str) -> CliError:
    return CliError(
        code=ErrorCode.CLIENT_ERROR,
        type="CONFIG_MISSING_FIELD",
        message='Config file missing required "mcpServers" object',
        details=f"File: {path}",
        suggestion='Config must have structure: { "mcpServers": { ... } }',
    )


def config_invalid_server_error(
    message: str,
    details: str,
    suggestion: str,
) -> CliError:
    return CliError(
        code=ErrorCode.CLIENT_ERROR,
        type="CONFIG_INVALID_SERVER",
        message=message,
        details=details,
        suggestion=suggestion,
    )


def missing_env_var_error(names: list[str]) -> CliError:
    plural = "s" if len(names) > 1 else ""
    var_list = ", ".join(f"${{{name}}}" for name in names)
    return CliError(
        code=ErrorCode.CLIENT_ERROR,
        type="MISSING_ENV_VAR",
        message=f"Missing environment variable{plural}: {var_list}",
        details="Referenced in config but not set in environment",
        suggestion=(
            f'Set the variable(s) before running: export {names[0]}="value" '
            "or set MCP_STRICT_ENV=false to use empty values"
        ),
    )


# ---------------------------------------------------------------------------
# Server errors
# ---------------------------------------------------------------------------


def server_not_found_error(server_name: str, available: list[str]) -> CliError:
    if available:
        suggestion = "Use one of: " + ", ".join(f"mcp-cli {name}" for name in available)
    else:
        suggestion = (
            'Add server to mcp_servers.json: { "mcpServers": { "'
            + server_name
            + '": { ... } } }'
        )
    return CliError(
        code=ErrorCode.CLIENT_ERROR,
        type="SERVER_NOT_FOUND",
        message=f'Server "{server_name}" not found in config',
        details=f"Available servers: {', '.join(available) if available else '(none)'}",
        suggestion=suggestion,
    )


def server_connection_error(server_name: str, cause: str) -> CliError:
    suggestion = "Check server configuration and ensure the server process can start"
    if "ENOENT" in cause or "not found" in cause or "No such file" in cause:
        suggestion = (
            "Command not found. Install the MCP server: "
            "npx -y @modelcontextprotocol/server-<name>"
        )
    elif "ECONNREFUSED" in cause or "refused" in cause.lower():
        suggestion = "Server refused connection. Check if the server is running and URL is correct"
    elif "ETIMEDOUT" in cause or "timeout" in cause.lower() or "timed out" in cause:
        suggestion = "Connection timed out. Check network connectivity and server availability"
    elif "401" in cause or "Unauthorized" in cause:
        suggestion = "Authentication required. Add Authorization header to config"
    elif "403" in cause or "Forbidden" in cause:
        suggestion = "Access forbidden. Check credentials and permissions"

    return CliError(
        code=ErrorCode.NETWORK_ERROR,
        type="SERVER_CONNECTION_FAILED",
        message=f'Failed to connect to server "{server_name}"',
        details=cause,
        suggestion=suggestion,
    )


# ---------------------------------------------------------------------------
# Tool errors
# ---------------------------------------------------------------------------


def tool_not_found_error(
    tool_name: str,
    server_name: str,
    available_tools: list[str] | None = None,
) -> CliError:
    details = None
    if available_tools is not None:
        listed = ", ".join(available_tools[:5])
        more = f" (+{len(available_tools) - 5} more)" if len(available_tools) > 5 else ""
        details = f"Available tools: {listed}{more}"
    return CliError(
        code=ErrorCode.CLIENT_ERROR,
        type="TOOL_NOT_FOUND",
        message=f'Tool "{tool_name}" not found in server "{server_name}"',
        details=details,
        suggestion=f"Run 'mcp-cli {server_name}' to see all available tools",
    )


def tool_execution_error(tool_name: str, server_name: str, cause: str) -> CliError:
    suggestion = "Check tool arguments match the expected schema"
    if "validation" in cause or "invalid_type" in cause:
        suggestion = (
            f"Run 'mcp-cli {server_name}/{tool_name}' to see the input schema, "
            "then fix arguments"
        )
    elif "required" in cause:
        suggestion = (
            f"Missing required argument. Run 'mcp-cli {server_name}/{tool_name}' "
            "to see required fields"
        )
    elif "permission" in cause or "denied" in cause:
        suggestion = "Permission denied. Check file/resource permissions"
    elif "not found" in cause or "ENOENT" in cause:
        suggestion = "Resource not found. Verify the path or identifier exists"

    return CliError(
        code=ErrorCode.SERVER_ERROR,
        type="TOOL_EXECUTION_FAILED",
        message=f'Tool "{tool_name}" execution failed',
        details=cause,
        suggestion=suggestion,
    )


# ---------------------------------------------------------------------------
# Argument errors
# ---------------------------------------------------------------------------


def invalid_target_error(target: str) -> CliError:
    return CliError(
        code=ErrorCode.CLIENT_ERROR,
        type="INVALID_TARGET",
        message=f'Invalid target format: "{target}"',
        details="Expected format: server/tool",
        suggestion=(
            "Use 'mcp-cli <server>/<tool> <json>' format, e.g., "
            "'mcp-cli github/search_repos '{\"query\":\"mcp\"}''"
        ),
    )


def invalid_json_args_error(raw: str, parse_error: str | None = None) -> CliError:
    truncated = raw[:100] + "..." if len(raw) > 100 else raw
    return CliError(
        code=ErrorCode.CLIENT_ERROR,
        type="INVALID_JSON_ARGUMENTS",
        message="Invalid JSON in tool arguments",
        details=f"Parse error: {parse_error}" if parse_error else f"Input: {truncated}",
        suggestion=(
            "Arguments must be valid JSON. Use single quotes around JSON: "
            "'{\"key\": \"value\"}'"
        ),
    )


def unknown_option_error(option: str) -> CliError:
    return CliError(
        code=ErrorCode.CLIENT_ERROR,
        type="UNKNOWN_OPTION",
        message=f"Unknown option: {option}",
        suggestion="Run 'mcp-cli --help' to see available options",
    )


def missing_argument_error(command: str, argument: str) -> CliError:
    return CliError(
        code=ErrorCode.CLIENT_ERROR,
        type="MISSING_ARGUMENT",
        message=f"Missing required argument for {command}: {argument}",
        suggestion="Run 'mcp-cli --help' for usage examples",
    )


def usage_error(message: str) -> CliError:
    return CliError(
        code=ErrorCode.CLIENT_ERROR,
        type="INVALID_ARGUMENTS",
        message=message,
        suggestion="Run 'mcp-cli --help' for usage examples",
    )
