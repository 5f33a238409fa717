"""
MIT License
Copyright (c) 2026 arpan404
See LICENSE file for full license text.

Server configuration models and ``mcp_servers.json`` loader.
"""

from __future__ import annotations

import json
import logging
import os
import re
from collections.abc import Mapping
from pathlib import Path
from typing import Any, Union

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from .errors import (
    ConfigError,
    config_invalid_json_error,
    config_invalid_server_error,
    config_missing_field_error,
    config_not_found_error,
    config_search_error,
    missing_env_var_error,
    server_not_found_error,
)

logger = logging.getLogger("mcp_cli.config")

_ENV_REF = re.compile(r"\$\{([^}]+)\}")


class StdioServerConfig(BaseModel):
    """Local server launched as a subprocess speaking over stdio."""

    model_config = ConfigDict(extra="ignore", frozen=True)

    command: str
    args: list[str] = Field(default_factory=list)
    env: dict[str, str] = Field(default_factory=dict)
    cwd: str | None = None

    @property
    def transport(self) -> str:
        return "stdio"


class HttpServerConfig(BaseModel):
    """Remote server reached over streamable HTTP."""

    model_config = ConfigDict(extra="ignore", frozen=True)

    url: str
    headers: dict[str, str] = Field(default_factory=dict)
    timeout: float | None = Field(default=None, gt=0)

    @property
    def transport(self) -> str:
        return "http"


ServerConfig = Union[StdioServerConfig, HttpServerConfig]


class McpServersConfig(BaseModel):
    """Parsed configuration file: server name -> server config."""

    model_config = ConfigDict(frozen=True)

    path: str | None = None
    servers: dict[str, ServerConfig] = Field(default_factory=dict)


def default_config_paths() -> list[Path]:
    home = Path.home()
    return [
        Path.cwd() / "mcp_servers.json",
        home / ".mcp_servers.json",
        home / ".config" / "mcp" / "mcp_servers.json",
    ]


def substitute_env_vars(
    value: Any,
    *,
    environ: Mapping[str, str] | None = None,
    strict: bool = True,
) -> Any:
    """
    Recursively replace ``${VAR}`` references in strings.

    In strict mode a missing variable raises ``ConfigError``; otherwise it is
    replaced by an empty string and a warning is logged.
    """
    env = os.environ if environ is None else environ
    missing: list[str] = []

    def _walk(node: Any) -> Any:
        if isinstance(node, str):
            return _ENV_REF.sub(lambda m: _lookup(m.group(1)), node)
        if isinstance(node, list):
            return [_walk(item) for item in node]
        if isinstance(node, dict):
            return {key: _walk(item) for key, item in node.items()}
        return node

    def _lookup(name: str) -> str:
        found = env.get(name)
        if found is None:
            if name not in missing:
                missing.append(name)
            return ""
        return found

    result = _walk(value)
    if missing:
        error = missing_env_var_error(missing)
        if strict:
            raise ConfigError(error)
        logger.warning("Warning: %s", error.message)
    return result


def _parse_server(name: str, raw: Any) -> ServerConfig:
    if not isinstance(raw, dict):
        raise ConfigError(
            config_invalid_server_error(
                f'Invalid server configuration for "{name}"',
                "Server config must be an object",
                'Use { "command": "..." } for stdio or { "url": "..." } for HTTP',
            )
        )

    has_command = "command" in raw
    has_url = "url" in raw
    if not has_command and not has_url:
        raise ConfigError(
            config_invalid_server_error(
                f'Server "{name}" missing required field',
                'Must have either "command" (for stdio) or "url" (for HTTP)',
                'Add "command": "npx ..." for local servers or "url": '
                '"https://..." for remote servers',
            )
        )
    if has_command and has_url:
        raise ConfigError(
            config_invalid_server_error(
                f'Server "{name}" has both "command" and "url"',
                "A server must be either stdio (command) or HTTP (url), not both",
                'Remove one of "command" or "url"',
            )
        )

    model = StdioServerConfig if has_command else HttpServerConfig
    try:
        return model.model_validate(raw)
    except ValidationError as e:
        raise ConfigError(
            config_invalid_server_error(
                f'Invalid server configuration for "{name}"',
                str(e),
                "Check field types: args must be a list of strings, env and "
                "headers must map strings to strings",
            )
        ) from e


def parse_config(
    data: Any,
    *,
    path: str,
    environ: Mapping[str, str] | None = None,
    strict_env: bool = True,
) -> McpServersConfig:
    """Validate a decoded config document and build the tagged server configs."""
    if not isinstance(data, dict) or not isinstance(data.get("mcpServers"), dict):
        raise ConfigError(config_missing_field_error(path))

    raw_servers: dict[str, Any] = data["mcpServers"]
    if not raw_servers:
        logger.warning(
            "Warning: No servers configured in mcpServers. Add server "
            "configurations to use MCP tools."
        )

    # Shape checks run before substitution so errors name the raw config.
    for name, raw in raw_servers.items():
        _parse_server(name, raw)

    substituted = substitute_env_vars(raw_servers, environ=environ, strict=strict_env)
    servers = {name: _parse_server(name, raw) for name, raw in substituted.items()}
    return McpServersConfig(path=path, servers=servers)


def resolve_config_path(explicit_path: str | None, env_path: str | None = None) -> Path:
    """Pick the config file: explicit path, then env path, then search paths."""
    chosen = explicit_path or env_path
    if chosen:
        path = Path(chosen).expanduser().resolve()
        if not path.exists():
            raise ConfigError(config_not_found_error(str(path)))
        return path

    searched = default_config_paths()
    for candidate in searched:
        if candidate.exists():
            return candidate
    raise ConfigError(config_search_error([str(p) for p in searched]))


def load_config(
    explicit_path: str | None = None,
    *,
    env_path: str | None = None,
    environ: Mapping[str, str] | None = None,
    strict_env: bool = True,
) -> McpServersConfig:
    """Locate, read and validate the MCP servers configuration file."""
    path = resolve_config_path(explicit_path, env_path)
    content = path.read_text(encoding="utf-8")
    try:
        data = json.loads(content)
    except json.JSONDecodeError as e:
        raise ConfigError(config_invalid_json_error(str(path), str(e))) from e
    logger.debug("Loaded config from %s", path)
    return parse_config(data, path=str(path), environ=environ, strict_env=strict_env)


def get_server_config(config: McpServersConfig, server_name: str) -> ServerConfig:
    server = config.servers.get(server_name)
    if server is None:
        raise ConfigError(server_not_found_error(server_name, list(config.servers)))
    return server


def list_server_names(config: McpServersConfig) -> list[str]:
    return list(config.servers)
