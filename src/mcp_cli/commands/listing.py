"""
MIT License
Copyright (c) 2026 arpan404
See LICENSE file for full license text.

List command: every configured server and its tools.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

from ..client.connection import connected, list_tools
from ..client.retry import error_message
from ..client.types import ToolInfo
from ..config import McpServersConfig, get_server_config, list_server_names
from ..output import format_json
from ..pool import run_bounded
from .context import CommandContext

logger = logging.getLogger("mcp_cli.commands")

NO_SERVERS_WARNING = "Warning: No servers configured. Add servers to mcp_servers.json"


@dataclass(slots=True)
class ListOptions:
    with_descriptions: bool = False
    json: bool = False
    config_path: str | None = None


@dataclass(slots=True)
class ServerTools:
    """Tools of one server, or the error that prevented listing them."""

    name: str
    tools: list[ToolInfo] = field(default_factory=list)
    error: str | None = None


def failed_servers_warning(names: list[str]) -> str:
    return f"Warning: {len(names)} server(s) failed to connect: {', '.join(names)}"


async def fetch_server_tools(
    server_name: str,
    config: McpServersConfig,
    ctx: CommandContext,
) -> ServerTools:
    """Connect and list tools; failures become an error-tagged result."""
    budget = ctx.budget
    try:
        server_config = get_server_config(config, server_name)
        async with connected(
            server_name, server_config, connector=ctx.connector, budget=budget
        ) as session:
            tools = await list_tools(session, budget=budget)
    except Exception as e:  # noqa: BLE001
        message = error_message(e)
        logger.debug("%s: connection failed - %s", server_name, message)
        return ServerTools(name=server_name, error=message)

    logger.debug("%s: loaded %d tools", server_name, len(tools))
    ctx.cache.set(server_name, tools)
    return ServerTools(name=server_name, tools=tools)


async def collect_server_tools(
    config: McpServersConfig,
    ctx: CommandContext,
) -> list[ServerTools]:
    """Fan out over all servers and return results sorted by server name."""
    server_names = list_server_names(config)
    logger.debug(
        "Processing %d servers with concurrency %d",
        len(server_names),
        ctx.settings.concurrency,
    )
    servers = await run_bounded(
        server_names,
        lambda name, _index: fetch_server_tools(name, config, ctx),
        ctx.settings.concurrency,
    )
    return sorted(servers, key=lambda server: server.name)


async def list_command(options: ListOptions, ctx: CommandContext) -> int:
    """Execute the list command."""
    config = ctx.load_config(options.config_path)
    if not config.servers:
        ctx.warn(NO_SERVERS_WARNING)
        return 0

    servers = await collect_server_tools(config, ctx)

    failed = [server.name for server in servers if server.error is not None]
    if failed:
        ctx.warn(failed_servers_warning(failed))

    if options.json:
        ctx.emit(
            format_json(
                [
                    {
                        "name": server.name,
                        "tools": [tool.to_dict() for tool in server.tools],
                        "error": server.error,
                    }
                    for server in servers
                ]
            )
        )
    else:
        ctx.emit(
            ctx.renderer.server_list(
                [(server.name, server.tools, server.error) for server in servers],
                with_descriptions=options.with_descriptions,
            )
        )
    return 0
