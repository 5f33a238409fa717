"""
MIT License
Copyright (c) 2026 arpan404
See LICENSE file for full license text.

Grep command: search tools across all servers by glob pattern.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field

from ..client.connection import connected, list_tools
from ..client.retry import error_message
from ..client.types import ToolInfo
from ..config import McpServersConfig, get_server_config, list_server_names
from ..output import format_json
from ..patterns import glob_to_regex
from ..pool import run_bounded
from .context import CommandContext
from .listing import NO_SERVERS_WARNING, failed_servers_warning

logger = logging.getLogger("mcp_cli.commands")


@dataclass(slots=True)
class GrepOptions:
    pattern: str
    with_descriptions: bool = False
    json: bool = False
    config_path: str | None = None


@dataclass(frozen=True, slots=True)
class SearchMatch:
    server: str
    tool: ToolInfo


@dataclass(slots=True)
class ServerSearchResult:
    server_name: str
    matches: list[SearchMatch] = field(default_factory=list)
    error: str | None = None


def compile_pattern(pattern: str) -> re.Pattern[str]:
    """Compile a search glob; an empty pattern matches every tool."""
    return glob_to_regex(pattern or "**")


def tool_matches(server_name: str, tool: ToolInfo, regex: re.Pattern[str]) -> bool:
    """Match against the bare name, ``server/name`` or the description."""
    if regex.search(tool.name) or regex.search(f"{server_name}/{tool.name}"):
        return True
    return bool(tool.description and regex.search(tool.description))


async def load_server_tools(
    server_name: str,
    config: McpServersConfig,
    ctx: CommandContext,
) -> list[ToolInfo]:
    """Cached tool list when live, otherwise connect, list and populate the cache."""
    cached = ctx.cache.get(server_name)
    if cached is not None:
        logger.debug("%s: using cached tool list", server_name)
        return cached

    logger.debug("%s: connecting to server (cache miss)", server_name)
    budget = ctx.budget
    server_config = get_server_config(config, server_name)
    async with connected(
        server_name, server_config, connector=ctx.connector, budget=budget
    ) as session:
        tools = await list_tools(session, budget=budget)
    ctx.cache.set(server_name, tools)
    return tools


async def search_server_tools(
    server_name: str,
    config: McpServersConfig,
    regex: re.Pattern[str],
    ctx: CommandContext,
) -> ServerSearchResult:
    try:
        tools = await load_server_tools(server_name, config, ctx)
    except Exception as e:  # noqa: BLE001
        message = error_message(e)
        logger.debug("%s: connection failed - %s", server_name, message)
        return ServerSearchResult(server_name=server_name, error=message)

    matches = [
        SearchMatch(server=server_name, tool=tool)
        for tool in tools
        if tool_matches(server_name, tool, regex)
    ]
    logger.debug("%s: found %d matches", server_name, len(matches))
    return ServerSearchResult(server_name=server_name, matches=matches)


async def search_tools(
    config: McpServersConfig,
    pattern: str,
    ctx: CommandContext,
) -> list[ServerSearchResult]:
    """Search every server concurrently; results follow config order."""
    regex = compile_pattern(pattern)
    server_names = list_server_names(config)
    logger.debug(
        'Searching %d servers for pattern "%s" (concurrency: %d)',
        len(server_names),
        pattern,
        ctx.settings.concurrency,
    )
    return await run_bounded(
        server_names,
        lambda name, _index: search_server_tools(name, config, regex, ctx),
        ctx.settings.concurrency,
    )


async def grep_command(options: GrepOptions, ctx: CommandContext) -> int:
    """Execute the grep command."""
    config = ctx.load_config(options.config_path)
    if not config.servers:
        ctx.warn(NO_SERVERS_WARNING)
        return 0

    server_results = await search_tools(config, options.pattern, ctx)

    matches = [match for result in server_results for match in result.matches]
    failed = [result.server_name for result in server_results if result.error is not None]
    if failed:
        ctx.warn(failed_servers_warning(failed))

    if not matches:
        ctx.emit(f'No tools found matching "{options.pattern}"')
        return 0

    if options.json:
        ctx.emit(
            format_json(
                [
                    {
                        "server": match.server,
                        "tool": match.tool.name,
                        "description": match.tool.description,
                        "inputSchema": match.tool.input_schema,
                    }
                    for match in matches
                ]
            )
        )
    else:
        ctx.emit(
            ctx.renderer.search_results(
                [(match.server, match.tool) for match in matches],
                with_descriptions=options.with_descriptions,
            )
        )
    return 0
