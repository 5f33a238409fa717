"""
MIT License
Copyright (c) 2026 arpan404
See LICENSE file for full license text.

Info command: server details or one tool's schema.
"""

from __future__ import annotations

from dataclasses import dataclass

from ..client.connection import connect_to_server, list_tools, safe_close
from ..client.retry import error_message
from ..config import get_server_config
from ..errors import CommandError, server_connection_error, tool_not_found_error
from ..output import format_json
from .context import CommandContext


@dataclass(slots=True)
class InfoOptions:
    target: str  # "server" or "server/tool"
    json: bool = False
    with_descriptions: bool = False
    config_path: str | None = None


def parse_info_target(target: str) -> tuple[str, str | None]:
    server, _, tool = target.partition("/")
    return server, tool or None


async def info_command(options: InfoOptions, ctx: CommandContext) -> int:
    """Execute the info command."""
    config = ctx.load_config(options.config_path)
    server_name, tool_name = parse_info_target(options.target)
    server_config = get_server_config(config, server_name)
    budget = ctx.budget

    try:
        client = await connect_to_server(
            server_name, server_config, connector=ctx.connector, budget=budget
        )
    except Exception as e:  # noqa: BLE001
        raise CommandError(server_connection_error(server_name, error_message(e))) from e

    try:
        tools = await list_tools(client.session, budget=budget)

        if tool_name is not None:
            tool = next((t for t in tools if t.name == tool_name), None)
            if tool is None:
                raise CommandError(
                    tool_not_found_error(tool_name, server_name, [t.name for t in tools])
                )
            if options.json:
                ctx.emit(format_json(tool.to_dict()))
            else:
                ctx.emit(ctx.renderer.tool_schema(server_name, tool))
            return 0

        if options.json:
            ctx.emit(
                format_json(
                    {
                        "name": server_name,
                        "config": server_config.model_dump(exclude_none=True),
                        "tools": [tool.to_dict() for tool in tools],
                    }
                )
            )
        else:
            ctx.emit(
                ctx.renderer.server_details(
                    server_name,
                    server_config,
                    tools,
                    server_info=client.session.server_info,
                    with_descriptions=options.with_descriptions,
                )
            )
        return 0
    finally:
        await safe_close(client.close)
