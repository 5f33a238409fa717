"""
MIT License
Copyright (c) 2026 arpan404
See LICENSE file for full license text.

Call command: execute one tool with JSON arguments.

Output goes to stdout as the text content of the result by default, or the
full JSON result with ``--json``. Errors always go to stderr.
"""

from __future__ import annotations

import asyncio
import dataclasses
import json
import logging
import threading
from dataclasses import dataclass
from typing import Any, TextIO

from ..client.connection import call_tool, connect_to_server, list_tools, safe_close
from ..client.retry import error_message
from ..config import get_server_config
from ..errors import (
    CommandError,
    ErrorCode,
    invalid_json_args_error,
    invalid_target_error,
    server_connection_error,
    tool_execution_error,
    tool_not_found_error,
)
from ..output import format_json, format_tool_result
from .context import CommandContext

logger = logging.getLogger("mcp_cli.commands")


@dataclass(slots=True)
class CallOptions:
    target: str  # "server/tool"
    args: str | None = None  # JSON arguments
    json: bool = False
    config_path: str | None = None
    stdin: TextIO | None = None


def parse_call_target(target: str) -> tuple[str, str]:
    server, sep, tool = target.partition("/")
    if not sep or not server or not tool:
        raise CommandError(invalid_target_error(target))
    return server, tool


async def read_stream(stream: TextIO, timeout_s: float) -> str:
    """Read ``stream`` to EOF on a daemon thread, bounded by ``timeout_s``."""
    loop = asyncio.get_running_loop()
    done: asyncio.Future[str] = loop.create_future()

    def _settle(data: str | None, error: BaseException | None) -> None:
        if done.done():
            return
        if error is not None:
            done.set_exception(error)
        else:
            done.set_result(data or "")

    def _reader() -> None:
        try:
            data = stream.read()
        except Exception as e:  # noqa: BLE001
            loop.call_soon_threadsafe(_settle, None, e)
            return
        loop.call_soon_threadsafe(_settle, data, None)

    threading.Thread(target=_reader, name="mcp-cli-stdin", daemon=True).start()
    try:
        return await asyncio.wait_for(done, timeout=timeout_s)
    except asyncio.TimeoutError as e:
        raise TimeoutError(f"stdin read timed out after {timeout_s}s") from e


def parse_arguments(raw: str) -> dict[str, Any]:
    """Decode tool arguments; blank input means no arguments."""
    text = raw.strip()
    if not text:
        return {}
    try:
        parsed = json.loads(text)
    except json.JSONDecodeError as e:
        raise CommandError(invalid_json_args_error(text, str(e))) from e
    if not isinstance(parsed, dict):
        raise CommandError(
            invalid_json_args_error(text, "arguments must be a JSON object")
        )
    return parsed


async def resolve_arguments(options: CallOptions, ctx: CommandContext) -> dict[str, Any]:
    if options.args:
        return parse_arguments(options.args)
    stdin = options.stdin
    if stdin is None or stdin.isatty():
        return {}
    try:
        raw = await read_stream(stdin, float(ctx.settings.timeout_s))
    except (OSError, TimeoutError) as e:
        raise CommandError(invalid_json_args_error("", str(e))) from e
    return parse_arguments(raw)


async def call_command(options: CallOptions, ctx: CommandContext) -> int:
    """Execute the call command."""
    config = ctx.load_config(options.config_path)
    server_name, tool_name = parse_call_target(options.target)
    server_config = get_server_config(config, server_name)
    arguments = await resolve_arguments(options, ctx)
    budget = ctx.budget

    try:
        client = await connect_to_server(
            server_name, server_config, connector=ctx.connector, budget=budget
        )
    except Exception as e:  # noqa: BLE001
        raise CommandError(server_connection_error(server_name, error_message(e))) from e

    try:
        try:
            result = await call_tool(client.session, tool_name, arguments, budget=budget)
        except Exception as e:  # noqa: BLE001
            message = error_message(e)
            if "not found" in message or "unknown tool" in message.lower():
                available: list[str] | None = None
                try:
                    available = [t.name for t in await list_tools(client.session, budget=budget)]
                except Exception as list_error:  # noqa: BLE001
                    logger.debug("Could not list tools: %s", error_message(list_error))
                report = dataclasses.replace(
                    tool_not_found_error(tool_name, server_name, available),
                    code=ErrorCode.SERVER_ERROR,
                )
            else:
                report = tool_execution_error(tool_name, server_name, message)
            raise CommandError(report) from e

        if options.json:
            ctx.emit(format_json(result))
        else:
            ctx.emit(format_tool_result(result))
        return 0
    finally:
        await safe_close(client.close)
