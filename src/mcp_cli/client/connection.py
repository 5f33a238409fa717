"""
MIT License
Copyright (c) 2026 arpan404
See LICENSE file for full license text.

Connection lifecycle: retried connect, best-effort close and retried calls.
"""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import Any

from ..config import ServerConfig
from .retry import RetryBudget, error_message, with_retry
from .types import CloseFn, ConnectedClient, Connector, Session, ToolCallError, ToolInfo

logger = logging.getLogger("mcp_cli.client")


async def connect_to_server(
    server_name: str,
    config: ServerConfig,
    *,
    connector: Connector,
    budget: RetryBudget,
) -> ConnectedClient:
    """Open a session to one server, retrying transient failures."""

    async def _connect() -> ConnectedClient:
        session = await connector.connect(server_name, config)
        return ConnectedClient(session=session, close=session.close)

    return await with_retry(_connect, f"connect to {server_name}", budget)


async def safe_close(close: CloseFn) -> None:
    """Close a connection, logging instead of raising on failure."""
    try:
        await close()
    except Exception as e:  # noqa: BLE001
        logger.debug("Failed to close connection: %s", error_message(e))


@asynccontextmanager
async def connected(
    server_name: str,
    config: ServerConfig,
    *,
    connector: Connector,
    budget: RetryBudget,
) -> AsyncIterator[Session]:
    """
    Scoped session acquisition.

    The session is always closed on exit; close-time errors are logged and
    never replace the outcome of the body.
    """
    client = await connect_to_server(
        server_name, config, connector=connector, budget=budget
    )
    try:
        yield client.session
    finally:
        await safe_close(client.close)


async def list_tools(session: Session, *, budget: RetryBudget) -> list[ToolInfo]:
    """List all tools from a connected session with retry."""
    return await with_retry(session.list_tools, "list tools", budget)


async def get_tool(
    session: Session,
    tool_name: str,
    *,
    budget: RetryBudget,
) -> ToolInfo | None:
    tools = await list_tools(session, budget=budget)
    return next((tool for tool in tools if tool.name == tool_name), None)


async def call_tool(
    session: Session,
    tool_name: str,
    arguments: dict[str, Any],
    *,
    budget: RetryBudget,
) -> dict[str, Any]:
    """
    Call a tool with retry for transient failures.

    Only the transport exchange is retried. A result flagged ``isError`` is
    the tool's own answer and raises ``ToolCallError`` after one invocation.
    """

    async def _call() -> dict[str, Any]:
        return await session.call_tool(tool_name, arguments)

    result = await with_retry(_call, f"call tool {tool_name}", budget)
    if result.get("isError"):
        raise ToolCallError(
            result_text(result) or f"Tool '{tool_name}' reported an error"
        )
    return result


def result_text(result: dict[str, Any]) -> str | None:
    """Joined text blocks of a tool result, or ``None`` when there are none."""
    chunks = [
        row["text"]
        for row in result.get("content") or []
        if isinstance(row, dict) and isinstance(row.get("text"), str)
    ]
    return "\n".join(chunks) if chunks else None
