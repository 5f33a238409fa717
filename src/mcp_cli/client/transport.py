"""
MIT License
Copyright (c) 2026 arpan404
See LICENSE file for full license text.

Transport layer opening MCP sessions over stdio subprocesses or HTTP.
"""

from __future__ import annotations

import os
from contextlib import AsyncExitStack
from datetime import timedelta
from typing import Any

from mcp import ClientSession, StdioServerParameters
from mcp.client.stdio import stdio_client
from mcp.client.streamable_http import streamablehttp_client

from ..config import HttpServerConfig, ServerConfig, StdioServerConfig
from .types import ServerInfo, ToolInfo

DEFAULT_HTTP_TIMEOUT_S = 30.0


def merged_environment(overrides: dict[str, str]) -> dict[str, str]:
    """Inherited environment overlaid by configured values (config wins)."""
    env = dict(os.environ)
    env.update(overrides)
    return env


class SdkSession:
    """Initialized ``ClientSession`` plus the resources backing it."""

    def __init__(
        self,
        session: ClientSession,
        exit_stack: AsyncExitStack,
        server_info: ServerInfo | None = None,
    ) -> None:
        self._session = session
        self._exit_stack = exit_stack
        self.server_info = server_info

    async def list_tools(self) -> list[ToolInfo]:
        result = await self._session.list_tools()
        return [
            ToolInfo(
                name=tool.name,
                description=tool.description,
                input_schema=dict(tool.inputSchema or {}),
            )
            for tool in result.tools
        ]

    async def call_tool(self, name: str, arguments: dict[str, Any]) -> dict[str, Any]:
        result = await self._session.call_tool(name, arguments)
        return result.model_dump(mode="json", by_alias=True, exclude_none=True)

    async def close(self) -> None:
        await self._exit_stack.aclose()


class SdkConnector:
    """``Connector`` backed by the MCP Python SDK."""

    async def connect(self, server_name: str, config: ServerConfig) -> SdkSession:
        _ = server_name
        exit_stack = AsyncExitStack()
        try:
            if isinstance(config, HttpServerConfig):
                read, write, _get_session_id = await exit_stack.enter_async_context(
                    streamablehttp_client(
                        config.url,
                        headers=dict(config.headers) or None,
                        timeout=timedelta(seconds=config.timeout or DEFAULT_HTTP_TIMEOUT_S),
                    )
                )
            else:
                read, write = await exit_stack.enter_async_context(
                    stdio_client(self._stdio_parameters(config))
                )
            session = await exit_stack.enter_async_context(ClientSession(read, write))
            init = await session.initialize()
        except BaseException:
            await exit_stack.aclose()
            raise

        server_info = ServerInfo(
            name=init.serverInfo.name,
            version=init.serverInfo.version,
            protocol_version=str(init.protocolVersion),
        )
        return SdkSession(session, exit_stack, server_info)

    @staticmethod
    def _stdio_parameters(config: StdioServerConfig) -> StdioServerParameters:
        return StdioServerParameters(
            command=config.command,
            args=list(config.args),
            env=merged_environment(config.env),
            cwd=config.cwd,
        )
