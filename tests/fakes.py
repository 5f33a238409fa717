from __future__ import annotations

import asyncio
from typing import Any

from mcp_cli.client.types import ServerInfo, ToolInfo


def tool(name: str, description: str | None = None, **properties: str) -> ToolInfo:
    schema: dict[str, Any] = {"type": "object"}
    if properties:
        schema["properties"] = {key: {"type": kind} for key, kind in properties.items()}
        schema["required"] = sorted(properties)[:1]
    return ToolInfo(name=name, description=description, input_schema=schema)


class FakeSession:
    def __init__(
        self,
        tools: list[ToolInfo] | None = None,
        *,
        call_result: dict[str, Any] | None = None,
        call_error: Exception | None = None,
        close_error: Exception | None = None,
        server_info: ServerInfo | None = None,
    ) -> None:
        self.tools = list(tools or [])
        self.call_result = call_result
        self.call_error = call_error
        self.close_error = close_error
        self.server_info = server_info
        self.list_calls = 0
        self.calls: list[tuple[str, dict[str, Any]]] = []
        self.closed = 0

    async def list_tools(self) -> list[ToolInfo]:
        self.list_calls += 1
        return list(self.tools)

    async def call_tool(self, name: str, arguments: dict[str, Any]) -> dict[str, Any]:
        self.calls.append((name, arguments))
        if self.call_error is not None:
            raise self.call_error
        if self.call_result is not None:
            return self.call_result
        return {"content": [{"type": "text", "text": f"{name} ok"}], "isError": False}

    async def close(self) -> None:
        self.closed += 1
        if self.close_error is not None:
            raise self.close_error


class FakeConnector:
    """Hands out scripted sessions (or raises scripted errors) per server."""

    def __init__(
        self,
        outcomes: dict[str, FakeSession | Exception],
        *,
        delays: dict[str, float] | None = None,
    ) -> None:
        self.outcomes = outcomes
        self.delays = delays or {}
        self.connect_calls: list[str] = []
        self.active = 0
        self.max_active = 0

    async def connect(self, server_name: str, config: Any) -> FakeSession:
        _ = config
        self.connect_calls.append(server_name)
        self.active += 1
        self.max_active = max(self.max_active, self.active)
        try:
            await asyncio.sleep(self.delays.get(server_name, 0))
            outcome = self.outcomes[server_name]
            if isinstance(outcome, Exception):
                raise outcome
            return outcome
        finally:
            self.active -= 1
