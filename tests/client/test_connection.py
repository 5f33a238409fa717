from __future__ import annotations

import asyncio
from contextlib import AsyncExitStack

import pytest
from mcp.types import CallToolResult, TextContent

from fakes import FakeConnector, FakeSession, tool
from mcp_cli.client import (
    RetryBudget,
    call_tool,
    connect_to_server,
    connected,
    get_tool,
    is_transient_error,
    list_tools,
    safe_close,
)
from mcp_cli.client.transport import SdkSession, merged_environment
from mcp_cli.client.types import ToolCallError
from mcp_cli.config import StdioServerConfig

CONFIG = StdioServerConfig(command="fake-server")


def run_async(coro):
    return asyncio.run(coro)


def fast_budget(max_retries: int = 2) -> RetryBudget:
    return RetryBudget.create(max_retries=max_retries, base_delay_s=0.001, total_budget_s=60)


class FlakyConnector:
    def __init__(self, failures: int, session: FakeSession) -> None:
        self.failures = failures
        self.session = session
        self.attempts = 0

    async def connect(self, server_name, config):
        self.attempts += 1
        if self.attempts <= self.failures:
            raise ConnectionRefusedError(f"connect ECONNREFUSED {server_name}")
        return self.session


def test_connect_retries_transient_failures():
    async def scenario() -> None:
        session = FakeSession([tool("echo")])
        connector = FlakyConnector(failures=2, session=session)

        client = await connect_to_server(
            "flaky", CONFIG, connector=connector, budget=fast_budget()
        )

        assert connector.attempts == 3
        assert client.session is session
        await client.close()
        assert session.closed == 1

    run_async(scenario())


def test_connect_gives_up_after_retries_and_surfaces_last_error():
    async def scenario() -> None:
        connector = FlakyConnector(failures=10, session=FakeSession())

        with pytest.raises(ConnectionRefusedError, match="ECONNREFUSED"):
            await connect_to_server(
                "flaky", CONFIG, connector=connector, budget=fast_budget(max_retries=1)
            )

        assert connector.attempts == 2

    run_async(scenario())


def test_connected_closes_session_after_body():
    async def scenario() -> None:
        session = FakeSession([tool("echo"), tool("sum")])
        connector = FakeConnector({"local": session})

        async with connected("local", CONFIG, connector=connector, budget=fast_budget()) as live:
            names = [t.name for t in await list_tools(live, budget=fast_budget())]

        assert names == ["echo", "sum"]
        assert session.closed == 1

    run_async(scenario())


def test_connected_keeps_body_error_when_close_fails():
    async def scenario() -> None:
        session = FakeSession(close_error=RuntimeError("close exploded"))
        connector = FakeConnector({"local": session})

        with pytest.raises(KeyError, match="body failed"):
            async with connected("local", CONFIG, connector=connector, budget=fast_budget()):
                raise KeyError("body failed")

        assert session.closed == 1

    run_async(scenario())


def test_safe_close_swallows_close_errors():
    async def scenario() -> None:
        session = FakeSession(close_error=BrokenPipeError("pipe closed"))
        await safe_close(session.close)
        assert session.closed == 1

    run_async(scenario())


def test_get_tool_and_call_tool_use_the_session():
    async def scenario() -> None:
        session = FakeSession([tool("echo", "Echo input", text="string")])

        found = await get_tool(session, "echo", budget=fast_budget())
        missing = await get_tool(session, "nope", budget=fast_budget())
        result = await call_tool(session, "echo", {"text": "hi"}, budget=fast_budget())

        assert found is not None and found.description == "Echo input"
        assert missing is None
        assert session.calls == [("echo", {"text": "hi"})]
        assert result["content"][0]["text"] == "echo ok"

    run_async(scenario())


def test_call_tool_does_not_retry_tool_failures():
    async def scenario() -> None:
        session = FakeSession(call_error=RuntimeError("validation failed: text is required"))

        with pytest.raises(RuntimeError, match="validation failed"):
            await call_tool(session, "echo", {}, budget=fast_budget())

        assert len(session.calls) == 1

    run_async(scenario())


def test_tool_error_with_transient_looking_text_runs_once():
    async def scenario() -> None:
        session = FakeSession(
            call_result={
                "content": [{"type": "text", "text": "upstream connection refused"}],
                "isError": True,
            }
        )

        with pytest.raises(ToolCallError, match="upstream connection refused"):
            await call_tool(session, "fetch", {"url": "x"}, budget=fast_budget(max_retries=3))

        assert len(session.calls) == 1
        assert is_transient_error(ToolCallError("request timeout")) is False

    run_async(scenario())


def test_sdk_error_result_raises_after_a_single_call():
    class StubClientSession:
        def __init__(self) -> None:
            self.calls = 0

        async def call_tool(self, name, arguments):
            self.calls += 1
            return CallToolResult(
                content=[TextContent(type="text", text="gateway timeout")], isError=True
            )

    async def scenario() -> None:
        stub = StubClientSession()
        session = SdkSession(stub, AsyncExitStack())

        with pytest.raises(ToolCallError, match="gateway timeout"):
            await call_tool(session, "fetch", {}, budget=fast_budget(max_retries=3))

        assert stub.calls == 1

    run_async(scenario())


def test_hung_connect_is_cut_off_by_the_budget():
    async def scenario() -> None:
        connector = FakeConnector({"stuck": FakeSession()}, delays={"stuck": 3600})
        budget = RetryBudget.create(max_retries=3, base_delay_s=0.01, total_budget_s=0.2)

        with pytest.raises(TimeoutError, match="connect to stuck: timed out"):
            await connect_to_server("stuck", CONFIG, connector=connector, budget=budget)

        assert connector.connect_calls == ["stuck"]
        assert connector.active == 0

    run_async(scenario())


def test_merged_environment_overlays_config_env(monkeypatch):
    monkeypatch.setenv("MCP_CLI_TEST_BASE", "base")
    monkeypatch.setenv("MCP_CLI_TEST_OVERRIDE", "old")

    env = merged_environment({"MCP_CLI_TEST_OVERRIDE": "new", "EXTRA": "1"})

    assert env["MCP_CLI_TEST_BASE"] == "base"
    assert env["MCP_CLI_TEST_OVERRIDE"] == "new"
    assert env["EXTRA"] == "1"
