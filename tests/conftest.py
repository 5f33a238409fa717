from __future__ import annotations

import io
import json
from pathlib import Path

import pytest

from mcp_cli.commands import CommandContext
from mcp_cli.settings import RuntimeSettings


@pytest.fixture
def write_config(tmp_path: Path):
    def _write(servers: dict, name: str = "mcp_servers.json") -> str:
        path = tmp_path / name
        path.write_text(json.dumps({"mcpServers": servers}), encoding="utf-8")
        return str(path)

    return _write


@pytest.fixture
def make_context(tmp_path: Path):
    def _make(connector, **overrides) -> CommandContext:
        overrides.setdefault("cache_dir", tmp_path / "cache")
        overrides.setdefault("max_retries", 0)
        settings = RuntimeSettings(**overrides)
        return CommandContext.create(
            settings,
            connector,
            out=io.StringIO(),
            err=io.StringIO(),
        )

    return _make
