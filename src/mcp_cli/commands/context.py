"""
MIT License
Copyright (c) 2026 arpan404
See LICENSE file for full license text.

Shared per-invocation state handed to every command.
"""

from __future__ import annotations

import sys
from dataclasses import dataclass
from typing import TextIO

from ..cache import ToolListCache
from ..client.retry import RetryBudget
from ..client.types import Connector
from ..config import McpServersConfig, load_config
from ..output import Renderer, should_colorize
from ..settings import RuntimeSettings


@dataclass(slots=True)
class CommandContext:
    """
    Explicit dependencies of one command run.

    Attributes:
        settings: Settings resolved once for this invocation.
        connector: Opens server sessions.
        cache: Tool list cache.
        out: Stream for results.
        err: Stream for warnings and diagnostics.
        renderer: Text formatter.
    """

    settings: RuntimeSettings
    connector: Connector
    cache: ToolListCache
    out: TextIO
    err: TextIO
    renderer: Renderer

    @classmethod
    def create(
        cls,
        settings: RuntimeSettings,
        connector: Connector,
        *,
        cache: ToolListCache | None = None,
        out: TextIO | None = None,
        err: TextIO | None = None,
    ) -> "CommandContext":
        out = out if out is not None else sys.stdout
        return cls(
            settings=settings,
            connector=connector,
            cache=cache or ToolListCache.from_settings(settings),
            out=out,
            err=err if err is not None else sys.stderr,
            renderer=Renderer(color=should_colorize(out)),
        )

    @property
    def budget(self) -> RetryBudget:
        return RetryBudget.from_settings(self.settings)

    def load_config(self, explicit_path: str | None) -> McpServersConfig:
        return load_config(
            explicit_path,
            env_path=self.settings.config_path,
            strict_env=self.settings.strict_env,
        )

    def emit(self, text: str) -> None:
        print(text, file=self.out)

    def warn(self, text: str) -> None:
        print(text, file=self.err)
