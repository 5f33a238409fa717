"""
MIT License
Copyright (c) 2026 arpan404
See LICENSE file for full license text.

Text and JSON rendering for command output.
"""

from __future__ import annotations

import json
import os
import sys
from collections.abc import Sequence
from typing import Any, TextIO

from .client.types import ServerInfo, ToolInfo
from .config import HttpServerConfig, ServerConfig

RESET = "\x1b[0m"
BOLD = "\x1b[1m"
DIM = "\x1b[2m"
GREEN = "\x1b[32m"
YELLOW = "\x1b[33m"
CYAN = "\x1b[36m"


def should_colorize(stream: TextIO | None = None) -> bool:
    target = stream if stream is not None else sys.stdout
    isatty = getattr(target, "isatty", None)
    return bool(isatty and isatty()) and not os.environ.get("NO_COLOR")


class Renderer:
    """Formats command results, colouring only for interactive terminals."""

    def __init__(self, *, color: bool = False) -> None:
        self.color = color

    def _c(self, text: str, code: str) -> str:
        if not self.color:
            return text
        return f"{code}{text}{RESET}"

    def server_list(
        self,
        servers: Sequence[tuple[str, Sequence[ToolInfo], str | None]],
        *,
        with_descriptions: bool,
    ) -> str:
        lines: list[str] = []
        for name, tools, error in servers:
            lines.append(self._c(name, BOLD + CYAN))
            if error is not None:
                lines.append(f"  • <error: {error}>")
            for tool in tools:
                if with_descriptions and tool.description:
                    lines.append(f"  • {tool.name} - {self._c(tool.description, DIM)}")
                else:
                    lines.append(f"  • {tool.name}")
            lines.append("")
        return "\n".join(lines).rstrip()

    def search_results(
        self,
        results: Sequence[tuple[str, ToolInfo]],
        *,
        with_descriptions: bool,
    ) -> str:
        lines: list[str] = []
        for server, tool in results:
            path = f"{self._c(server, CYAN)}/{self._c(tool.name, GREEN)}"
            if with_descriptions and tool.description:
                lines.append(f"{path} - {self._c(tool.description, DIM)}")
            else:
                lines.append(path)
        return "\n".join(lines)

    def server_details(
        self,
        server_name: str,
        config: ServerConfig,
        tools: Sequence[ToolInfo],
        *,
        server_info: ServerInfo | None = None,
        with_descriptions: bool = False,
    ) -> str:
        lines = [f"{self._c('Server:', BOLD)} {self._c(server_name, CYAN)}"]
        if isinstance(config, HttpServerConfig):
            lines.append(f"{self._c('Transport:', BOLD)} HTTP")
            lines.append(f"{self._c('URL:', BOLD)} {config.url}")
        else:
            lines.append(f"{self._c('Transport:', BOLD)} stdio")
            command_line = " ".join([config.command, *config.args])
            lines.append(f"{self._c('Command:', BOLD)} {command_line}")
        if server_info is not None and server_info.version:
            lines.append(f"{self._c('Version:', BOLD)} {server_info.name} {server_info.version}")

        lines.append("")
        lines.append(self._c(f"Tools ({len(tools)}):", BOLD))
        for tool in tools:
            lines.append(f"  {self._c(tool.name, GREEN)}")
            if with_descriptions and tool.description:
                lines.append(f"    {self._c(tool.description, DIM)}")
            properties = tool.input_schema.get("properties")
            if isinstance(properties, dict) and properties:
                required = tool.input_schema.get("required") or []
                lines.append(f"    {self._c('Parameters:', YELLOW)}")
                for name, prop in properties.items():
                    prop = prop if isinstance(prop, dict) else {}
                    status = "required" if name in required else "optional"
                    kind = prop.get("type") or "any"
                    desc = ""
                    if with_descriptions and prop.get("description"):
                        desc = f" - {prop['description']}"
                    lines.append(f"      • {name} ({kind}, {status}){desc}")
            lines.append("")
        return "\n".join(lines).rstrip()

    def tool_schema(self, server_name: str, tool: ToolInfo) -> str:
        lines = [
            f"{self._c('Tool:', BOLD)} {self._c(tool.name, GREEN)}",
            f"{self._c('Server:', BOLD)} {self._c(server_name, CYAN)}",
            "",
        ]
        if tool.description:
            lines.append(self._c("Description:", BOLD))
            lines.append(f"  {tool.description}")
            lines.append("")
        lines.append(self._c("Input Schema:", BOLD))
        lines.append(format_json(tool.input_schema))
        return "\n".join(lines)


def format_tool_result(result: Any) -> str:
    """Text content of a tool result, falling back to JSON."""
    if isinstance(result, dict):
        content = result.get("content")
        if isinstance(content, list):
            texts = [
                row["text"]
                for row in content
                if isinstance(row, dict) and row.get("type") == "text" and row.get("text")
            ]
            if texts:
                return "\n".join(texts)
    return format_json(result)


def format_json(data: Any) -> str:
    return json.dumps(data, indent=2, ensure_ascii=False)


def format_duration(seconds: int) -> str:
    """Compact human-readable duration (``90`` -> ``1m 30s``)."""
    if seconds < 60:
        return f"{seconds}s"
    if seconds < 3600:
        minutes, secs = divmod(seconds, 60)
        return f"{minutes}m {secs}s" if secs else f"{minutes}m"
    hours, rest = divmod(seconds, 3600)
    minutes = rest // 60
    return f"{hours}h {minutes}m" if minutes else f"{hours}h"
