"""
MIT License
Copyright (c) 2026 arpan404
See LICENSE file for full license text.

Cache command: inspect or clear cached tool lists.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Literal

from ..config import get_server_config
from ..output import format_duration
from .context import CommandContext

CacheAction = Literal["clear", "stats"]


@dataclass(slots=True)
class CacheOptions:
    action: CacheAction
    server: str | None = None
    config_path: str | None = None


async def cache_command(options: CacheOptions, ctx: CommandContext) -> int:
    """Execute the cache command."""
    cache = ctx.cache
    if not cache.enabled:
        ctx.warn("Cache is disabled (MCP_NO_CACHE=true)")
        return 0

    if options.action == "clear":
        if options.server:
            config = ctx.load_config(options.config_path)
            get_server_config(config, options.server)
            cache.clear(options.server)
            ctx.emit(f"Cleared cache for server: {options.server}")
        else:
            cache.clear_all()
            ctx.emit("Cleared all caches")
        return 0

    stats = sorted(cache.stats(), key=lambda stat: stat.server_name)
    if not stats:
        ctx.emit("No cached tool lists")
        return 0

    ttl_s = round(cache.ttl_s)
    lines = [f"Cache TTL: {format_duration(ttl_s)}", "", "Cached servers:"]
    width = max(len(stat.server_name) for stat in stats)
    for stat in stats:
        remaining = ttl_s - stat.age_s
        validity = f"valid for {format_duration(remaining)}" if remaining > 0 else "expired"
        lines.append(
            f"  {stat.server_name.ljust(width)}  {stat.tool_count} tools  "
            f"(age: {format_duration(stat.age_s)}, {validity})"
        )
    ctx.emit("\n".join(lines))
    return 0
