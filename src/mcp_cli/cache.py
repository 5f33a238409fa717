"""
MIT License
Copyright (c) 2026 arpan404
See LICENSE file for full license text.

On-disk tool list cache so discovery can skip live connections.

One JSON record per server, keyed by a filesystem-safe form of the server
name. Every failure mode on read degrades to a cache miss; write failures
are logged and ignored.
"""

from __future__ import annotations

import json
import logging
import os
import re
import shutil
import tempfile
import time
from collections.abc import Callable, Sequence
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from .client.types import ToolInfo
from .settings import RuntimeSettings

logger = logging.getLogger("mcp_cli.cache")

CACHE_VERSION = 1
# Upper bound for a plausible epoch-ms timestamp; inf and NaN fail it too.
_MAX_TIMESTAMP_MS = 10**15

_UNSAFE_CHARS = re.compile(r"[^a-zA-Z0-9_-]")


def cache_key(server_name: str) -> str:
    """
    Filesystem-safe key for a server name.

    Distinct names that differ only in replaced characters (``a/b`` and
    ``a_b``) share a key and overwrite each other's entry.
    """
    return _UNSAFE_CHARS.sub("_", server_name)


@dataclass(frozen=True, slots=True)
class CacheEntry:
    """One persisted tool list snapshot."""

    server_name: str
    tools: list[ToolInfo]
    timestamp_ms: int
    version: int = CACHE_VERSION

    def to_record(self) -> dict[str, Any]:
        return {
            "serverName": self.server_name,
            "tools": [tool.to_dict() for tool in self.tools],
            "timestamp": self.timestamp_ms,
            "version": self.version,
        }

    @classmethod
    def from_record(cls, record: Any) -> "CacheEntry":
        if not isinstance(record, dict):
            raise ValueError("cache record must be an object")
        server_name = record.get("serverName")
        tools = record.get("tools")
        timestamp = record.get("timestamp")
        version = record.get("version")
        if not isinstance(server_name, str):
            raise ValueError("cache record missing 'serverName'")
        if not isinstance(tools, list):
            raise ValueError("cache record missing 'tools'")
        if isinstance(timestamp, bool) or not isinstance(timestamp, (int, float)):
            raise ValueError("cache record missing 'timestamp'")
        if not 0 <= timestamp <= _MAX_TIMESTAMP_MS:
            raise ValueError("cache record 'timestamp' out of range")
        return cls(
            server_name=server_name,
            tools=[ToolInfo.from_dict(row) for row in tools],
            timestamp_ms=int(timestamp),
            version=version if isinstance(version, int) else -1,
        )


@dataclass(frozen=True, slots=True)
class CacheStat:
    """Age and size of one cached tool list."""

    server_name: str
    age_s: int
    tool_count: int


class ToolListCache:
    """
    Time-boxed, versioned tool list cache backed by a directory of JSON files.

    Records are rewritten wholesale through a temporary file and an atomic
    rename, so concurrent writers resolve to last-write-wins.
    """

    def __init__(
        self,
        cache_dir: Path,
        *,
        ttl_s: float,
        enabled: bool = True,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self.cache_dir = Path(cache_dir)
        self.ttl_s = ttl_s
        self.enabled = enabled
        self._clock = clock

    @classmethod
    def from_settings(cls, settings: RuntimeSettings) -> "ToolListCache":
        return cls(
            settings.cache_dir,
            ttl_s=settings.cache_ttl_s,
            enabled=not settings.cache_disabled,
        )

    def path_for(self, server_name: str) -> Path:
        return self.cache_dir / f"{cache_key(server_name)}.json"

    def _now_ms(self) -> int:
        return int(self._clock() * 1000)

    def get(self, server_name: str) -> list[ToolInfo] | None:
        """Return the cached tools when present, current-version and live."""
        if not self.enabled:
            logger.debug("Cache disabled, skipping cache lookup for %s", server_name)
            return None

        path = self.path_for(server_name)
        if not path.exists():
            logger.debug("No cache found for %s", server_name)
            return None

        try:
            entry = CacheEntry.from_record(json.loads(path.read_text(encoding="utf-8")))
        except (OSError, ValueError, RecursionError) as e:
            logger.debug("Failed to read cache for %s: %s", server_name, e)
            return None

        if entry.version != CACHE_VERSION:
            logger.debug(
                "Cache version mismatch for %s (expected %d, got %d)",
                server_name,
                CACHE_VERSION,
                entry.version,
            )
            return None

        age_ms = self._now_ms() - entry.timestamp_ms
        if age_ms > self.ttl_s * 1000:
            logger.debug(
                "Cache expired for %s (age: %ds, ttl: %ds)",
                server_name,
                round(age_ms / 1000),
                round(self.ttl_s),
            )
            return None

        logger.debug(
            "Cache hit for %s (age: %ds, %d tools)",
            server_name,
            round(age_ms / 1000),
            len(entry.tools),
        )
        return list(entry.tools)

    def set(self, server_name: str, tools: Sequence[ToolInfo]) -> None:
        """Persist a fresh snapshot, replacing any prior entry."""
        if not self.enabled:
            logger.debug("Cache disabled, skipping cache save for %s", server_name)
            return

        entry = CacheEntry(
            server_name=server_name,
            tools=list(tools),
            timestamp_ms=self._now_ms(),
        )
        try:
            self.cache_dir.mkdir(parents=True, exist_ok=True)
            self._write_atomic(self.path_for(server_name), entry.to_record())
        except (OSError, TypeError, ValueError) as e:
            logger.debug("Failed to save cache for %s: %s", server_name, e)
            return
        logger.debug("Cached %d tools for %s", len(entry.tools), server_name)

    def _write_atomic(self, path: Path, record: dict[str, Any]) -> None:
        fd, tmp_name = tempfile.mkstemp(
            dir=self.cache_dir, prefix=f".{path.stem}.", suffix=".tmp"
        )
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as handle:
                json.dump(record, handle, indent=2)
            os.replace(tmp_name, path)
        except BaseException:
            Path(tmp_name).unlink(missing_ok=True)
            raise

    def clear(self, server_name: str) -> None:
        path = self.path_for(server_name)
        if path.exists():
            path.unlink(missing_ok=True)
            logger.debug("Cleared cache for %s", server_name)

    def clear_all(self) -> None:
        if self.cache_dir.exists():
            shutil.rmtree(self.cache_dir, ignore_errors=True)
            logger.debug("Cleared all caches")

    def stats(self) -> list[CacheStat]:
        """Age and tool count for every readable entry, expired ones included."""
        if not self.cache_dir.is_dir():
            return []

        now_ms = self._now_ms()
        stats: list[CacheStat] = []
        for path in sorted(self.cache_dir.glob("*.json")):
            try:
                entry = CacheEntry.from_record(json.loads(path.read_text(encoding="utf-8")))
            except (OSError, ValueError, RecursionError) as e:
                logger.debug("Failed to read cache file %s: %s", path.name, e)
                continue
            stats.append(
                CacheStat(
                    server_name=entry.server_name,
                    age_s=round((now_ms - entry.timestamp_ms) / 1000),
                    tool_count=len(entry.tools),
                )
            )
        return stats
