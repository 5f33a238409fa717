"""
MIT License
Copyright (c) 2026 arpan404
See LICENSE file for full license text.

Runtime settings resolved once per invocation from environment variables.
"""

from __future__ import annotations

import os
import re
from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path

DEFAULT_TIMEOUT_S = 1800  # 30 minutes
DEFAULT_CONCURRENCY = 5
DEFAULT_MAX_RETRIES = 3
DEFAULT_RETRY_DELAY_MS = 1000
DEFAULT_CACHE_TTL_S = 3600  # 1 hour

_LEADING_INT = re.compile(r"^\s*([+-]?\d+)")


def _parse_int(raw: str | None) -> int | None:
    """Parse the leading integer of ``raw`` (``"15s"`` -> 15)."""
    if not raw:
        return None
    match = _LEADING_INT.match(raw)
    if match is None:
        return None
    return int(match.group(1))


def _positive_int(raw: str | None, default: int) -> int:
    value = _parse_int(raw)
    if value is None or value <= 0:
        return default
    return value


def _non_negative_int(raw: str | None, default: int) -> int:
    value = _parse_int(raw)
    if value is None or value < 0:
        return default
    return value


def _flag(raw: str | None) -> bool:
    return (raw or "").strip().lower() in {"true", "1"}


def default_cache_dir() -> Path:
    return Path.home() / ".cache" / "mcp-cli"


@dataclass(frozen=True, slots=True)
class RuntimeSettings:
    """
    Process-wide knobs for connection, retry, concurrency and caching.

    Attributes:
        timeout_s: Global wall-clock budget per logical operation.
        concurrency: Maximum servers processed concurrently.
        max_retries: Retry attempts for transient failures (0 disables).
        retry_delay_ms: Base delay for exponential backoff.
        cache_ttl_s: Lifetime of a cached tool list.
        cache_disabled: Skip cache reads and writes entirely.
        cache_dir: Directory holding one cache record per server.
        debug: Emit debug logging on stderr.
        strict_env: Fail on missing ``${VAR}`` references in the config file.
        config_path: Config file path from ``MCP_CONFIG_PATH``.
    """

    timeout_s: int = DEFAULT_TIMEOUT_S
    concurrency: int = DEFAULT_CONCURRENCY
    max_retries: int = DEFAULT_MAX_RETRIES
    retry_delay_ms: int = DEFAULT_RETRY_DELAY_MS
    cache_ttl_s: int = DEFAULT_CACHE_TTL_S
    cache_disabled: bool = False
    cache_dir: Path = field(default_factory=default_cache_dir)
    debug: bool = False
    strict_env: bool = True
    config_path: str | None = None

    @staticmethod
    def from_env(environ: Mapping[str, str] | None = None) -> "RuntimeSettings":
        """Load settings from environment variables, falling back to defaults."""
        env = os.environ if environ is None else environ
        cache_dir = env.get("MCP_CACHE_DIR")
        strict = (env.get("MCP_STRICT_ENV") or "").strip().lower()
        return RuntimeSettings(
            timeout_s=_positive_int(env.get("MCP_TIMEOUT"), DEFAULT_TIMEOUT_S),
            concurrency=_positive_int(env.get("MCP_CONCURRENCY"), DEFAULT_CONCURRENCY),
            max_retries=_non_negative_int(env.get("MCP_MAX_RETRIES"), DEFAULT_MAX_RETRIES),
            retry_delay_ms=_positive_int(env.get("MCP_RETRY_DELAY"), DEFAULT_RETRY_DELAY_MS),
            cache_ttl_s=_positive_int(env.get("MCP_CACHE_TTL"), DEFAULT_CACHE_TTL_S),
            cache_disabled=_flag(env.get("MCP_NO_CACHE")),
            cache_dir=Path(cache_dir).expanduser() if cache_dir else default_cache_dir(),
            debug=bool(env.get("MCP_DEBUG")),
            strict_env=strict not in {"false", "0"},
            config_path=env.get("MCP_CONFIG_PATH") or None,
        )
