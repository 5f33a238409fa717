"""
MIT License
Copyright (c) 2026 arpan404
See LICENSE file for full license text.

Bounded retry with exponential backoff under a global time budget.
"""

from __future__ import annotations

import asyncio
import errno
import logging
import random
import re
import socket
import time
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import TypeVar

from ..settings import RuntimeSettings
from .types import RetryBudgetExhaustedError, ToolCallError

T = TypeVar("T")

logger = logging.getLogger("mcp_cli.client")

# Final attempt keeps at least this much of the budget.
_FINAL_ATTEMPT_RESERVE_S = 5.0
_MAX_DELAY_CEILING_S = 10.0
# No retry is scheduled with less than this remaining.
_MIN_REMAINING_S = 1.0
_JITTER_RATIO = 0.25

_TRANSIENT_CODES = frozenset(
    {
        "ECONNREFUSED",
        "ECONNRESET",
        "ETIMEDOUT",
        "ENOTFOUND",
        "EPIPE",
        "ENETUNREACH",
        "EHOSTUNREACH",
        "EAI_AGAIN",
    }
)

_TRANSIENT_ERRNOS = frozenset(
    {
        errno.ECONNREFUSED,
        errno.ECONNRESET,
        errno.ETIMEDOUT,
        errno.EPIPE,
        errno.ENETUNREACH,
        errno.EHOSTUNREACH,
    }
)

_TRANSIENT_GAI_ERRNOS = frozenset(
    code
    for code in (
        getattr(socket, "EAI_AGAIN", None),
        getattr(socket, "EAI_NONAME", None),
        getattr(socket, "EAI_NODATA", None),
    )
    if code is not None
)

_HTTP_STATUS_LEADING = re.compile(r"^(502|503|504|429)\b")
_HTTP_STATUS_CONTEXT = re.compile(
    r"\b(http|status(\s+code)?)\s*(502|503|504|429)\b", re.IGNORECASE
)
_HTTP_STATUS_PHRASE = re.compile(
    r"\b(502|503|504|429)\s+(bad gateway|service unavailable|gateway timeout|too many requests)",
    re.IGNORECASE,
)
_NETWORK_PHRASE = re.compile(r"\bnetwork\s*(error|fail|unavailable|timeout)", re.IGNORECASE)
_CONNECTION_PHRASE = re.compile(r"\bconnection\s*(reset|refused|timeout)", re.IGNORECASE)
_TIMEOUT_WORD = re.compile(r"\btimeout\b", re.IGNORECASE)


@dataclass(frozen=True, slots=True)
class RetryBudget:
    """Retry limits for one logical operation."""

    max_retries: int
    base_delay_s: float
    max_delay_s: float
    total_budget_s: float

    @classmethod
    def create(
        cls,
        *,
        max_retries: int,
        base_delay_s: float,
        total_budget_s: float,
    ) -> "RetryBudget":
        """Derive the backoff ceiling so the final attempt keeps ~5s of budget."""
        retry_window_s = max(0.0, total_budget_s - _FINAL_ATTEMPT_RESERVE_S)
        return cls(
            max_retries=max_retries,
            base_delay_s=base_delay_s,
            max_delay_s=min(_MAX_DELAY_CEILING_S, retry_window_s / 2),
            total_budget_s=total_budget_s,
        )

    @classmethod
    def from_settings(cls, settings: RuntimeSettings) -> "RetryBudget":
        return cls.create(
            max_retries=settings.max_retries,
            base_delay_s=settings.retry_delay_ms / 1000.0,
            total_budget_s=float(settings.timeout_s),
        )


def root_error(error: BaseException) -> BaseException:
    """Unwrap single-member exception groups down to the underlying error."""
    current = error
    while isinstance(current, BaseExceptionGroup) and len(current.exceptions) == 1:
        current = current.exceptions[0]
    return current


def error_message(error: BaseException) -> str:
    """User-facing message for an error, looking through exception groups."""
    root = root_error(error)
    return str(root) or type(root).__name__


def _has_transient_code(error: BaseException) -> bool:
    code = getattr(error, "code", None)
    if isinstance(code, str) and code.upper() in _TRANSIENT_CODES:
        return True
    if isinstance(error, socket.gaierror):
        return error.errno in _TRANSIENT_GAI_ERRNOS
    if isinstance(error, OSError) and error.errno in _TRANSIENT_ERRNOS:
        return True
    return isinstance(
        error,
        (ConnectionRefusedError, ConnectionResetError, BrokenPipeError, TimeoutError),
    )


def is_transient_error(error: BaseException) -> bool:
    """
    Classify an error as worth retrying.

    Network fault codes are checked first; the message is only inspected
    when no recognized code is present. HTTP statuses count only as a
    leading token or in explicit HTTP context so that unrelated numbers
    (line numbers, ports) do not match.
    """
    if isinstance(error, BaseExceptionGroup):
        return any(is_transient_error(inner) for inner in error.exceptions)

    if isinstance(error, ToolCallError):
        return False

    if _has_transient_code(error):
        return True

    message = str(error)
    if _HTTP_STATUS_LEADING.search(message):
        return True
    if _HTTP_STATUS_CONTEXT.search(message):
        return True
    if _HTTP_STATUS_PHRASE.search(message):
        return True

    if _NETWORK_PHRASE.search(message):
        return True
    if _CONNECTION_PHRASE.search(message):
        return True
    return bool(_TIMEOUT_WORD.search(message))


def backoff_delay(
    attempt: int,
    budget: RetryBudget,
    *,
    rand: Callable[[], float] = random.random,
) -> float:
    """Exponential delay capped at ``max_delay_s`` with +/-25% jitter."""
    capped = min(budget.base_delay_s * 2**attempt, budget.max_delay_s)
    jitter = capped * _JITTER_RATIO * (rand() * 2 - 1)
    return max(0.0, capped + jitter)


async def _bounded_attempt(
    operation: Callable[[], Awaitable[T]],
    label: str,
    timeout_s: float,
) -> T:
    """Run one attempt, cancelling it once the remaining budget is spent."""
    scope = asyncio.timeout(timeout_s)
    try:
        async with scope:
            return await operation()
    except TimeoutError as e:
        if scope.expired():
            raise TimeoutError(f"{label}: timed out after {timeout_s:.1f}s") from e
        raise


async def with_retry(
    operation: Callable[[], Awaitable[T]],
    label: str,
    budget: RetryBudget,
    *,
    sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    clock: Callable[[], float] = time.monotonic,
    rand: Callable[[], float] = random.random,
) -> T:
    """
    Run ``operation`` until it succeeds or retries are exhausted.

    Non-transient errors, the last allowed attempt and a nearly spent budget
    re-raise the captured error immediately. The error surfaced is always
    the last real failure. Each attempt is also cancelled once the remaining
    budget is spent, which surfaces as a ``TimeoutError`` naming ``label``.
    """
    last_error: Exception | None = None
    started = clock()

    for attempt in range(budget.max_retries + 1):
        elapsed = clock() - started
        if elapsed >= budget.total_budget_s:
            logger.debug("%s: timeout budget exhausted after %.1fs", label, elapsed)
            break

        try:
            return await _bounded_attempt(
                operation, label, budget.total_budget_s - elapsed
            )
        except Exception as error:
            last_error = error

            remaining = budget.total_budget_s - (clock() - started)
            should_retry = (
                attempt < budget.max_retries
                and is_transient_error(error)
                and remaining > _MIN_REMAINING_S
            )
            if not should_retry:
                raise

            delay = min(backoff_delay(attempt, budget, rand=rand), remaining - _MIN_REMAINING_S)
            logger.debug(
                "%s failed (attempt %d/%d): %s. Retrying in %.0fms...",
                label,
                attempt + 1,
                budget.max_retries + 1,
                error_message(error),
                delay * 1000,
            )
            await sleep(delay)

    if last_error is not None:
        raise last_error
    raise RetryBudgetExhaustedError(f"{label}: timeout budget exhausted")
