"""
Backoff-and-retry for oracle calls.

Rate limits (429), server errors (5xx) and dropped connections are
treated as transient; everything else fails fast.
"""

from __future__ import annotations

import asyncio
import random
from typing import Awaitable, Callable, TypeVar

import openai

from script_sentinel.utils import logger

log = logger.create_logger("Retry")

T = TypeVar("T")


def _status_of(error: BaseException) -> int | None:
    for attr in ("status_code", "status"):
        code = getattr(error, attr, None)
        if isinstance(code, int):
            return code
    return None


def is_rate_limit_error(error: BaseException) -> bool:
    """Check if the error is a rate limit (429) error."""
    if isinstance(error, openai.RateLimitError):
        return True
    if _status_of(error) == 429:
        return True
    return "rate limit" in str(error).lower()


def is_retryable_error(error: BaseException) -> bool:
    """Check if the error is transient and worth retrying."""
    if is_rate_limit_error(error):
        return True
    if isinstance(error, (openai.APIConnectionError, openai.InternalServerError)):
        return True
    status = _status_of(error)
    if status is not None and 500 <= status < 600:
        return True
    return isinstance(error, (ConnectionError, TimeoutError))


def get_retry_after_ms(error: BaseException) -> int | None:
    """Extract a ``Retry-After`` delay in milliseconds from the error, if any."""
    headers = getattr(error, "headers", None)
    if headers is None:
        response = getattr(error, "response", None)
        headers = getattr(response, "headers", None)
    if headers is None:
        return None
    try:
        raw = headers.get("retry-after") or headers.get("Retry-After")
    except AttributeError:
        return None
    if not raw:
        return None
    try:
        return int(float(raw) * 1000)
    except (ValueError, TypeError):
        return None


def _next_delay_ms(error: BaseException, scheduled_ms: int, cap_ms: int) -> int:
    """Delay before the next attempt: ``Retry-After`` if sent, else the schedule, +/-20% jitter."""
    base = get_retry_after_ms(error)
    if base is None:
        base = scheduled_ms
    spread = base * 0.2
    return max(0, min(round(base + random.uniform(-spread, spread)), cap_ms))


async def with_retry(
    fn: Callable[[], Awaitable[T]],
    *,
    max_retries: int = 3,
    initial_delay_ms: int = 1000,
    max_delay_ms: int = 30000,
    backoff_multiplier: float = 2.0,
    context: str | None = None,
) -> T:
    """
    Await ``fn()``, retrying transient failures with exponential backoff.

    Anything ``is_retryable_error`` rejects propagates on the first
    attempt; a transient error propagates once ``max_retries`` extra
    attempts have been spent.
    """
    scheduled_ms = initial_delay_ms
    attempt = 0
    while True:
        try:
            return await fn()
        except Exception as error:
            attempt += 1
            if not is_retryable_error(error):
                raise
            if attempt > max_retries:
                log.warn(
                    "Giving up after transient errors",
                    {"context": context, "attempts": attempt, "error": str(error)},
                )
                raise

            wait_ms = _next_delay_ms(error, scheduled_ms, max_delay_ms)
            log.warn(
                "Transient oracle error, backing off",
                {
                    "context": context,
                    "attempt": attempt,
                    "maxRetries": max_retries,
                    "delayMs": wait_ms,
                    "rateLimited": is_rate_limit_error(error),
                    "error": str(error)[:100],
                },
            )
            await asyncio.sleep(wait_ms / 1000)
            scheduled_ms = min(int(scheduled_ms * backoff_multiplier), max_delay_ms)
