"""Retry logic with exponential backoff and a per-attempt deadline."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from typing import TypeVar

T = TypeVar("T")
logger = logging.getLogger(__name__)


def backoff_delay(attempt: int, base_delay: float, max_delay: float) -> float:
    """Delay before retry number ``attempt`` (1-based): base * 2^(attempt-1), capped."""
    return min(base_delay * (2 ** (attempt - 1)), max_delay)


async def retry_with_backoff(
    func: Callable[[], Awaitable[T]],
    max_retries: int = 2,
    base_delay: float = 1.0,
    max_delay: float = 30.0,
    timeout: float | None = None,
    on_retry: Callable[[int, Exception, float], None] | None = None,
) -> T:
    """
    Await ``func()`` up to ``max_retries + 1`` times.

    Any exception, including a missed deadline, counts as a failed attempt.
    The last error is re-raised once retries are exhausted.
    """
    attempt = 0
    while True:
        try:
            if timeout is not None:
                return await asyncio.wait_for(func(), timeout=timeout)
            return await func()
        except Exception as e:
            attempt += 1
            if attempt > max_retries:
                raise
            delay = backoff_delay(attempt, base_delay, max_delay)
            logger.warning(
                f"Retry attempt {attempt}/{max_retries} after error: {e!r}. Retrying in {delay}s..."
            )
            if on_retry:
                on_retry(attempt, e, delay)
            if delay > 0:
                await asyncio.sleep(delay)
