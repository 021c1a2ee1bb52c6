"""Bounded retry with exponential backoff for coroutine steps."""

from __future__ import annotations

import asyncio
import dataclasses
import logging
from collections.abc import Awaitable, Callable
from typing import TypeVar

from cardpilot.models import (
    DEFAULT_RETRY_BACKOFF_FACTOR,
    DEFAULT_RETRY_INITIAL_DELAY,
    DEFAULT_RETRY_MAX_DELAY,
)

logger = logging.getLogger("cardpilot.engine.retry")

T = TypeVar("T")


async def retry_async(
    operation: Callable[[], Awaitable[T]],
    retries: int,
    initial_delay: float = DEFAULT_RETRY_INITIAL_DELAY,
    max_delay: float = DEFAULT_RETRY_MAX_DELAY,
    backoff_factor: float = DEFAULT_RETRY_BACKOFF_FACTOR,
    sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
) -> T:
    """Await ``operation()`` until it succeeds or *retries* retries are spent.

    Between attempts waits ``min(delay, max_delay)`` seconds, multiplying
    ``delay`` by *backoff_factor* after each failure. The last exception is
    re-raised unchanged. *operation* is invoked at most ``retries + 1`` times.
    """
    if retries < 0:
        raise ValueError(f"retries must be >= 0, got {retries}")

    attempt = 0
    delay = initial_delay
    while True:
        try:
            return await operation()
        except Exception as exc:
            attempt += 1
            if attempt > retries:
                raise
            wait = min(delay, max_delay)
            logger.debug(
                "Attempt %d/%d failed (%s: %s), retrying in %.2fs",
                attempt, retries + 1, type(exc).__name__, exc, wait,
            )
            await sleep(wait)
            delay *= backoff_factor


@dataclasses.dataclass(frozen=True)
class RetryPolicy:
    """Retry parameters bundled for reuse across flow steps."""

    retries: int
    initial_delay: float = DEFAULT_RETRY_INITIAL_DELAY
    max_delay: float = DEFAULT_RETRY_MAX_DELAY
    backoff_factor: float = DEFAULT_RETRY_BACKOFF_FACTOR

    def with_retries(self, retries: int) -> RetryPolicy:
        return dataclasses.replace(self, retries=retries)

    async def run(self, operation: Callable[[], Awaitable[T]]) -> T:
        return await retry_async(
            operation,
            retries=self.retries,
            initial_delay=self.initial_delay,
            max_delay=self.max_delay,
            backoff_factor=self.backoff_factor,
        )
