"""Bounded retry with linearly increasing, capped delay.

Used around a single fetch/extract unit; overall throughput is governed by the
orchestrator's pacing, not by this policy.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from typing import TypeVar

from ..core.exceptions import RetryExhaustedError

T = TypeVar("T")


class RetryPolicy:
    """Retry-Policy für einzelne Fetch/Extract-Operationen"""

    def __init__(
        self,
        base_delay: float = 2.0,
        delay_cap: float = 10.0,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        self.base_delay = base_delay
        self.delay_cap = delay_cap
        self._sleep = sleep
        self.logger = logging.getLogger("crawler.retry")

    @classmethod
    def from_settings(cls, settings, sleep: Callable[[float], Awaitable[None]] = asyncio.sleep) -> "RetryPolicy":
        return cls(settings.retry_base_delay, settings.retry_delay_cap, sleep=sleep)

    def delay_for(self, attempt: int) -> float:
        """Wait after the given (1-based) failed attempt."""
        return min(self.base_delay * attempt, self.delay_cap)

    async def execute(
        self,
        operation: Callable[[], Awaitable[T]],
        max_attempts: int,
        context_label: str,
    ) -> T:
        attempts = max(1, max_attempts)
        last_err: Exception | None = None
        for attempt in range(1, attempts + 1):
            try:
                return await operation()
            except Exception as e:
                last_err = e
                self.logger.warning(
                    "Attempt %d/%d failed for %s: %s: %s",
                    attempt,
                    attempts,
                    context_label,
                    type(e).__name__,
                    e,
                )
                if attempt < attempts:
                    await self._sleep(self.delay_for(attempt))
        raise RetryExhaustedError(context_label, attempts, last_err) from last_err
