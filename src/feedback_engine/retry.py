"""Bounded retry with exponential backoff for transient fetch failures.

The policy wraps a single async operation and knows nothing about sections
or sessions; the repository client applies it to every collaborator call.

Usage::

    policy = RetryPolicy(max_attempts=3, base_delay=1.0)
    questions = await policy.run(
        lambda: source.get_questions_by_category("delivery"),
        description="delivery questions",
    )
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Awaitable, Callable, TypeVar

from feedback_engine.config import EngineSettings

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass(frozen=True)
class RetryPolicy:
    """Fixed attempt count, exponential delay between attempts.

    Delays are ``base_delay * multiplier ** (attempt - 1)`` seconds, so the
    defaults wait 1s then 2s before giving up after the third attempt.
    """

    max_attempts: int = 3
    base_delay: float = 1.0
    multiplier: float = 2.0

    def __post_init__(self) -> None:
        if self.max_attempts < 1:
            raise ValueError("max_attempts must be >= 1")
        if self.base_delay < 0:
            raise ValueError("base_delay must be >= 0")

    @classmethod
    def from_settings(cls, settings: EngineSettings) -> "RetryPolicy":
        return cls(
            max_attempts=settings.fetch_max_attempts,
            base_delay=settings.fetch_retry_delay,
            multiplier=settings.fetch_retry_multiplier,
        )

    def delay_for(self, attempt: int) -> float:
        """Seconds to wait after failed attempt number ``attempt`` (1-based)."""
        return self.base_delay * self.multiplier ** (attempt - 1)

    async def run(
        self,
        operation: Callable[[], Awaitable[T]],
        *,
        description: str = "operation",
    ) -> T:
        """Await ``operation()`` until it succeeds or attempts run out.

        The last exception is re-raised unchanged.  Cancellation is never
        retried.
        """
        for attempt in range(1, self.max_attempts + 1):
            try:
                return await operation()
            except Exception as exc:
                if attempt == self.max_attempts:
                    raise
                delay = self.delay_for(attempt)
                logger.warning(
                    "%s: attempt %d/%d failed (%s), retrying in %.2fs",
                    description, attempt, self.max_attempts, exc, delay,
                )
                await asyncio.sleep(delay)
        # Unreachable: the loop either returns or raises
        raise RuntimeError("retry loop exited without a result")
