"""
Retry policy for gateway round-trips: exponential backoff with full jitter.

    policy = RetryPolicy(retries=3, base=0.15, retry_on=(httpx.TransportError,))
    result = await policy.run(send, payload, on_retry=log_it)

``retries`` counts extra attempts, so ``retries=0`` means a single try.
Only exceptions listed in ``retry_on`` are retried; anything else
propagates from the failing attempt unchanged.
"""

from __future__ import annotations

import asyncio
import random
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Optional, Tuple, Type, TypeVar

__all__ = ["RetryError", "RetryPolicy"]

T = TypeVar("T")

OnRetry = Callable[[int, BaseException, float], None]


class RetryError(RuntimeError):
    """Every attempt failed with a retriable error."""

    def __init__(self, last_exception: BaseException, attempts: int) -> None:
        super().__init__(f"gave up after {attempts} attempts: {last_exception!r}")
        self.last_exception = last_exception
        self.attempts = attempts


@dataclass(frozen=True)
class RetryPolicy:
    retries: int = 3
    base: float = 0.15
    max_delay: float = 3.0
    retry_on: Tuple[Type[BaseException], ...] = (Exception,)

    def __post_init__(self) -> None:
        if self.retries < 0:
            raise ValueError("retries must be >= 0")

    def delay(self, attempt: int) -> float:
        """Seconds to sleep after failed ``attempt`` (1-based): U(0, min(base * 2**(n-1), max_delay))."""
        ceiling = min(self.base * (2 ** (max(attempt, 1) - 1)), self.max_delay)
        return random.uniform(0.0, max(ceiling, 0.0))

    async def run(
        self,
        fn: Callable[..., Awaitable[T]],
        *args: Any,
        on_retry: Optional[OnRetry] = None,
    ) -> T:
        """
        Await ``fn(*args)`` until it succeeds or attempts run out.

        Raises RetryError, chained to the last retriable failure.
        ``on_retry(attempt, exc, sleep_s)`` is called before each sleep.
        """
        attempt = 0
        while True:
            attempt += 1
            try:
                return await fn(*args)
            except self.retry_on as exc:
                if attempt > self.retries:
                    raise RetryError(exc, attempts=attempt) from exc
                sleep_s = self.delay(attempt)
                if on_retry is not None:
                    on_retry(attempt, exc, sleep_s)
                await asyncio.sleep(sleep_s)
