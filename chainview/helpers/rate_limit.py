"""Minimum-spacing rate limiter shared by all outbound requests."""

import asyncio
from collections.abc import Awaitable, Callable
import time

from chainview.helpers.constants import RATE_LIMIT_DELAY_MS
from chainview.helpers.logging import get_logger


logger = get_logger(__name__)


class RateLimiter:
    """Enforce at least ``min_interval_ms`` between consecutive request starts.

    This is not a token bucket: every caller waits until the interval since
    the previously recorded start has elapsed. The lock is held while
    waiting, so reading the last start, sleeping and recording the new start
    happen as one step and concurrent callers are serialized.

    Example:
        ```python
        limiter = RateLimiter(min_interval_ms=400)

        async def fetch() -> None:
            await limiter.acquire()
            ...  # issue the request
        ```
    """

    def __init__(
        self,
        min_interval_ms: int = RATE_LIMIT_DELAY_MS,
        *,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], Awaitable[object]] = asyncio.sleep,
    ) -> None:
        """Initialize the limiter.

        Args:
            min_interval_ms: Minimum spacing between request starts
            clock: Monotonic clock returning seconds
            sleep: Coroutine function used to wait, in seconds

        Raises:
            ValueError: If min_interval_ms is negative
        """
        if min_interval_ms < 0:
            msg = "min_interval_ms cannot be negative"
            raise ValueError(msg)

        self.min_interval = min_interval_ms / 1000
        self._clock = clock
        self._sleep = sleep
        self._lock = asyncio.Lock()
        self._last_request_start: float | None = None

    @property
    def last_request_start(self) -> float | None:
        """Clock reading recorded by the most recent ``acquire``."""
        return self._last_request_start

    async def acquire(self) -> float:
        """Wait for the spacing window, then record and return the new start."""
        async with self._lock:
            if self._last_request_start is not None:
                elapsed = self._clock() - self._last_request_start
                remaining = self.min_interval - elapsed
                if remaining > 0:
                    logger.debug("Rate limiter waiting %.3fs", remaining)
                    await self._sleep(remaining)

            self._last_request_start = self._clock()
            return self._last_request_start


__all__ = ["RateLimiter"]
