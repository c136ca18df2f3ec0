"""In-process rate limiter shared by every upstream request."""

from __future__ import annotations

import asyncio
import logging
import time
from typing import TYPE_CHECKING, TypeVar

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable

T = TypeVar("T")

logger = logging.getLogger(__name__)


class RateLimiter:
    """Spaces request starts and caps how many run at once.

    * At most ``max_concurrent`` calls are in flight; extra callers queue
      in FIFO order and are released as slots free up.
    * Consecutive call starts are at least ``1 / calls_per_second`` apart.

    All scheduling goes through :meth:`execute`.
    """

    def __init__(self, calls_per_second: float, max_concurrent: int = 4) -> None:
        if calls_per_second <= 0:
            msg = "calls_per_second must be positive"
            raise ValueError(msg)
        if max_concurrent < 1:
            msg = "max_concurrent must be at least 1"
            raise ValueError(msg)
        self._interval = 1.0 / calls_per_second
        self._slots = asyncio.Semaphore(max_concurrent)
        self._lock = asyncio.Lock()
        self._last_call = float("-inf")

    @property
    def interval(self) -> float:
        return self._interval

    async def _wait_turn(self) -> None:
        async with self._lock:
            wait = self._last_call + self._interval - time.monotonic()
            if wait > 0:
                logger.debug("Rate limiter waiting %.3fs", wait)
                await asyncio.sleep(wait)
            self._last_call = time.monotonic()

    async def execute(
        self,
        func: Callable[..., Awaitable[T]],
        /,
        *args: object,
        **kwargs: object,
    ) -> T:
        """Run ``func(*args, **kwargs)`` once a slot and a time turn are free."""
        async with self._slots:
            await self._wait_turn()
            return await func(*args, **kwargs)
