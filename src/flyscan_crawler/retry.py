"""Exponential backoff retry policy for async calls."""

from __future__ import annotations

import asyncio
import logging
import random
from dataclasses import dataclass
from typing import TYPE_CHECKING, TypeVar

from flyscan_crawler.config import CrawlerSettings, settings

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable

T = TypeVar("T")

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class RetryPolicy:
    """Retries an async callable with exponential backoff + jitter.

    ``max_attempts`` counts every call, the first one included.
    """

    max_attempts: int = 3
    base_delay: float = 1.0
    max_delay: float = 60.0
    jitter: bool = True

    def __post_init__(self) -> None:
        if self.max_attempts < 1:
            msg = "max_attempts must be at least 1"
            raise ValueError(msg)

    @classmethod
    def from_settings(cls, cfg: CrawlerSettings = settings) -> RetryPolicy:
        return cls(
            max_attempts=cfg.retry_max_attempts,
            base_delay=cfg.retry_base_delay,
            max_delay=cfg.retry_max_delay,
        )

    def backoff(self, attempt: int) -> float:
        """Delay in seconds to wait after the failed *attempt* (0-based)."""
        delay = min(self.base_delay * (2**attempt), self.max_delay)
        if self.jitter:
            delay *= 0.5 + random.random()
        return delay

    async def run(
        self,
        func: Callable[..., Awaitable[T]],
        /,
        *args: object,
        retry_on: tuple[type[BaseException], ...] = (Exception,),
        **kwargs: object,
    ) -> T:
        """Await ``func(*args, **kwargs)``, retrying on *retry_on* exceptions.

        The last exception is re-raised once attempts are exhausted.
        Exceptions outside *retry_on* propagate immediately.
        """
        name = getattr(func, "__qualname__", repr(func))
        last_exc: BaseException | None = None
        for attempt in range(self.max_attempts):
            try:
                return await func(*args, **kwargs)
            except retry_on as exc:
                last_exc = exc
                if attempt == self.max_attempts - 1:
                    break
                delay = self.backoff(attempt)
                logger.warning(
                    "Retry %d/%d for %s after %.1fs: %s",
                    attempt + 1,
                    self.max_attempts - 1,
                    name,
                    delay,
                    exc,
                )
                await asyncio.sleep(delay)
        raise last_exc  # type: ignore[misc]
