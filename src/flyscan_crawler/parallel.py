"""Bounded fan-out for independent upstream searches."""

from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING, TypeVar

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable, Iterable

T = TypeVar("T")
R = TypeVar("R")


async def bounded_gather(
    limit: int,
    items: Iterable[T],
    func: Callable[[T], Awaitable[R]],
) -> list[R]:
    """Run ``func`` over *items* with at most *limit* calls in flight.

    Results keep the order of *items*.  The first exception propagates
    once every call has finished; siblings are not cancelled.
    """
    if limit < 1:
        msg = "limit must be at least 1"
        raise ValueError(msg)
    semaphore = asyncio.Semaphore(limit)

    async def _run(item: T) -> R:
        async with semaphore:
            return await func(item)

    tasks = [asyncio.ensure_future(_run(item)) for item in items]
    if not tasks:
        return []
    # Let every sibling finish before surfacing a failure
    results = await asyncio.gather(*tasks, return_exceptions=True)
    for result in results:
        if isinstance(result, BaseException):
            raise result
    return results  # type: ignore[return-value]
