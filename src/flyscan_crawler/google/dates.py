"""Cheapest-date search against ``GetCalendarGraph``.

The calendar endpoint answers at most 61 days per request, so wider ranges
are split into consecutive chunks searched with bounded concurrency.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date, timedelta
from typing import TYPE_CHECKING

from flyscan_crawler.base import RPC_BASE_URL, BaseSearch
from flyscan_crawler.config import settings
from flyscan_crawler.errors import RequestAbortedError
from flyscan_crawler.parallel import bounded_gather

from .decoder import decode_date_prices

if TYPE_CHECKING:
    import asyncio
    from collections.abc import Iterable

    from flyscan_core.schemas import DatePrice, DateSearchFilters
    from flyscan_crawler.client import Client

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class DateChunk:
    index: int
    from_date: date
    to_date: date


def build_chunks(from_date: date, to_date: date, window: int) -> list[DateChunk]:
    """Split ``[from_date, to_date]`` into windows of *window* days."""
    chunks: list[DateChunk] = []
    current = from_date
    index = 0
    while current <= to_date:
        end = min(current + timedelta(days=window - 1), to_date)
        chunks.append(DateChunk(index, current, end))
        current += timedelta(days=window)
        index += 1
    return chunks


def shift_date(value: date, offset_days: int) -> date:
    return value + timedelta(days=offset_days) if offset_days else value


def sort_date_prices(prices: Iterable[DatePrice]) -> list[DatePrice]:
    """Order by departure date, then return date, then price."""
    return sorted(prices, key=lambda p: (p.date, p.price))


class SearchDates(BaseSearch):
    """Cheapest price per departure date across a date range."""

    URL = f"{RPC_BASE_URL}/GetCalendarGraph"

    def __init__(
        self,
        client: Client | None = None,
        *,
        max_days: int | None = None,
        concurrency: int | None = None,
    ) -> None:
        super().__init__(client)
        self.max_days = max_days or settings.max_days_per_search
        self.concurrency = concurrency or settings.date_search_concurrency

    async def search(
        self,
        filters: DateSearchFilters,
        *,
        abort: asyncio.Event | None = None,
    ) -> list[DatePrice] | None:
        """Return prices for every date in range, or None when nothing is priced.

        Results are not globally ordered; see :func:`sort_date_prices`.
        """
        if filters.span_days <= self.max_days:
            return await self._search_chunk(filters, abort=abort)

        chunks = build_chunks(filters.from_date, filters.to_date, self.max_days)
        logger.info(
            "Splitting %d-day range %s..%s into %d chunks",
            filters.span_days,
            filters.from_date,
            filters.to_date,
            len(chunks),
        )

        async def _run(chunk: DateChunk) -> list[DatePrice]:
            try:
                result = await self._search_chunk(
                    self.chunk_filters(filters, chunk), abort=abort
                )
            except RequestAbortedError:
                raise
            except Exception:
                logger.exception(
                    "Calendar chunk %d (%s..%s) failed",
                    chunk.index,
                    chunk.from_date,
                    chunk.to_date,
                )
                return []
            return result or []

        results = await bounded_gather(
            min(self.concurrency, len(chunks)), chunks, _run
        )
        flattened = [price for chunk_prices in results for price in chunk_prices]
        return flattened or None

    def chunk_filters(
        self, filters: DateSearchFilters, chunk: DateChunk
    ) -> DateSearchFilters:
        """Copy *filters* for one chunk, moving travel dates along with it."""
        offset = chunk.index * self.max_days
        segments = [
            segment.model_copy(
                update={"travel_date": shift_date(segment.travel_date, offset)}
            )
            for segment in filters.flight_segments
        ]
        return filters.model_copy(
            update={
                "flight_segments": segments,
                "from_date": chunk.from_date,
                "to_date": chunk.to_date,
            }
        )

    async def _search_chunk(
        self,
        filters: DateSearchFilters,
        *,
        abort: asyncio.Event | None = None,
    ) -> list[DatePrice] | None:
        text = await self._fetch(filters, abort=abort)
        return decode_date_prices(text, filters.trip_type)
