"""Itinerary search against ``GetShoppingResults``."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, TypeAlias

from flyscan_core.schemas import FlightResult, TripType
from flyscan_crawler.base import RPC_BASE_URL, BaseSearch
from flyscan_crawler.config import settings
from flyscan_crawler.errors import RequestAbortedError
from flyscan_crawler.parallel import bounded_gather

from .decoder import decode_flights
from .pairing import build_pairs_from_single_response, fallback_candidates

if TYPE_CHECKING:
    import asyncio

    from flyscan_core.schemas import FlightPair, FlightSearchFilters
    from flyscan_crawler.client import Client

logger = logging.getLogger(__name__)

FlightSearchResult: TypeAlias = "list[FlightResult | FlightPair]"


class SearchFlights(BaseSearch):
    """Find itineraries, pairing outbound and return flights for round trips."""

    URL = f"{RPC_BASE_URL}/GetShoppingResults"

    def __init__(
        self,
        client: Client | None = None,
        *,
        return_concurrency: int | None = None,
    ) -> None:
        super().__init__(client)
        self.return_concurrency = (
            return_concurrency or settings.return_search_concurrency
        )

    async def search(
        self,
        filters: FlightSearchFilters,
        top_n: int = 5,
        *,
        abort: asyncio.Event | None = None,
    ) -> FlightSearchResult | None:
        """Search once and return flights, or flight pairs for round trips.

        Returns None when the upstream has nothing to offer.
        """
        text = await self._fetch(filters, abort=abort)
        flights = decode_flights(text)
        if not flights:
            return None

        segments = filters.flight_segments
        if (
            filters.trip_type == TripType.ONE_WAY
            or segments[0].selected_flight is not None
            or len(segments) < 2
        ):
            return list(flights)

        pairs = build_pairs_from_single_response(filters, flights, top_n)
        if pairs:
            logger.info("Paired %d round trips from a single response", len(pairs))
            return list(pairs)

        pairs = await self._fetch_return_pairs(filters, flights, top_n, abort=abort)
        return list(pairs) or None

    async def _fetch_return_pairs(
        self,
        filters: FlightSearchFilters,
        flights: list[FlightResult],
        top_n: int,
        *,
        abort: asyncio.Event | None = None,
    ) -> list[FlightPair]:
        """Pin each outbound candidate and search its returns separately."""
        candidates = fallback_candidates(filters, flights, top_n)
        logger.info(
            "Single response held no pairs, searching returns for %d outbound flights",
            len(candidates),
        )

        async def _returns_for(outbound: FlightResult) -> list[FlightResult]:
            outbound_segment = filters.flight_segments[0].model_copy(
                update={"selected_flight": outbound}
            )
            pinned = filters.model_copy(
                update={
                    "flight_segments": [
                        outbound_segment,
                        *filters.flight_segments[1:],
                    ]
                }
            )
            try:
                results = await self.search(pinned, top_n, abort=abort)
            except RequestAbortedError:
                raise
            except Exception:
                flight_numbers = [
                    f"{leg.airline}{leg.flight_number}" for leg in outbound.legs
                ]
                logger.exception(
                    "Return search failed for outbound %s", "/".join(flight_numbers)
                )
                return []
            return [r for r in results or [] if isinstance(r, FlightResult)]

        returns = await bounded_gather(
            min(self.return_concurrency, len(candidates)) or 1,
            candidates,
            _returns_for,
        )
        return [
            (outbound, back)
            for outbound, backs in zip(candidates, returns, strict=True)
            for back in backs
        ]
