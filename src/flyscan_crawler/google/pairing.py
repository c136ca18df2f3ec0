"""Pair outbound and return itineraries decoded from one round-trip response."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Iterable, Sequence

    from flyscan_core.schemas import (
        FlightPair,
        FlightResult,
        FlightSearchFilters,
        FlightSegment,
    )


def matches_segment(flight: FlightResult, segment: FlightSegment) -> bool:
    """True if *flight* starts at a departure candidate and ends at an arrival one."""
    if not flight.legs:
        return False
    return (
        flight.origin in segment.departure_codes
        and flight.destination in segment.arrival_codes
    )


def split_by_direction(
    filters: FlightSearchFilters,
    flights: Iterable[FlightResult],
) -> tuple[list[FlightResult], list[FlightResult]]:
    """Partition *flights* into outbound-shaped and return-shaped lists.

    A flight can land in both lists when the two segments share airports.
    """
    outbound_segment, return_segment = filters.flight_segments[:2]
    outbound: list[FlightResult] = []
    inbound: list[FlightResult] = []
    for flight in flights:
        if matches_segment(flight, outbound_segment):
            outbound.append(flight)
        if matches_segment(flight, return_segment):
            inbound.append(flight)
    return outbound, inbound


def build_pairs_from_single_response(
    filters: FlightSearchFilters,
    flights: Sequence[FlightResult],
    top_n: int,
) -> list[FlightPair]:
    """Cross the first *top_n* outbound and return flights.

    Empty when the response does not hold both directions.
    """
    if len(filters.flight_segments) < 2:
        return []
    outbound, inbound = split_by_direction(filters, flights)
    if not outbound or not inbound:
        return []
    return [(out, back) for out in outbound[:top_n] for back in inbound[:top_n]]


def fallback_candidates(
    filters: FlightSearchFilters,
    flights: Sequence[FlightResult],
    top_n: int,
    limit: int = 3,
) -> list[FlightResult]:
    """Outbound flights to pin in secondary return searches."""
    outbound, _ = split_by_direction(filters, flights)
    pool = outbound or list(flights)
    return pool[: min(top_n, limit)]
