"""Shared fixtures and helpers: filter factories, fake upstream responses."""

from __future__ import annotations

import json
from datetime import date, timedelta
from typing import TYPE_CHECKING, Any
from urllib.parse import unquote

import httpx
import pytest

from flyscan_core.schemas import (
    DateSearchFilters,
    FlightSearchFilters,
    FlightSegment,
    TripType,
)
from flyscan_crawler.client import Client
from flyscan_crawler.rate_limiter import RateLimiter
from flyscan_crawler.retry import RetryPolicy

if TYPE_CHECKING:
    from collections.abc import Callable


@pytest.fixture
def future_date() -> date:
    """Return a date ~30 days from now (avoids past-date errors)."""
    return date.today() + timedelta(days=30)


@pytest.fixture
def make_segment(future_date: date):
    """Factory fixture for creating FlightSegment instances."""

    def _make(
        origin: str | list[str] = "SFO",
        destination: str | list[str] = "PHX",
        travel_date: date | None = None,
        **kwargs: Any,
    ) -> FlightSegment:
        origins = [origin] if isinstance(origin, str) else origin
        destinations = [destination] if isinstance(destination, str) else destination
        return FlightSegment(
            departure_airport=[(code, 0) for code in origins],
            arrival_airport=[(code, 0) for code in destinations],
            travel_date=travel_date or future_date,
            **kwargs,
        )

    return _make


@pytest.fixture
def make_flight_filters(make_segment, future_date: date):
    """Factory fixture for FlightSearchFilters; round trip with *return_date*."""

    def _make(
        origin: str = "SFO",
        destination: str = "PHX",
        return_date: date | None = None,
        **kwargs: Any,
    ) -> FlightSearchFilters:
        segments = [make_segment(origin, destination, future_date)]
        if return_date is not None:
            segments.append(make_segment(destination, origin, return_date))
        return FlightSearchFilters(
            trip_type=TripType.ROUND_TRIP if return_date else TripType.ONE_WAY,
            flight_segments=segments,
            **kwargs,
        )

    return _make


@pytest.fixture
def make_date_filters(make_segment, future_date: date):
    """Factory fixture for DateSearchFilters starting at ``future_date``."""

    def _make(days: int = 30, duration: int | None = None, **kwargs: Any):
        to_date = future_date + timedelta(days=days - 1)
        segments = [make_segment("SFO", "PHX", future_date)]
        if duration is not None:
            segments.append(
                make_segment("PHX", "SFO", future_date + timedelta(days=duration))
            )
        return DateSearchFilters(
            trip_type=TripType.ROUND_TRIP if duration else TripType.ONE_WAY,
            flight_segments=segments,
            from_date=future_date,
            to_date=to_date,
            duration=duration,
            **kwargs,
        )

    return _make


# ---------------------------------------------------------------------------
# Raw upstream payload builders
# ---------------------------------------------------------------------------


def raw_leg(
    departure: str = "SFO",
    arrival: str = "PHX",
    *,
    airline: str = "UA",
    flight_number: str = "1234",
    day: date | None = None,
    departure_time: list[int | None] | None = None,
    arrival_time: list[int | None] | None = None,
    duration: int = 120,
) -> list[Any]:
    """One leg tuple laid out at the offsets the decoder reads."""
    day = day or date.today() + timedelta(days=30)
    leg: list[Any] = [None] * 23
    leg[3] = departure
    leg[6] = arrival
    leg[8] = departure_time if departure_time is not None else [8, 30]
    leg[10] = arrival_time if arrival_time is not None else [10, 30]
    leg[11] = duration
    leg[20] = [day.year, day.month, day.day]
    leg[21] = [day.year, day.month, day.day]
    leg[22] = [airline, flight_number, None, "United"]
    return leg


def raw_flight(
    legs: list[list[Any]],
    price: Any = 199,
    duration: int | None = None,
) -> list[Any]:
    """One flight entry: ``[0][2]`` legs, ``[0][9]`` duration, ``[1][0]`` price."""
    info: list[Any] = [None] * 10
    info[2] = legs
    if duration is None:
        duration = sum(leg[11] for leg in legs)
    info[9] = duration
    return [info, [[None, price], "booking-token"]]


def envelope(payload: Any) -> str:
    inner = None if payload is None else json.dumps(payload)
    return ")]}'\n\n" + json.dumps([["wrb.fr", None, inner]])


def shopping_response(
    best: list[list[Any]],
    other: list[list[Any]] | None = None,
) -> str:
    payload: list[Any] = [None, None, [best], [other] if other is not None else None]
    return envelope(payload)


def calendar_response(entries: list[Any]) -> str:
    return envelope([None, entries])


def calendar_entry(
    departure: date,
    price: Any = 120,
    returning: date | None = None,
) -> list[Any]:
    return [
        departure.isoformat(),
        returning.isoformat() if returning else None,
        [[None, price], "token"],
    ]


def decode_request(request: httpx.Request) -> list[Any]:
    """Recover the nested filter array from an ``f.req=`` request body."""
    body = request.content.decode("utf-8")
    assert body.startswith("f.req=")
    outer = json.loads(unquote(body[len("f.req=") :]))
    assert outer[0] is None
    return json.loads(outer[1])


@pytest.fixture
def make_client():
    """Factory for a Client backed by ``httpx.MockTransport`` with no delays."""

    def _make(
        handler: Callable[[httpx.Request], Any],
        *,
        max_attempts: int = 3,
        rate: float = 1000.0,
        max_concurrent: int = 10,
    ) -> Client:
        return Client(
            rate_limiter=RateLimiter(rate, max_concurrent),
            retry_policy=RetryPolicy(
                max_attempts=max_attempts, base_delay=0.0, jitter=False
            ),
            transport=httpx.MockTransport(handler),
        )

    return _make
