"""Service facade: validate caller filters, run searches, normalize results."""

from __future__ import annotations

import logging
from collections.abc import Callable, Mapping
from datetime import date
from typing import TYPE_CHECKING, Any, TypeVar

from pydantic import BaseModel, ValidationError

from flyscan_core.registry import get_airline, get_airport
from flyscan_core.schemas import (
    FlightFiltersInput,
    FlightResult,
    SortBy,
    to_date_search_filters,
    to_flight_search_filters,
)
from flyscan_crawler.config import settings
from flyscan_crawler.errors import FilterValidationError, FlightSearchError
from flyscan_crawler.google.dates import SearchDates, sort_date_prices
from flyscan_crawler.google.flights import SearchFlights

if TYPE_CHECKING:
    from collections.abc import Iterable

    from flyscan_core.schemas import DatePrice, FlightLeg, FlightPair
    from flyscan_crawler.client import Client

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Result models
# ---------------------------------------------------------------------------


class FlightLegSummary(BaseModel):
    airline_code: str
    airline_name: str
    flight_number: str
    departure_airport_code: str
    departure_airport_name: str
    departure_datetime: str
    arrival_airport_code: str
    arrival_airport_name: str
    arrival_datetime: str
    duration_minutes: int


class FlightSliceSummary(BaseModel):
    duration_minutes: int
    stops: int
    price: float
    legs: list[FlightLegSummary]


class FlightOption(BaseModel):
    """One bookable option: a single slice, or outbound plus return."""

    total_price: float
    currency: str
    slices: list[FlightSliceSummary]


class CalendarPriceEntry(BaseModel):
    date: str
    return_date: str | None = None
    price: float


class CalendarPriceResult(BaseModel):
    currency: str
    prices: list[CalendarPriceEntry]


# ---------------------------------------------------------------------------
# Input handling
# ---------------------------------------------------------------------------


def _issues(exc: ValidationError) -> list[dict[str, Any]]:
    return [
        {"loc": list(err["loc"]), "msg": err["msg"], "type": err["type"]}
        for err in exc.errors()
    ]


def parse_flight_filters_input(
    data: Mapping[str, Any] | FlightFiltersInput,
) -> FlightFiltersInput:
    """Validate raw caller data, raising :class:`FilterValidationError`."""
    if isinstance(data, FlightFiltersInput):
        return data
    try:
        return FlightFiltersInput.model_validate(data)
    except ValidationError as exc:
        msg = "Invalid flight filters supplied"
        raise FilterValidationError(msg, _issues(exc)) from exc


T = TypeVar("T")


def _convert(
    func: Callable[[FlightFiltersInput], T],
    data: FlightFiltersInput,
) -> T:
    try:
        return func(data)
    except ValidationError as exc:
        msg = "Invalid flight filters supplied"
        raise FilterValidationError(msg, _issues(exc)) from exc
    except ValueError as exc:
        raise FilterValidationError(str(exc), [str(exc)]) from exc


# ---------------------------------------------------------------------------
# Normalization
# ---------------------------------------------------------------------------


def _airline_name(code: str) -> str:
    airline = get_airline(code)
    return airline.name if airline else code


def _airport_name(code: str) -> str:
    airport = get_airport(code)
    return airport.name if airport else code


def normalize_leg(leg: FlightLeg) -> FlightLegSummary:
    return FlightLegSummary(
        airline_code=leg.airline,
        airline_name=_airline_name(leg.airline),
        flight_number=leg.flight_number,
        departure_airport_code=leg.departure_airport,
        departure_airport_name=_airport_name(leg.departure_airport),
        departure_datetime=leg.departure_datetime.isoformat(),
        arrival_airport_code=leg.arrival_airport,
        arrival_airport_name=_airport_name(leg.arrival_airport),
        arrival_datetime=leg.arrival_datetime.isoformat(),
        duration_minutes=leg.duration,
    )


def normalize_slice(result: FlightResult) -> FlightSliceSummary:
    return FlightSliceSummary(
        duration_minutes=result.duration,
        stops=result.stops,
        price=result.price,
        legs=[normalize_leg(leg) for leg in result.legs],
    )


def normalize_results(
    results: Iterable[FlightResult | FlightPair],
    currency: str,
) -> list[FlightOption]:
    options: list[FlightOption] = []
    for entry in results:
        flights = [entry] if isinstance(entry, FlightResult) else list(entry)
        slices = [normalize_slice(flight) for flight in flights]
        options.append(
            FlightOption(
                total_price=sum(s.price for s in slices),
                currency=currency,
                slices=slices,
            )
        )
    return options


def _weekday(day: str) -> int:
    """Day of week with 0 = Sunday."""
    return (date.fromisoformat(day).weekday() + 1) % 7


def normalize_calendar(
    prices: Iterable[DatePrice],
    days_of_week: list[int] | None = None,
) -> list[CalendarPriceEntry]:
    entries = [
        CalendarPriceEntry(
            date=price.date[0].isoformat(),
            return_date=price.date[1].isoformat() if len(price.date) > 1 else None,
            price=price.price,
        )
        for price in sort_date_prices(prices)
    ]
    if days_of_week:
        allowed = set(days_of_week)
        entries = [e for e in entries if _weekday(e.date) in allowed]
    return entries


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


async def search_flights(
    data: Mapping[str, Any] | FlightFiltersInput,
    *,
    client: Client | None = None,
    top_n: int | None = None,
    sort_by: SortBy = SortBy.NONE,
) -> list[FlightOption]:
    """Search itineraries for caller filters and normalize them into options."""
    filters_input = parse_flight_filters_input(data)
    filters = _convert(to_flight_search_filters, filters_input)
    if sort_by != SortBy.NONE:
        filters = filters.model_copy(update={"sort_by": sort_by})
    currency = (
        filters.price_limit.currency
        if filters.price_limit
        else settings.default_currency
    )
    try:
        results = await SearchFlights(client).search(
            filters, top_n or settings.default_top_n
        )
    except FlightSearchError:
        raise
    except Exception as exc:
        logger.exception("Flight search failed")
        msg = f"Failed to search flights: {exc}"
        raise FlightSearchError(msg) from exc
    return normalize_results(results or [], str(currency))


async def search_calendar_prices(
    data: Mapping[str, Any] | FlightFiltersInput,
    *,
    client: Client | None = None,
) -> CalendarPriceResult:
    """Cheapest price per date, sorted by date and filtered by weekday."""
    filters_input = parse_flight_filters_input(data)
    filters = _convert(to_date_search_filters, filters_input)
    currency = (
        filters.price_limit.currency
        if filters.price_limit
        else settings.default_currency
    )
    try:
        results = await SearchDates(client).search(filters)
    except FlightSearchError:
        raise
    except Exception as exc:
        logger.exception("Calendar search failed")
        msg = f"Failed to search calendar: {exc}"
        raise FlightSearchError(msg) from exc
    return CalendarPriceResult(
        currency=str(currency),
        prices=normalize_calendar(results or [], filters_input.days_of_week),
    )
