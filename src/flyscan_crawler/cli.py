"""CLI for ad-hoc flight and calendar searches."""

from __future__ import annotations

import asyncio
import json
import logging
import sys
from datetime import date, timedelta
from typing import Any

import click

from flyscan_core.registry import get_airline, get_airport
from flyscan_core.schemas import MaxStops, SeatType, SortBy, TripType

from .errors import FilterValidationError, FlightSearchError
from .service import (
    CalendarPriceResult,
    FlightOption,
    search_calendar_prices,
    search_flights,
)

logger = logging.getLogger(__name__)

_CABINS = [s.name for s in SeatType]
_STOPS = [s.name for s in MaxStops]
_SORTS = [s.name for s in SortBy]


def _segment(origin: str, destination: str, departure: date) -> dict[str, Any]:
    return {
        "origin": origin,
        "destination": destination,
        "departure_date": departure,
    }


def _build_input(
    origin: str,
    destination: str,
    departure: date,
    return_date: date | None,
    *,
    cabin: str,
    stops: str,
    range_end: date | None = None,
    **extra: Any,
) -> dict[str, Any]:
    segments = [_segment(origin, destination, departure)]
    if return_date is not None:
        segments.append(_segment(destination, origin, return_date))
    return {
        "trip_type": TripType.ROUND_TRIP if return_date else TripType.ONE_WAY,
        "segments": segments,
        "seat_type": SeatType[cabin],
        "stops": MaxStops[stops],
        "date_range": {
            "from": departure,
            "to": range_end or return_date or departure,
        },
        **extra,
    }


def _print_options(options: list[FlightOption]) -> None:
    if not options:
        click.echo("No flights found.")
        return
    click.echo(f"\nFound {len(options)} option(s):\n")
    for i, option in enumerate(options, 1):
        click.echo(f"  {i}. {option.total_price:.2f} {option.currency}")
        for s in option.slices:
            route = " → ".join(
                [s.legs[0].departure_airport_code]
                + [leg.arrival_airport_code for leg in s.legs]
            )
            numbers = ", ".join(
                f"{leg.airline_code}{leg.flight_number}" for leg in s.legs
            )
            click.echo(
                f"       {route} | {s.legs[0].departure_datetime[:16]} | "
                f"{s.duration_minutes}min | {s.stops} stop(s) | {numbers}"
            )


def _print_calendar(result: CalendarPriceResult) -> None:
    if not result.prices:
        click.echo("No prices found.")
        return
    for entry in result.prices:
        label = entry.date
        if entry.return_date:
            label = f"{entry.date} / {entry.return_date}"
        click.echo(f"  {label}: {entry.price:.2f} {result.currency}")


def _run(coro: Any) -> Any:
    try:
        return asyncio.run(coro)
    except FilterValidationError as exc:
        click.echo(f"Invalid filters: {exc}", err=True)
        for issue in exc.issues:
            click.echo(f"  - {issue}", err=True)
        sys.exit(2)
    except FlightSearchError as exc:
        click.echo(f"Error: {exc}", err=True)
        sys.exit(1)


@click.group()
@click.option("-v", "--verbose", is_flag=True, help="Enable debug logging")
def cli(verbose: bool) -> None:
    """flyscan Google Flights CLI."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(levelname)s: %(message)s",
    )


@cli.command("search")
@click.argument("origin")
@click.argument("destination")
@click.argument("departure_date", type=click.DateTime(formats=["%Y-%m-%d"]))
@click.option(
    "--return-date", type=click.DateTime(formats=["%Y-%m-%d"]), default=None
)
@click.option("--cabin", type=click.Choice(_CABINS), default="ECONOMY")
@click.option("--stops", type=click.Choice(_STOPS), default="ANY")
@click.option("--sort", "sort_by", type=click.Choice(_SORTS), default="NONE")
@click.option("--airline", "airlines", multiple=True, help="IATA airline code")
@click.option("--adults", type=click.IntRange(1, 9), default=1)
@click.option("--top-n", type=click.IntRange(1), default=5)
@click.option("--json-output", is_flag=True, help="Output as JSON")
def search(
    origin: str,
    destination: str,
    departure_date: Any,
    return_date: Any,
    cabin: str,
    stops: str,
    sort_by: str,
    airlines: tuple[str, ...],
    adults: int,
    top_n: int,
    json_output: bool,
) -> None:
    """Search flights for a date (round trip with --return-date)."""
    data = _build_input(
        origin,
        destination,
        departure_date.date(),
        return_date.date() if return_date else None,
        cabin=cabin,
        stops=stops,
        airlines=list(airlines) or None,
        passengers={"adults": adults},
    )
    options = _run(search_flights(data, top_n=top_n, sort_by=SortBy[sort_by]))
    if json_output:
        click.echo(json.dumps([o.model_dump(mode="json") for o in options], indent=2))
    else:
        _print_options(options)


@cli.command("dates")
@click.argument("origin")
@click.argument("destination")
@click.option(
    "--from", "from_date", type=click.DateTime(formats=["%Y-%m-%d"]), required=True
)
@click.option(
    "--to", "to_date", type=click.DateTime(formats=["%Y-%m-%d"]), required=True
)
@click.option(
    "--duration",
    type=click.IntRange(1),
    default=None,
    help="Round-trip length in days",
)
@click.option("--cabin", type=click.Choice(_CABINS), default="ECONOMY")
@click.option("--stops", type=click.Choice(_STOPS), default="ANY")
@click.option("--json-output", is_flag=True, help="Output as JSON")
def dates(
    origin: str,
    destination: str,
    from_date: Any,
    to_date: Any,
    duration: int | None,
    cabin: str,
    stops: str,
    json_output: bool,
) -> None:
    """Cheapest price per departure date across a range."""
    start = from_date.date()
    return_date = start + timedelta(days=duration) if duration else None
    data = _build_input(
        origin,
        destination,
        start,
        return_date,
        cabin=cabin,
        stops=stops,
        range_end=to_date.date(),
    )
    result = _run(search_calendar_prices(data))
    if json_output:
        click.echo(json.dumps(result.model_dump(mode="json"), indent=2))
    else:
        _print_calendar(result)


@cli.command("airport")
@click.argument("code")
def airport(code: str) -> None:
    """Look up an airport (or airline) code in the registry."""
    found = get_airport(code)
    if found is not None:
        click.echo(f"{found.code}: {found.name}, {found.city}, {found.country}")
        return
    carrier = get_airline(code)
    if carrier is not None:
        click.echo(f"{carrier.code}: {carrier.name} (airline, {carrier.country})")
        return
    click.echo(f"Unknown code: {code.upper()}", err=True)
    sys.exit(1)


if __name__ == "__main__":
    cli()
