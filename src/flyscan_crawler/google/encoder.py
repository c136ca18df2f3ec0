"""Build the ``f.req`` nested-array payload for Google Flights RPC endpoints."""

from __future__ import annotations

import json
import logging
from typing import Any, TypeAlias
from urllib.parse import quote

from flyscan_core.registry import is_known_airline, is_known_airport
from flyscan_core.schemas import (
    DateSearchFilters,
    FlightResult,
    FlightSearchFilters,
    FlightSegment,
    TripType,
)
from flyscan_crawler.errors import FilterValidationError

logger = logging.getLogger(__name__)

# Characters encodeURIComponent leaves untouched
_URI_COMPONENT_SAFE = "-_.!~*'()"

# Trailing constant every segment carries
_SEGMENT_TERMINATOR = 3

SearchFilters: TypeAlias = FlightSearchFilters | DateSearchFilters


def _number(value: float | int) -> float | int:
    """Write integral floats as integers, like the web client does."""
    if isinstance(value, float) and value.is_integer():
        return int(value)
    return value


def _dumps(obj: Any) -> str:
    return json.dumps(obj, separators=(",", ":"), ensure_ascii=False)


def validate_filters(filters: SearchFilters) -> None:
    """Reject filters the upstream cannot answer, before anything is sent."""
    issues: list[str] = []

    expected = 1 if filters.trip_type == TripType.ONE_WAY else 2
    if len(filters.flight_segments) != expected:
        issues.append(
            f"{filters.trip_type.name} requires {expected} segment(s), "
            f"got {len(filters.flight_segments)}"
        )

    for index, segment in enumerate(filters.flight_segments):
        for code in (*segment.departure_codes, *segment.arrival_codes):
            if not is_known_airport(code):
                issues.append(f"segment {index}: unknown airport {code!r}")
        if segment.selected_flight is not None:
            for leg in segment.selected_flight.legs:
                for code in (leg.departure_airport, leg.arrival_airport):
                    if not is_known_airport(code):
                        issues.append(
                            f"segment {index}: selected flight uses unknown "
                            f"airport {code!r}"
                        )
                if not is_known_airline(leg.airline):
                    issues.append(
                        f"segment {index}: selected flight uses unknown "
                        f"airline {leg.airline!r}"
                    )

    for code in filters.airlines or []:
        if not is_known_airline(code):
            issues.append(f"unknown airline {code!r}")

    layover = filters.layover_restrictions
    for code in (layover.airports or []) if layover else []:
        if not is_known_airport(code):
            issues.append(f"unknown layover airport {code!r}")

    if issues:
        msg = "Invalid flight filters: " + "; ".join(issues)
        raise FilterValidationError(msg, issues)


class SegmentPayload:
    """Positional array for one requested segment."""

    __slots__ = ("filters", "segment", "with_selected_flight")

    def __init__(
        self,
        segment: FlightSegment,
        filters: SearchFilters,
        *,
        with_selected_flight: bool,
    ) -> None:
        self.segment = segment
        self.filters = filters
        self.with_selected_flight = with_selected_flight

    def _time_restrictions(self) -> list[int | None] | None:
        tr = self.segment.time_restrictions
        if tr is None:
            return None
        return [
            tr.earliest_departure,
            tr.latest_departure,
            tr.earliest_arrival,
            tr.latest_arrival,
        ]

    def _airlines(self) -> list[str] | None:
        if not self.filters.airlines:
            return None
        # Order matters for upstream cache hits
        return sorted(self.filters.airlines)

    def _selected_flight(self) -> list[list[Any]] | None:
        selected: FlightResult | None = self.segment.selected_flight
        if not self.with_selected_flight or selected is None:
            return None
        return [
            [
                leg.departure_airport,
                leg.departure_datetime.date().isoformat(),
                leg.arrival_airport,
                None,
                leg.airline,
                leg.flight_number,
            ]
            for leg in selected.legs
        ]

    def format(self) -> list[Any]:
        layover = self.filters.layover_restrictions
        max_duration = self.filters.max_duration
        return [
            [[[code, weight] for code, weight in self.segment.departure_airport]],
            [[[code, weight] for code, weight in self.segment.arrival_airport]],
            self._time_restrictions(),
            int(self.filters.stops),
            self._airlines(),
            None,
            self.segment.travel_date.isoformat(),
            [max_duration] if max_duration else None,
            self._selected_flight(),
            list(layover.airports) if layover and layover.airports else None,
            None,
            None,
            layover.max_duration if layover else None,
            None,  # emissions
            _SEGMENT_TERMINATOR,
        ]


class FiltersPayload:
    """Builds the double-JSON, URL-encoded ``f.req`` value for a search."""

    def __init__(self, filters: SearchFilters) -> None:
        validate_filters(filters)
        self.filters = filters

    @property
    def is_date_search(self) -> bool:
        return isinstance(self.filters, DateSearchFilters)

    def _segments(self) -> list[list[Any]]:
        # Selected-flight references are only sent when fetching returns
        with_selected = (
            not self.is_date_search
            and self.filters.trip_type == TripType.ROUND_TRIP
        )
        return [
            SegmentPayload(
                segment, self.filters, with_selected_flight=with_selected
            ).format()
            for segment in self.filters.flight_segments
        ]

    def _settings_block(self) -> list[Any]:
        f = self.filters
        pax = f.passenger_info
        return [
            None,
            None,
            int(f.trip_type),
            None,
            [],
            int(f.seat_type),
            [pax.adults, pax.children, pax.infants_on_lap, pax.infants_in_seat],
            [None, _number(f.price_limit.max_price)] if f.price_limit else None,
            None,
            None,
            None,
            None,
            None,
            self._segments(),
            None,
            None,
            None,
            1,
        ]

    def format(self) -> list[Any]:
        """Return the nested positional array before any encoding."""
        f = self.filters
        if isinstance(f, DateSearchFilters):
            payload: list[Any] = [
                None,
                self._settings_block(),
                [f.from_date.isoformat(), f.to_date.isoformat()],
            ]
            if f.trip_type == TripType.ROUND_TRIP:
                payload.extend([None, [f.duration, f.duration]])
            return payload
        return [[], self._settings_block(), int(f.sort_by), 0, 0, 2]

    def encode(self) -> str:
        """JSON the array, wrap as ``[null, json]``, JSON again, URL-encode."""
        inner = _dumps(self.format())
        wrapped = _dumps([None, inner])
        return quote(wrapped, safe=_URI_COMPONENT_SAFE)

    def as_form_body(self) -> str:
        return f"f.req={self.encode()}"


def format_filters(filters: SearchFilters) -> list[Any]:
    return FiltersPayload(filters).format()


def encode_filters(filters: SearchFilters) -> str:
    return FiltersPayload(filters).encode()
