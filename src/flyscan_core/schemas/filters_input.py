"""Caller-facing flight filter input and its conversion to search filters."""

from __future__ import annotations

from datetime import date
from typing import Annotated

from pydantic import (
    AfterValidator,
    BaseModel,
    ConfigDict,
    Field,
    StringConstraints,
    model_validator,
)

from flyscan_core.registry import is_known_airline, is_known_airport

from .enums import Currency, MaxStops, SeatType, TripType
from .search import (
    DateSearchFilters,
    FlightSearchFilters,
    FlightSegment,
    LayoverRestrictions,
    PassengerInfo,
    PriceLimit,
    TimeRestrictions,
)

AirportCode = Annotated[
    str,
    StringConstraints(strip_whitespace=True, to_upper=True, pattern=r"^[A-Za-z]{3}$"),
]
AirlineCode = Annotated[
    str,
    StringConstraints(
        strip_whitespace=True, to_upper=True, pattern=r"^[0-9A-Za-z]{2,3}$"
    ),
]
Hour = Annotated[int, Field(ge=0, le=24)]


class TimeRange(BaseModel):
    """Hour-of-day window."""

    from_hour: Hour | None = Field(default=None, alias="from")
    to_hour: Hour | None = Field(default=None, alias="to")

    model_config = ConfigDict(populate_by_name=True)

    @model_validator(mode="after")
    def _validate_order(self) -> TimeRange:
        if (
            self.from_hour is not None
            and self.to_hour is not None
            and self.from_hour > self.to_hour
        ):
            msg = "Time range start must be before end"
            raise ValueError(msg)
        return self


class SegmentInput(BaseModel):
    origin: AirportCode
    destination: AirportCode
    departure_date: date | None = None
    return_date: date | None = None
    departure_time_range: TimeRange | None = None
    arrival_time_range: TimeRange | None = None

    @model_validator(mode="after")
    def _validate_segment(self) -> SegmentInput:
        if self.origin == self.destination:
            msg = "Origin and destination must be different"
            raise ValueError(msg)
        if self.return_date and not self.departure_date:
            msg = "Return date requires a departure date"
            raise ValueError(msg)
        return self


class DateRange(BaseModel):
    from_date: date = Field(alias="from")
    to_date: date = Field(alias="to")

    model_config = ConfigDict(populate_by_name=True)

    @model_validator(mode="after")
    def _validate_order(self) -> DateRange:
        if self.from_date > self.to_date:
            msg = "From date must be before or equal to to date"
            raise ValueError(msg)
        return self


class PriceLimitInput(BaseModel):
    amount: float = Field(gt=0)
    currency: Currency | None = None


def _unique_days(days: list[int]) -> list[int]:
    return sorted(set(days))


class FlightFiltersInput(BaseModel):
    """Flight filters as submitted by alerting, planner and calendar callers."""

    trip_type: TripType = TripType.ONE_WAY
    segments: list[SegmentInput] = Field(min_length=1, max_length=2)
    passengers: PassengerInfo | None = None
    seat_type: SeatType = SeatType.ECONOMY
    stops: MaxStops = MaxStops.ANY
    date_range: DateRange
    airlines: Annotated[list[AirlineCode], Field(max_length=16)] | None = None
    days_of_week: (
        Annotated[
            list[Annotated[int, Field(ge=0, le=6)]],
            Field(max_length=7),
            AfterValidator(_unique_days),
        ]
        | None
    ) = None
    price_limit: PriceLimitInput | None = None
    max_duration_minutes: int | None = Field(default=None, gt=0)
    layover_airports: Annotated[list[AirportCode], Field(max_length=8)] | None = None
    layover_max_duration_minutes: int | None = Field(default=None, gt=0)

    @model_validator(mode="after")
    def _validate_filters(self) -> FlightFiltersInput:
        if self.trip_type == TripType.ONE_WAY and len(self.segments) != 1:
            msg = "One-way trips require exactly one segment"
            raise ValueError(msg)
        if self.trip_type == TripType.ROUND_TRIP and len(self.segments) != 2:
            msg = "Round trips require two segments"
            raise ValueError(msg)

        for index, segment in enumerate(self.segments):
            for code in (segment.origin, segment.destination):
                if not is_known_airport(code):
                    msg = f"Unsupported airport code in segment {index}: {code}"
                    raise ValueError(msg)

        for code in self.airlines or []:
            if not is_known_airline(code):
                msg = f"Unsupported airline code: {code}"
                raise ValueError(msg)

        for code in self.layover_airports or []:
            if not is_known_airport(code):
                msg = f"Unsupported layover airport code: {code}"
                raise ValueError(msg)

        if self.trip_type == TripType.ROUND_TRIP:
            outbound, inbound = self.segments
            if (
                outbound.departure_date
                and inbound.departure_date
                and inbound.departure_date < outbound.departure_date
            ):
                msg = "Return date must be on or after departure"
                raise ValueError(msg)
        return self


# ---------------------------------------------------------------------------
# Conversion helpers
# ---------------------------------------------------------------------------


def _time_restrictions(segment: SegmentInput) -> TimeRestrictions | None:
    dep = segment.departure_time_range
    arr = segment.arrival_time_range
    if dep is None and arr is None:
        return None
    return TimeRestrictions(
        earliest_departure=dep.from_hour if dep else None,
        latest_departure=dep.to_hour if dep else None,
        earliest_arrival=arr.from_hour if arr else None,
        latest_arrival=arr.to_hour if arr else None,
    )


def _build_segments(data: FlightFiltersInput) -> list[FlightSegment]:
    segments: list[FlightSegment] = []
    for index, segment in enumerate(data.segments):
        if index == 1:
            fallback = segment.return_date or data.date_range.to_date
        else:
            fallback = data.date_range.from_date
        segments.append(
            FlightSegment(
                departure_airport=[(segment.origin, 0)],
                arrival_airport=[(segment.destination, 0)],
                travel_date=segment.departure_date or fallback,
                time_restrictions=_time_restrictions(segment),
            )
        )
    return segments


def _layover_restrictions(data: FlightFiltersInput) -> LayoverRestrictions | None:
    if not data.layover_airports and not data.layover_max_duration_minutes:
        return None
    return LayoverRestrictions(
        airports=data.layover_airports,
        max_duration=data.layover_max_duration_minutes,
    )


def _price_limit(data: FlightFiltersInput) -> PriceLimit | None:
    if data.price_limit is None:
        return None
    return PriceLimit(
        max_price=data.price_limit.amount,
        currency=data.price_limit.currency or Currency.USD,
    )


def compute_round_trip_duration(segments: list[SegmentInput]) -> int | None:
    """Days between outbound and return departure, at least 1."""
    if len(segments) != 2:
        return None
    outbound, inbound = segments
    if outbound.departure_date is None or inbound.departure_date is None:
        return None
    delta = inbound.departure_date - outbound.departure_date
    if delta.days < 0:
        msg = "Return date must be on or after departure"
        raise ValueError(msg)
    return max(1, delta.days)


def _common_kwargs(data: FlightFiltersInput) -> dict[str, object]:
    return {
        "trip_type": data.trip_type,
        "passenger_info": data.passengers or PassengerInfo(),
        "flight_segments": _build_segments(data),
        "stops": data.stops,
        "seat_type": data.seat_type,
        "price_limit": _price_limit(data),
        "airlines": data.airlines or None,
        "max_duration": data.max_duration_minutes,
        "layover_restrictions": _layover_restrictions(data),
    }


def to_flight_search_filters(data: FlightFiltersInput) -> FlightSearchFilters:
    return FlightSearchFilters(**_common_kwargs(data))  # type: ignore[arg-type]


def to_date_search_filters(data: FlightFiltersInput) -> DateSearchFilters:
    duration = (
        compute_round_trip_duration(data.segments)
        if data.trip_type == TripType.ROUND_TRIP
        else None
    )
    return DateSearchFilters(
        **_common_kwargs(data),  # type: ignore[arg-type]
        from_date=data.date_range.from_date,
        to_date=data.date_range.to_date,
        duration=duration,
    )
