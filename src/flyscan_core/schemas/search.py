"""Search filter schemas for itinerary and calendar searches."""

from __future__ import annotations

from datetime import date

from pydantic import BaseModel, Field, field_validator, model_validator

from .enums import Currency, MaxStops, SeatType, SortBy, TripType
from .flight import FlightResult

AirportCandidate = tuple[str, int]


class PassengerInfo(BaseModel):
    """Number of passengers by type."""

    adults: int = Field(default=1, ge=0, le=9)
    children: int = Field(default=0, ge=0, le=9)
    infants_in_seat: int = Field(default=0, ge=0, le=9)
    infants_on_lap: int = Field(default=0, ge=0, le=9)

    @property
    def total(self) -> int:
        return self.adults + self.children + self.infants_in_seat + self.infants_on_lap

    @model_validator(mode="after")
    def _validate_total(self) -> PassengerInfo:
        if self.total == 0:
            msg = "At least one passenger is required"
            raise ValueError(msg)
        return self


class TimeRestrictions(BaseModel):
    """Local-time hour bounds (0-24) for departure and arrival."""

    earliest_departure: int | None = Field(default=None, ge=0, le=24)
    latest_departure: int | None = Field(default=None, ge=0, le=24)
    earliest_arrival: int | None = Field(default=None, ge=0, le=24)
    latest_arrival: int | None = Field(default=None, ge=0, le=24)

    @model_validator(mode="after")
    def _order_bounds(self) -> TimeRestrictions:
        # Reversed bounds are swapped rather than rejected
        if (
            self.earliest_departure is not None
            and self.latest_departure is not None
            and self.earliest_departure > self.latest_departure
        ):
            self.earliest_departure, self.latest_departure = (
                self.latest_departure,
                self.earliest_departure,
            )
        if (
            self.earliest_arrival is not None
            and self.latest_arrival is not None
            and self.earliest_arrival > self.latest_arrival
        ):
            self.earliest_arrival, self.latest_arrival = (
                self.latest_arrival,
                self.earliest_arrival,
            )
        return self


class PriceLimit(BaseModel):
    """Maximum price constraint."""

    max_price: float = Field(gt=0)
    currency: Currency = Currency.USD


class LayoverRestrictions(BaseModel):
    """Constraints for connections in multi-leg flights."""

    airports: list[str] | None = None
    max_duration: int | None = Field(default=None, gt=0, description="Minutes")

    @field_validator("airports")
    @classmethod
    def _upper_airports(cls, value: list[str] | None) -> list[str] | None:
        if value is None:
            return None
        return [code.strip().upper() for code in value]


class FlightSegment(BaseModel):
    """One directional part of a trip as requested by the caller."""

    departure_airport: list[AirportCandidate] = Field(min_length=1)
    arrival_airport: list[AirportCandidate] = Field(min_length=1)
    travel_date: date
    time_restrictions: TimeRestrictions | None = None
    selected_flight: FlightResult | None = None

    @field_validator("departure_airport", "arrival_airport")
    @classmethod
    def _upper_codes(cls, value: list[AirportCandidate]) -> list[AirportCandidate]:
        return [(code.strip().upper(), weight) for code, weight in value]

    @model_validator(mode="after")
    def _validate_segment(self) -> FlightSegment:
        if self.travel_date < date.today():
            msg = "Travel date cannot be in the past"
            raise ValueError(msg)
        if self.departure_airport[0][0] == self.arrival_airport[0][0]:
            msg = "Departure and arrival airports must be different"
            raise ValueError(msg)
        return self

    @property
    def departure_codes(self) -> list[str]:
        return [code for code, _ in self.departure_airport]

    @property
    def arrival_codes(self) -> list[str]:
        return [code for code, _ in self.arrival_airport]


class _BaseSearchFilters(BaseModel):
    trip_type: TripType = TripType.ONE_WAY
    passenger_info: PassengerInfo = Field(default_factory=PassengerInfo)
    flight_segments: list[FlightSegment]
    stops: MaxStops = MaxStops.ANY
    seat_type: SeatType = SeatType.ECONOMY
    price_limit: PriceLimit | None = None
    airlines: list[str] | None = None
    max_duration: int | None = Field(default=None, gt=0, description="Minutes")
    layover_restrictions: LayoverRestrictions | None = None

    @field_validator("airlines")
    @classmethod
    def _upper_airlines(cls, value: list[str] | None) -> list[str] | None:
        if value is None:
            return None
        return [code.strip().upper() for code in value]

    @model_validator(mode="after")
    def _validate_segment_count(self) -> _BaseSearchFilters:
        expected = 1 if self.trip_type == TripType.ONE_WAY else 2
        if len(self.flight_segments) != expected:
            msg = (
                f"{self.trip_type.name} trips require exactly {expected} "
                f"segment(s), got {len(self.flight_segments)}"
            )
            raise ValueError(msg)
        return self


class FlightSearchFilters(_BaseSearchFilters):
    """Complete set of filters for an itinerary search."""

    sort_by: SortBy = SortBy.NONE


class DateSearchFilters(_BaseSearchFilters):
    """Filters for finding the cheapest dates to fly across a date range."""

    from_date: date
    to_date: date
    duration: int | None = Field(
        default=None, gt=0, description="Days between outbound and return"
    )

    @model_validator(mode="after")
    def _validate_dates(self) -> DateSearchFilters:
        if self.trip_type == TripType.ROUND_TRIP and self.duration is None:
            msg = "duration is required for round-trip date searches"
            raise ValueError(msg)
        if self.from_date > self.to_date:
            self.from_date, self.to_date = self.to_date, self.from_date
        today = date.today()
        if self.to_date <= today:
            msg = "to_date must be in the future"
            raise ValueError(msg)
        if self.from_date < today:
            self.from_date = today
        return self

    @property
    def span_days(self) -> int:
        """Number of calendar days covered, both ends inclusive."""
        return (self.to_date - self.from_date).days + 1
