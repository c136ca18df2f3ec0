"""Decoded flight, slice and calendar price DTOs."""

from __future__ import annotations

import datetime as dt
from typing import TypeAlias

from pydantic import BaseModel, ConfigDict, Field, model_validator


class FlightLeg(BaseModel):
    """A single flight-number hop within an itinerary."""

    model_config = ConfigDict(frozen=True)

    airline: str = Field(description="IATA airline code")
    flight_number: str
    departure_airport: str = Field(description="IATA airport code")
    arrival_airport: str = Field(description="IATA airport code")
    departure_datetime: dt.datetime
    arrival_datetime: dt.datetime
    duration: int = Field(ge=0, description="Minutes")


class FlightResult(BaseModel):
    """A complete one-directional itinerary (a "slice")."""

    model_config = ConfigDict(frozen=True)

    legs: tuple[FlightLeg, ...]
    price: float = Field(ge=0)
    duration: int = Field(ge=0, description="Total minutes")
    stops: int = Field(ge=0)

    @model_validator(mode="after")
    def _validate_stops(self) -> FlightResult:
        if not self.legs:
            msg = "A flight result needs at least one leg"
            raise ValueError(msg)
        if self.stops != len(self.legs) - 1:
            msg = f"stops ({self.stops}) must equal number of legs minus one"
            raise ValueError(msg)
        return self

    @property
    def origin(self) -> str:
        return self.legs[0].departure_airport

    @property
    def destination(self) -> str:
        return self.legs[-1].arrival_airport


class DatePrice(BaseModel):
    """Cheapest price for a departure date (and return date for round trips)."""

    model_config = ConfigDict(frozen=True)

    date: tuple[dt.date] | tuple[dt.date, dt.date]
    price: float


FlightPair: TypeAlias = tuple[FlightResult, FlightResult]
