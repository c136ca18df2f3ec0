"""Validation rules on the search filter and result models."""

from __future__ import annotations

from datetime import date, datetime, timedelta

import pytest
from pydantic import ValidationError

from flyscan_core.schemas import (
    DateSearchFilters,
    FlightLeg,
    FlightResult,
    FlightSearchFilters,
    PassengerInfo,
    TimeRestrictions,
    TripType,
)


def _leg(dep: str = "SFO", arr: str = "PHX") -> FlightLeg:
    start = datetime(2030, 1, 1, 8, 0)
    return FlightLeg(
        airline="UA",
        flight_number="1",
        departure_airport=dep,
        arrival_airport=arr,
        departure_datetime=start,
        arrival_datetime=start + timedelta(hours=2),
        duration=120,
    )


class TestFlightResult:
    def test_stops_must_match_legs(self):
        with pytest.raises(ValidationError):
            FlightResult(legs=(_leg(),), price=100, duration=120, stops=1)

    def test_needs_a_leg(self):
        with pytest.raises(ValidationError):
            FlightResult(legs=(), price=100, duration=0, stops=0)

    def test_origin_and_destination(self):
        flight = FlightResult(
            legs=(_leg("SFO", "LAX"), _leg("LAX", "PHX")),
            price=100,
            duration=300,
            stops=1,
        )
        assert flight.origin == "SFO"
        assert flight.destination == "PHX"


def test_passenger_total_must_be_positive():
    with pytest.raises(ValidationError):
        PassengerInfo(adults=0)
    assert PassengerInfo(adults=2, children=1).total == 3


def test_time_restrictions_swap_reversed_bounds():
    tr = TimeRestrictions(earliest_departure=18, latest_departure=6)
    assert (tr.earliest_departure, tr.latest_departure) == (6, 18)


class TestFlightSegment:
    def test_codes_are_upper_cased(self, make_segment):
        segment = make_segment("sfo", "phx")
        assert segment.departure_codes == ["SFO"]
        assert segment.arrival_codes == ["PHX"]

    def test_rejects_past_date(self, make_segment):
        with pytest.raises(ValidationError, match="past"):
            make_segment(travel_date=date.today() - timedelta(days=1))

    def test_rejects_same_airports(self, make_segment):
        with pytest.raises(ValidationError):
            make_segment("SFO", "SFO")


class TestSearchFilters:
    def test_segment_count_follows_trip_type(self, make_segment):
        with pytest.raises(ValidationError):
            FlightSearchFilters(
                trip_type=TripType.ROUND_TRIP, flight_segments=[make_segment()]
            )

    def test_airlines_upper_cased(self, make_flight_filters):
        filters = make_flight_filters(airlines=["ua", " dl"])
        assert filters.airlines == ["UA", "DL"]

    def test_date_filters_swap_and_clamp(self, make_segment, future_date):
        filters = DateSearchFilters(
            flight_segments=[make_segment()],
            from_date=future_date,
            to_date=date.today() - timedelta(days=3),
        )
        # Swapped to (past, future) then the past start is clamped to today
        assert filters.from_date == date.today()
        assert filters.to_date == future_date

    def test_round_trip_date_search_needs_duration(self, make_segment, future_date):
        with pytest.raises(ValidationError, match="duration"):
            DateSearchFilters(
                trip_type=TripType.ROUND_TRIP,
                flight_segments=[
                    make_segment("SFO", "PHX"),
                    make_segment("PHX", "SFO", future_date + timedelta(days=5)),
                ],
                from_date=future_date,
                to_date=future_date + timedelta(days=10),
            )

    def test_span_days_is_inclusive(self, make_date_filters):
        assert make_date_filters(days=200).span_days == 200
