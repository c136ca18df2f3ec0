"""Core schemas for flyscan."""

from .enums import Currency, MaxStops, SeatType, SortBy, TripType
from .filters_input import (
    FlightFiltersInput,
    to_date_search_filters,
    to_flight_search_filters,
)
from .flight import DatePrice, FlightLeg, FlightPair, FlightResult
from .search import (
    DateSearchFilters,
    FlightSearchFilters,
    FlightSegment,
    LayoverRestrictions,
    PassengerInfo,
    PriceLimit,
    TimeRestrictions,
)

__all__ = [
    "Currency",
    "DatePrice",
    "DateSearchFilters",
    "FlightFiltersInput",
    "FlightLeg",
    "FlightPair",
    "FlightResult",
    "FlightSearchFilters",
    "FlightSegment",
    "LayoverRestrictions",
    "MaxStops",
    "PassengerInfo",
    "PriceLimit",
    "SeatType",
    "SortBy",
    "TimeRestrictions",
    "TripType",
    "to_date_search_filters",
    "to_flight_search_filters",
]
