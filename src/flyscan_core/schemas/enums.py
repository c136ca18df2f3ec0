"""Protocol enums shared by filters, payloads and results.

Integer values are the ones the upstream expects on the wire.
"""

from enum import IntEnum, StrEnum


class TripType(IntEnum):
    """Trip type."""

    ROUND_TRIP = 1
    ONE_WAY = 2


class SeatType(IntEnum):
    """Cabin class for the flight."""

    ECONOMY = 1
    PREMIUM_ECONOMY = 2
    BUSINESS = 3
    FIRST = 4


class MaxStops(IntEnum):
    """Maximum number of stops allowed in a search."""

    ANY = 0
    NON_STOP = 1
    ONE_STOP_OR_FEWER = 2
    TWO_OR_FEWER_STOPS = 3


class SortBy(IntEnum):
    """Sort order requested from the upstream."""

    NONE = 0
    TOP_FLIGHTS = 1
    CHEAPEST = 2
    DEPARTURE_TIME = 3
    ARRIVAL_TIME = 4
    DURATION = 5


class Currency(StrEnum):
    """Supported currencies for price limits."""

    USD = "USD"
