"""Static airport and airline code registry.

Loaded once from ``flyscan_core/data/*.json`` on first lookup.  The tables are
read-only; codes that are not listed are treated as unknown and never guessed.

Decoded legs through an unlisted airport or airline are dropped, so extend the
tables when the upstream starts returning new codes.  Each file is a JSON list
of objects; airports need ``code``, ``name``, ``city`` and ``country``,
airlines need ``code``, ``name`` and ``country``.  Codes are stored upper-case.
"""

from __future__ import annotations

import functools
import json
import logging
from dataclasses import dataclass
from pathlib import Path

logger = logging.getLogger(__name__)

DATA_DIR = Path(__file__).resolve().parent / "data"


@dataclass(frozen=True, slots=True)
class Airport:
    code: str
    name: str
    city: str
    country: str


@dataclass(frozen=True, slots=True)
class Airline:
    code: str
    name: str
    country: str


def _normalize(code: str) -> str:
    return code.strip().upper()


@functools.cache
def _airports() -> dict[str, Airport]:
    with open(DATA_DIR / "airports.json", encoding="utf-8") as f:
        data = json.load(f)
    table = {item["code"]: Airport(**item) for item in data}
    logger.debug("Loaded %d airports", len(table))
    return table


@functools.cache
def _airlines() -> dict[str, Airline]:
    with open(DATA_DIR / "airlines.json", encoding="utf-8") as f:
        data = json.load(f)
    table = {item["code"]: Airline(**item) for item in data}
    logger.debug("Loaded %d airlines", len(table))
    return table


def get_airport(code: str | None) -> Airport | None:
    """Return the airport for *code*, or None if it is not in the registry."""
    if not isinstance(code, str):
        return None
    return _airports().get(_normalize(code))


def get_airline(code: str | None) -> Airline | None:
    """Return the airline for *code*, or None if it is not in the registry."""
    if not isinstance(code, str):
        return None
    return _airlines().get(_normalize(code))


def is_known_airport(code: str | None) -> bool:
    return get_airport(code) is not None


def is_known_airline(code: str | None) -> bool:
    return get_airline(code) is not None


def airport_codes() -> frozenset[str]:
    return frozenset(_airports())


def airline_codes() -> frozenset[str]:
    return frozenset(_airlines())
