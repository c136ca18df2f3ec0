"""Decode Google Flights RPC responses into FlightResult and DatePrice objects.

The upstream answers with ``)]}'`` followed by a JSON envelope whose
``[0][2]`` element is itself a JSON string holding the positional payload.
Every index into that payload is declared once below as a :class:`DecoderKey`.
"""

from __future__ import annotations

import json
import logging
import math
from collections.abc import Callable, Mapping, Sequence
from dataclasses import dataclass
from datetime import date, datetime
from typing import Any, Generic, TypeAlias, TypeVar

from flyscan_core.registry import is_known_airline, is_known_airport
from flyscan_core.schemas import DatePrice, FlightLeg, FlightResult, TripType
from flyscan_crawler.errors import DecodeError

logger = logging.getLogger(__name__)

ENVELOPE_PREFIX = ")]}'"

# Longest raw fragment quoted in drop warnings
_FRAGMENT_LIMIT = 300

# ---------------------------------------------------------------------------
# Nested-list decoder infrastructure
# ---------------------------------------------------------------------------

DecodePath = list[int]
NLBaseType: TypeAlias = "int | float | str | None | Sequence[NLBaseType]"


class ProtocolPathError(LookupError):
    """A decode path does not exist in the payload."""


@dataclass
class NLData(Sequence[NLBaseType]):
    data: list[NLBaseType]

    def __getitem__(self, decode_path: int | DecodePath) -> NLBaseType:  # type: ignore[override]
        if isinstance(decode_path, int):
            return self.data[decode_path]
        it: Any = self.data
        for index in decode_path:
            if not isinstance(it, list):
                msg = f"Found non-list type while decoding {decode_path}"
                raise ProtocolPathError(msg)
            if not -len(it) <= index < len(it):
                msg = f"Index out of range when decoding {decode_path}"
                raise ProtocolPathError(msg)
            it = it[index]
        return it

    def __len__(self) -> int:
        return len(self.data)

    def get(self, decode_path: DecodePath, default: Any = None) -> Any:
        try:
            return self[decode_path]
        except ProtocolPathError:
            return default


V = TypeVar("V")


@dataclass
class DecoderKey(Generic[V]):
    decode_path: DecodePath
    decoder: Callable[[NLData], V] | None = None

    def decode(self, root: NLData) -> NLBaseType | V:
        data = root[self.decode_path]
        if isinstance(data, list) and self.decoder:
            return self.decoder(NLData(data))
        return data


class Decoder:
    @classmethod
    def decode_el(cls, el: NLData) -> Mapping[str, Any]:
        decoded: dict[str, Any] = {}
        for field_name, key_decoder in vars(cls).items():
            if isinstance(key_decoder, DecoderKey):
                decoded[field_name.lower()] = key_decoder.decode(el)
        return decoded


def _fragment(raw: Any) -> str:
    text = json.dumps(raw, ensure_ascii=False, default=str)
    if len(text) > _FRAGMENT_LIMIT:
        return text[:_FRAGMENT_LIMIT] + "..."
    return text


# ---------------------------------------------------------------------------
# Field conversion helpers
# ---------------------------------------------------------------------------


def _all_null(values: Any) -> bool:
    return not isinstance(values, list) or all(v is None for v in values)


def _to_datetime(date_parts: Any, time_parts: Any) -> datetime | None:
    """Combine ``[year, month, day]`` and ``[hour, minute]`` arrays.

    Returns None when either array holds no values at all.  Missing trailing
    components default to the start of the period (month 1, minute 0, ...).
    """
    if _all_null(date_parts) or _all_null(time_parts):
        return None
    year, month, day = (list(date_parts) + [None] * 3)[:3]
    hour, minute = (list(time_parts) + [None] * 2)[:2]
    if year is None:
        return None
    try:
        return datetime(year, month or 1, day or 1, hour or 0, minute or 0)
    except (TypeError, ValueError):
        return None


def _to_price(value: Any) -> float | None:
    if isinstance(value, bool):
        return None
    if isinstance(value, int | float):
        price = float(value)
    elif isinstance(value, str):
        try:
            price = float(value)
        except ValueError:
            return None
    else:
        return None
    return price if math.isfinite(price) else None


def _to_date(value: Any) -> date | None:
    if not isinstance(value, str):
        return None
    try:
        return date.fromisoformat(value)
    except ValueError:
        return None


def _is_minutes(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool) and value >= 0


# ---------------------------------------------------------------------------
# Flight decoders
# ---------------------------------------------------------------------------


def _last_element(data: NLData) -> NLBaseType:
    return data[-1] if len(data) else None


class LegDecoder(Decoder):
    DEPARTURE_AIRPORT: DecoderKey[str] = DecoderKey([3])
    ARRIVAL_AIRPORT: DecoderKey[str] = DecoderKey([6])
    DEPARTURE_TIME: DecoderKey[list[int]] = DecoderKey([8])
    ARRIVAL_TIME: DecoderKey[list[int]] = DecoderKey([10])
    DURATION: DecoderKey[int] = DecoderKey([11])
    DEPARTURE_DATE: DecoderKey[list[int]] = DecoderKey([20])
    ARRIVAL_DATE: DecoderKey[list[int]] = DecoderKey([21])
    AIRLINE: DecoderKey[str] = DecoderKey([22, 0])
    FLIGHT_NUMBER: DecoderKey[str] = DecoderKey([22, 1])

    @classmethod
    def decode_leg(cls, raw: Any) -> FlightLeg | None:
        """Decode one leg tuple, or None if it cannot be trusted."""
        if not isinstance(raw, list):
            logger.warning("Dropping leg that is not a list: %s", _fragment(raw))
            return None
        try:
            fields = cls.decode_el(NLData(raw))
        except ProtocolPathError as exc:
            logger.warning("Dropping leg (%s): %s", exc, _fragment(raw))
            return None

        departure = _to_datetime(fields["departure_date"], fields["departure_time"])
        arrival = _to_datetime(fields["arrival_date"], fields["arrival_time"])
        if departure is None or arrival is None:
            logger.warning(
                "Dropping leg with unusable date/time arrays: %s", _fragment(raw)
            )
            return None

        airline = fields["airline"]
        if not is_known_airline(airline):
            logger.warning(
                "Dropping leg with unknown airline %r: %s", airline, _fragment(raw)
            )
            return None
        for key in ("departure_airport", "arrival_airport"):
            if not is_known_airport(fields[key]):
                logger.warning(
                    "Dropping leg with unknown airport %r: %s",
                    fields[key],
                    _fragment(raw),
                )
                return None

        duration = fields["duration"]
        if not _is_minutes(duration):
            logger.warning("Dropping leg without duration: %s", _fragment(raw))
            return None

        return FlightLeg(
            airline=airline.upper(),
            flight_number=str(fields["flight_number"] or ""),
            departure_airport=fields["departure_airport"].upper(),
            arrival_airport=fields["arrival_airport"].upper(),
            departure_datetime=departure,
            arrival_datetime=arrival,
            duration=duration,
        )

    @classmethod
    def decode(cls, root: NLData) -> list[FlightLeg]:
        legs = (cls.decode_leg(el) for el in root.data)
        return [leg for leg in legs if leg is not None]


class FlightDecoder(Decoder):
    LEGS: DecoderKey[list[FlightLeg]] = DecoderKey([0, 2], LegDecoder.decode)
    DURATION: DecoderKey[int] = DecoderKey([0, 9])
    PRICE: DecoderKey[NLBaseType] = DecoderKey([1, 0], _last_element)

    @classmethod
    def decode_flight(cls, raw: Any) -> FlightResult | None:
        """Decode one flight entry, or None if nothing usable survives."""
        if not isinstance(raw, list):
            logger.warning("Dropping flight that is not a list: %s", _fragment(raw))
            return None
        try:
            fields = cls.decode_el(NLData(raw))
        except ProtocolPathError as exc:
            logger.warning("Dropping flight (%s): %s", exc, _fragment(raw))
            return None

        legs = fields["legs"]
        if not isinstance(legs, list) or not legs:
            logger.warning("Dropping flight with no valid legs: %s", _fragment(raw))
            return None

        price = _to_price(fields["price"])
        if price is None or price < 0:
            logger.warning("Dropping flight without price: %s", _fragment(raw))
            return None

        duration = fields["duration"]
        if not _is_minutes(duration):
            duration = sum(leg.duration for leg in legs)

        return FlightResult(
            legs=tuple(legs),
            price=price,
            duration=duration,
            stops=len(legs) - 1,
        )


class ResultDecoder(Decoder):
    BEST: DecoderKey[list[Any]] = DecoderKey([2, 0])
    OTHER: DecoderKey[list[Any]] = DecoderKey([3, 0])


class CalendarEntryDecoder(Decoder):
    DEPARTURE_DATE: DecoderKey[str] = DecoderKey([0])
    RETURN_DATE: DecoderKey[str] = DecoderKey([1])
    PRICE: DecoderKey[NLBaseType] = DecoderKey([2, 0, 1])

    @classmethod
    def decode_entry(cls, raw: Any, trip_type: TripType) -> DatePrice | None:
        if not isinstance(raw, list):
            return None
        el = NLData(raw)

        departure = _to_date(el.get(cls.DEPARTURE_DATE.decode_path))
        if departure is None:
            logger.warning("Dropping calendar entry without date: %s", _fragment(raw))
            return None
        dates: tuple[date] | tuple[date, date] = (departure,)
        if trip_type == TripType.ROUND_TRIP:
            returning = _to_date(el.get(cls.RETURN_DATE.decode_path))
            if returning is None:
                logger.warning(
                    "Dropping calendar entry without return date: %s", _fragment(raw)
                )
                return None
            dates = (departure, returning)

        price = _to_price(el.get(cls.PRICE.decode_path))
        if price is None:
            logger.warning("Dropping calendar entry without price: %s", _fragment(raw))
            return None
        return DatePrice(date=dates, price=price)


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def unwrap_envelope(raw: str | bytes) -> list[Any] | None:
    """Strip the anti-hijacking prefix and return the inner payload.

    Returns None when the upstream answered with an empty payload.
    Raises :class:`DecodeError` when the envelope itself is malformed.
    """
    try:
        text = raw.decode("utf-8") if isinstance(raw, bytes) else raw
    except UnicodeDecodeError as exc:
        msg = f"Response is not valid UTF-8: {exc}"
        raise DecodeError(msg) from exc
    if not text.startswith(ENVELOPE_PREFIX):
        msg = f"Response does not start with {ENVELOPE_PREFIX!r}"
        raise DecodeError(msg)

    try:
        outer = json.loads(text[len(ENVELOPE_PREFIX) :])
    except json.JSONDecodeError as exc:
        msg = f"Response envelope is not valid JSON: {exc}"
        raise DecodeError(msg) from exc
    if not isinstance(outer, list):
        msg = "Response envelope is not a list"
        raise DecodeError(msg)

    inner = NLData(outer).get([0, 2])
    if inner is None:
        return None
    if not isinstance(inner, str):
        msg = f"Unexpected inner payload type {type(inner).__name__}"
        raise DecodeError(msg)

    try:
        payload = json.loads(inner)
    except json.JSONDecodeError as exc:
        msg = f"Inner payload is not valid JSON: {exc}"
        raise DecodeError(msg) from exc
    if payload is None:
        return None
    if not isinstance(payload, list):
        msg = "Inner payload is not a list"
        raise DecodeError(msg)
    return payload


def decode_flights(raw: str | bytes) -> list[FlightResult] | None:
    """Decode a ``GetShoppingResults`` response body.

    Returns None for an empty upstream payload; otherwise every flight that
    kept at least one valid leg, best results first.
    """
    payload = unwrap_envelope(raw)
    if payload is None:
        return None

    root = NLData(payload)
    entries: list[Any] = []
    for key in (ResultDecoder.BEST, ResultDecoder.OTHER):
        group = root.get(key.decode_path)
        if isinstance(group, list):
            entries.extend(group)

    flights = [
        flight
        for flight in (FlightDecoder.decode_flight(e) for e in entries)
        if flight is not None
    ]
    if len(flights) < len(entries):
        dropped = len(entries) - len(flights)
        logger.info("Dropped %d of %d flights", dropped, len(entries))
    logger.debug("Decoded %d flights", len(flights))
    return flights


def decode_date_prices(
    raw: str | bytes,
    trip_type: TripType = TripType.ONE_WAY,
) -> list[DatePrice] | None:
    """Decode a ``GetCalendarGraph`` response body.

    Calendar entries sit in the last element of the payload.  Returns None
    when nothing usable is present.
    """
    payload = unwrap_envelope(raw)
    if not payload:
        return None

    entries = payload[-1]
    if not isinstance(entries, list):
        return None

    prices = [
        price
        for price in (
            CalendarEntryDecoder.decode_entry(e, trip_type) for e in entries
        )
        if price is not None
    ]
    logger.debug(
        "Decoded %d calendar prices from %d entries", len(prices), len(entries)
    )
    return prices or None
