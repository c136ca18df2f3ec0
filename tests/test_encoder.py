"""Filter encoding into the positional ``f.req`` payload."""

from __future__ import annotations

import json
from datetime import datetime, timedelta
from urllib.parse import unquote

import pytest

from flyscan_core.schemas import (
    FlightLeg,
    FlightResult,
    LayoverRestrictions,
    PassengerInfo,
    PriceLimit,
    SeatType,
    SortBy,
    TimeRestrictions,
    TripType,
)
from flyscan_crawler.errors import FilterValidationError
from flyscan_crawler.google.encoder import (
    FiltersPayload,
    encode_filters,
    format_filters,
)


def _segment_array(origin, destination, day):
    return [
        [[[origin, 0]]],
        [[[destination, 0]]],
        None,
        0,
        None,
        None,
        day.isoformat(),
        None,
        None,
        None,
        None,
        None,
        None,
        None,
        3,
    ]


def test_one_way_flight_search_golden(make_flight_filters, future_date):
    filters = make_flight_filters()
    assert format_filters(filters) == [
        [],
        [
            None,
            None,
            2,
            None,
            [],
            1,
            [1, 0, 0, 0],
            None,
            None,
            None,
            None,
            None,
            None,
            [_segment_array("SFO", "PHX", future_date)],
            None,
            None,
            None,
            1,
        ],
        0,
        0,
        0,
        2,
    ]


def test_round_trip_has_two_segments_and_trip_type(make_flight_filters, future_date):
    back = future_date + timedelta(days=5)
    payload = format_filters(make_flight_filters(return_date=back))
    settings_block = payload[1]
    assert settings_block[2] == int(TripType.ROUND_TRIP)
    assert settings_block[13] == [
        _segment_array("SFO", "PHX", future_date),
        _segment_array("PHX", "SFO", back),
    ]


def test_optional_fields_fill_their_positions(make_segment, make_flight_filters):
    segment = make_segment(
        time_restrictions=TimeRestrictions(earliest_departure=6, latest_arrival=22)
    )
    filters = make_flight_filters(
        airlines=["UA", "AA", "DL"],
        seat_type=SeatType.BUSINESS,
        sort_by=SortBy.CHEAPEST,
        passenger_info=PassengerInfo(
            adults=2, children=1, infants_in_seat=1, infants_on_lap=1
        ),
        price_limit=PriceLimit(max_price=500.0),
        max_duration=600,
        layover_restrictions=LayoverRestrictions(airports=["lax"], max_duration=90),
    ).model_copy(update={"flight_segments": [segment]})

    payload = format_filters(filters)
    block = payload[1]
    assert payload[2] == int(SortBy.CHEAPEST)
    assert block[5] == int(SeatType.BUSINESS)
    # adults, children, infants on lap, infants in seat
    assert block[6] == [2, 1, 1, 1]
    assert block[7] == [None, 500]

    seg = block[13][0]
    assert seg[2] == [6, None, None, 22]
    assert seg[4] == ["AA", "DL", "UA"]
    assert seg[7] == [600]
    assert seg[9] == ["LAX"]
    assert seg[12] == 90
    assert seg[14] == 3


def test_airline_order_does_not_change_payload(make_flight_filters):
    a = encode_filters(make_flight_filters(airlines=["UA", "DL"]))
    b = encode_filters(make_flight_filters(airlines=["DL", "UA"]))
    assert a == b


def test_selected_flight_sent_for_round_trip(make_flight_filters, future_date):
    start = datetime.combine(future_date, datetime.min.time()).replace(hour=9)
    selected = FlightResult(
        legs=(
            FlightLeg(
                airline="UA",
                flight_number="512",
                departure_airport="SFO",
                arrival_airport="PHX",
                departure_datetime=start,
                arrival_datetime=start + timedelta(hours=2),
                duration=120,
            ),
        ),
        price=150,
        duration=120,
        stops=0,
    )
    filters = make_flight_filters(return_date=future_date + timedelta(days=3))
    pinned = filters.flight_segments[0].model_copy(
        update={"selected_flight": selected}
    )
    filters = filters.model_copy(
        update={"flight_segments": [pinned, filters.flight_segments[1]]}
    )

    seg = format_filters(filters)[1][13][0]
    assert seg[8] == [["SFO", future_date.isoformat(), "PHX", None, "UA", "512"]]


def test_date_search_layouts(make_date_filters, future_date):
    one_way = format_filters(make_date_filters(days=30))
    assert one_way[0] is None
    assert one_way[2] == [
        future_date.isoformat(),
        (future_date + timedelta(days=29)).isoformat(),
    ]
    assert len(one_way) == 3

    round_trip = format_filters(make_date_filters(days=30, duration=4))
    assert round_trip[3:] == [None, [4, 4]]
    assert round_trip[1][2] == int(TripType.ROUND_TRIP)


def test_encoded_payload_decodes_back(make_flight_filters):
    filters = make_flight_filters()
    encoded = encode_filters(filters)
    assert " " not in encoded
    outer = json.loads(unquote(encoded))
    assert outer[0] is None
    assert json.loads(outer[1]) == format_filters(filters)
    assert FiltersPayload(filters).as_form_body() == f"f.req={encoded}"


def test_unknown_airline_rejected_before_encoding(make_flight_filters):
    with pytest.raises(FilterValidationError) as excinfo:
        encode_filters(make_flight_filters(airlines=["ZZ9"]))
    assert any("ZZ9" in issue for issue in excinfo.value.issues)


def test_unknown_airport_rejected(make_segment, make_flight_filters):
    bad = make_segment("SFO", "QQQ")
    filters = make_flight_filters().model_copy(update={"flight_segments": [bad]})
    with pytest.raises(FilterValidationError, match="QQQ"):
        format_filters(filters)
