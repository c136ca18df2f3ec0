"""Static airport/airline registry lookups."""

from __future__ import annotations

from flyscan_core import registry


def test_airport_lookup_is_case_insensitive():
    airport = registry.get_airport(" sfo ")
    assert airport is not None
    assert airport.code == "SFO"
    assert airport.city == "San Francisco"


def test_unknown_codes_are_not_guessed():
    assert registry.get_airport("ZZZ") is None
    assert registry.get_airline("Q9Q") is None
    assert registry.is_known_airport(None) is False
    assert registry.is_known_airline(123) is False  # type: ignore[arg-type]


def test_airline_codes_starting_with_digits():
    for code in ("9K", "3U", "6E"):
        assert registry.is_known_airline(code)


def test_code_sets_cover_lookups():
    assert "PHX" in registry.airport_codes()
    assert "UA" in registry.airline_codes()
    assert all(len(code) == 3 for code in registry.airport_codes())


def test_table_codes_are_upper_case():
    assert all(code == code.upper() for code in registry.airport_codes())
    assert all(code == code.upper() for code in registry.airline_codes())
