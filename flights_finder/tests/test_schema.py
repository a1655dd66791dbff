from datetime import datetime, timezone

import pytest
from pydantic import ValidationError

from flights_finder.schema import Deal, Flight, Leg, SearchInput

NOW = datetime(2026, 1, 20, tzinfo=timezone.utc)


def deal(**overrides):
    values = dict(
        id="t_skyscanner_KLM", trip="t", origin="BER", destination="MAD", is_round=False,
        departure_date="2026-02-01", departure_time="06:00", source="skyscanner", provider="KLM",
        price=100, link="", created_at=NOW, updated_at=NOW,
    )
    values.update(overrides)
    return Deal(**values)


def test_search_input_normalizes_codes():
    search = SearchInput(origin=" ber ", destination="mad", departure_date="2026-02-01")
    assert (search.origin, search.destination) == ("BER", "MAD")
    assert search.is_round_trip is False


def test_search_input_rejects_return_before_departure():
    with pytest.raises(ValidationError):
        SearchInput(origin="BER", destination="MAD", departure_date="2026-02-04", return_date="2026-02-01")


def test_round_trip_flag_must_match_return_date():
    assert deal().is_round_trip() is False
    round_trip = deal(is_round=True, return_date="2026-02-04", return_time="06:00")
    assert round_trip.is_round_trip() is True
    assert round_trip.return_datetime() == datetime(2026, 2, 4, 6, 0, tzinfo=timezone.utc)
    with pytest.raises(ValidationError):
        deal(is_round=True)
    with pytest.raises(ValidationError):
        deal(return_date="2026-02-04")


def test_entities_are_frozen():
    with pytest.raises(ValidationError):
        deal().price = 5


def test_flight_datetimes():
    flight = Flight(
        id="KLM_KL1770_BER_2026-02-01_06-00", flight_number="KLM KL1770", airline="KLM",
        origin="BER", destination="AMS", departure_date="2026-02-01", departure_time="06:00",
        arrival_date="2026-02-01", arrival_time="07:25", duration=85, created_at=NOW,
    )
    assert (flight.arrival() - flight.departure()).total_seconds() == 85 * 60


def test_leg_rejects_negative_values():
    with pytest.raises(ValidationError):
        Leg(id="l", trip="t", flight="f", inbound=False, order=-1, created_at=NOW)
    with pytest.raises(ValidationError):
        Leg(id="l", trip="t", flight="f", inbound=False, order=0, connection_time=-5, created_at=NOW)
