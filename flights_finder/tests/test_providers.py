from urllib.parse import parse_qsl, urlsplit

import pytest

from flights_finder.providers import (
    KIWI,
    SKYSCANNER,
    build_search_url,
    get_provider,
    split_carrier_code_label,
    split_two_token_label,
)
from flights_finder.schema import SearchInput

BASE = "https://www.flightsfinder.com"


def query_of(url):
    return parse_qsl(urlsplit(url).query, keep_blank_values=True)


def test_skyscanner_round_trip_url():
    search = SearchInput(origin="ber", destination="MAD", departure_date="2026-02-01", return_date="2026-02-04")
    url = build_search_url(search, "skyscanner", BASE)

    assert url.startswith("https://www.flightsfinder.com/portal/sky?")
    assert query_of(url) == [
        ("originplace", "BER"),
        ("destinationplace", "MAD"),
        ("outbounddate", "2026-02-01"),
        ("inbounddate", "2026-02-04"),
        ("cabinclass", "Economy"),
        ("adults", "1"),
        ("children", "0"),
        ("infants", "0"),
        ("currency", "EUR"),
    ]


def test_skyscanner_one_way_omits_inbound_date():
    search = SearchInput(origin="BER", destination="MAD", departure_date="2026-02-01", cabin_class="premium-economy")
    params = dict(query_of(build_search_url(search, "skyscanner", BASE)))
    assert "inbounddate" not in params
    assert params["cabinclass"] == "PremiumEconomy"


def test_kiwi_round_trip_url_uses_day_month_year():
    search = SearchInput(
        origin="BER", destination="MAD", departure_date="2026-02-01", return_date="2026-02-04",
        adults=2, children=1, cabin_class="business",
    )
    url = build_search_url(search, "kiwi", BASE + "/")

    assert url.startswith("https://www.flightsfinder.com/portal/kiwi?")
    assert query_of(url) == [
        ("currency", "EUR"),
        ("type", "return"),
        ("cabinclass", "C"),
        ("originplace", "BER"),
        ("destinationplace", "MAD"),
        ("outbounddate", "01/02/2026"),
        ("inbounddate", "04/02/2026"),
        ("adults", "2"),
        ("children", "1"),
        ("infants", "0"),
        ("bags-cabin", "0"),
        ("bags-checked", "0"),
    ]


def test_kiwi_one_way():
    search = SearchInput(origin="BER", destination="MAD", departure_date="2026-02-01")
    params = dict(query_of(build_search_url(search, "kiwi", BASE)))
    assert params["type"] == "oneway"
    assert "inbounddate" not in params


def test_poll_urls_follow_base_url():
    assert SKYSCANNER.poll_url("http://localhost:3000") == "http://localhost:3000/portal/sky/poll"
    assert KIWI.poll_url("https://www.flightsfinder.com/") == "https://www.flightsfinder.com/portal/kiwi/poll"


def test_unknown_provider():
    with pytest.raises(ValueError, match="Unknown provider"):
        get_provider("expedia")


def test_session_field_sets():
    assert SKYSCANNER.session_fields[0] == "_token"
    assert KIWI.session_fields[0] == "_token"
    assert "bags-checked" in KIWI.session_fields
    assert len(SKYSCANNER.session_fields) == 9
    assert len(KIWI.session_fields) == 13


@pytest.mark.parametrize(
    "label, expected",
    [
        ("KLM KL1770", ("KLM", "KLM KL1770")),
        ("Air Europa UX1098", ("Air", "Air Europa")),
        ("  Iberia   IB3661 ", ("Iberia", "Iberia IB3661")),
        ("KLM", None),
        ("", None),
    ],
)
def test_two_token_label(label, expected):
    assert split_two_token_label(label) == expected


@pytest.mark.parametrize(
    "label, expected",
    [
        ("Wizz Air Malta W4 3110", ("Wizz Air Malta", "W43110")),
        ("Ryanair FR 1234", ("Ryanair", "FR1234")),
        ("W4 3110", None),
    ],
)
def test_carrier_code_label(label, expected):
    assert split_carrier_code_label(label) == expected
