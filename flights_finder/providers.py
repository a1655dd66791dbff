"""
Provider profiles for the two portal families.

Both families share the bootstrap → poll → results-fragment flow and the
same results markup. They differ in:

- the portal path and search query parameters
- the session fields echoed to the poll endpoint
- whether a poll response can report "not finished"
- the booking deep-link host
- how the flight label splits into airline and flight number
- where the price is read from
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Dict, Optional, Tuple
from urllib.parse import urlencode

from .schema import SearchInput
from .types import CabinClass, ProviderName

FlightLabel = Tuple[str, str]
"""(airline, flight_number)"""


# ============================================================================
# Flight label splitting
# ============================================================================

def split_two_token_label(label: str) -> Optional[FlightLabel]:
    """
    Split a "<airline> <number>" label on whitespace, using the first two tokens.

    Multi-word airline names are misparsed: "Air Europa UX1098" yields
    airline "Air" and flight number "Air Europa". Downstream identifiers
    depend on this, so it is kept as is.

    Examples:
        >>> split_two_token_label("KLM KL1770")
        ('KLM', 'KLM KL1770')
        >>> split_two_token_label("Air Europa UX1098")
        ('Air', 'Air Europa')
        >>> split_two_token_label("KLM") is None
        True
    """
    tokens = label.split()
    if len(tokens) < 2:
        return None
    airline = tokens[0]
    return airline, f"{airline} {tokens[1]}"


def split_carrier_code_label(label: str) -> Optional[FlightLabel]:
    """
    Split a "<airline name...> <carrier code> <number>" label.

    The last two tokens form the flight number, everything before them the
    airline name.

    Examples:
        >>> split_carrier_code_label("Wizz Air Malta W4 3110")
        ('Wizz Air Malta', 'W43110')
        >>> split_carrier_code_label("W4 3110") is None
        True
    """
    tokens = label.split()
    if len(tokens) < 3:
        return None
    return " ".join(tokens[:-2]), tokens[-2] + tokens[-1]


# ============================================================================
# Search query builders
# ============================================================================

_SKYSCANNER_CABINS: Dict[CabinClass, str] = {
    "economy": "Economy",
    "premium-economy": "PremiumEconomy",
    "business": "Business",
    "first": "First",
}

_KIWI_CABINS: Dict[CabinClass, str] = {
    "economy": "M",
    "premium-economy": "W",
    "business": "C",
    "first": "F",
}


def to_day_month_year(date: str) -> str:
    """Convert YYYY-MM-DD to DD/MM/YYYY."""
    year, month, day = date.split("-")
    return f"{day}/{month}/{year}"


def skyscanner_query(search: SearchInput) -> Dict[str, str]:
    params = {
        "originplace": search.origin,
        "destinationplace": search.destination,
        "outbounddate": search.departure_date,
    }
    if search.return_date:
        params["inbounddate"] = search.return_date
    params.update({
        "cabinclass": _SKYSCANNER_CABINS[search.cabin_class],
        "adults": str(search.adults),
        "children": str(search.children),
        "infants": str(search.infants),
        "currency": search.currency,
    })
    return params


def kiwi_query(search: SearchInput) -> Dict[str, str]:
    params = {
        "currency": search.currency,
        "type": "return" if search.return_date else "oneway",
        "cabinclass": _KIWI_CABINS[search.cabin_class],
        "originplace": search.origin,
        "destinationplace": search.destination,
        "outbounddate": to_day_month_year(search.departure_date),
    }
    if search.return_date:
        params["inbounddate"] = to_day_month_year(search.return_date)
    params.update({
        "adults": str(search.adults),
        "children": str(search.children),
        "infants": str(search.infants),
        "bags-cabin": "0",
        "bags-checked": "0",
    })
    return params


# ============================================================================
# Profiles
# ============================================================================

@dataclass(frozen=True)
class ProviderProfile:
    """Everything that differs between the two portal families."""
    name: ProviderName
    portal_path: str
    session_fields: Tuple[str, ...]
    link_prefix: str
    always_finished: bool
    split_flight_label: Callable[[str], Optional[FlightLabel]]
    build_query: Callable[[SearchInput], Dict[str, str]]
    price_attribute: Optional[str] = None

    @property
    def source(self) -> str:
        return self.name

    def search_url(self, base_url: str, search: SearchInput) -> str:
        return f"{base_url.rstrip('/')}{self.portal_path}?{urlencode(self.build_query(search))}"

    def poll_url(self, base_url: str) -> str:
        return f"{base_url.rstrip('/')}{self.portal_path}/poll"


SKYSCANNER = ProviderProfile(
    name="skyscanner",
    portal_path="/portal/sky",
    session_fields=(
        "_token", "session", "suuid", "deeplink", "s",
        "adults", "children", "infants", "currency",
    ),
    link_prefix="https://agw.skyscnr.com",
    always_finished=False,
    split_flight_label=split_two_token_label,
    build_query=skyscanner_query,
)

KIWI = ProviderProfile(
    name="kiwi",
    portal_path="/portal/kiwi",
    session_fields=(
        "_token", "originplace", "destinationplace", "outbounddate", "inbounddate",
        "cabinclass", "adults", "children", "infants", "currency", "type",
        "bags-cabin", "bags-checked",
    ),
    link_prefix="https://www.kiwi.com/deep",
    always_finished=True,
    split_flight_label=split_carrier_code_label,
    build_query=kiwi_query,
    price_attribute="data-price",
)

PROFILES: Dict[str, ProviderProfile] = {p.name: p for p in (SKYSCANNER, KIWI)}


def get_provider(name: str) -> ProviderProfile:
    """
    Look up a provider profile by name.

    Raises:
        ValueError: If the provider is unknown
    """
    try:
        return PROFILES[name]
    except KeyError:
        raise ValueError(f"Unknown provider: {name}. Expected one of {sorted(PROFILES)}.")


def build_search_url(search: SearchInput, provider: str, base_url: str) -> str:
    """
    Build the bootstrap search URL for a provider.

    Example:
        >>> s = SearchInput(origin="BER", destination="MAD", departure_date="2026-02-01")
        >>> build_search_url(s, "skyscanner", "https://www.flightsfinder.com")
        'https://www.flightsfinder.com/portal/sky?originplace=BER&destinationplace=MAD&outbounddate=2026-02-01&cabinclass=Economy&adults=1&children=0&infants=0&currency=EUR'
    """
    return get_provider(provider).search_url(base_url, search)


__all__ = [
    "FlightLabel",
    "ProviderProfile",
    "SKYSCANNER",
    "KIWI",
    "PROFILES",
    "get_provider",
    "build_search_url",
    "split_two_token_label",
    "split_carrier_code_label",
    "skyscanner_query",
    "kiwi_query",
    "to_day_month_year",
]
