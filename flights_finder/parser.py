"""
Results fragment parser.

Turns the HTML fragment carried in the terminal poll payload into the
normalized record set (deals, flights, legs, trips).

Markup outline (only the parts the parser relies on)::

    <div class="list-item">                      <- summary block
        <div class="item"><div class="stops"><p><span>BER</span>…<span>MAD</span></p></div></div>
        <div class="prices">€361</div>
        <a href="https://agw.skyscnr.com/…">…</a>
        <a onclick="…('myModal3')">Details</a>
    </div>
    <div class="modal" id="myModal3">            <- modal block
        <p class="_heading">Outbound Sun, 1 Feb 2026</p>
        <div class="_panel">
            <div class="_panel_body">
                <div class="_head"><small>KLM KL1770</small></div>
                <div class="_item">
                    <div class="c1"><p>1h 25</p></div>
                    <div class="c3"><p>06:00</p><p>07:25</p></div>
                    <div class="c4"><p>BER Berlin</p><p>AMS Amsterdam</p></div>
                </div>
                <div class="connect_airport">2h 20 Connect in airport</div>
            </div>
        </div>
        <p class="_heading">Return Wed, 4 Feb 2026</p> …
        <div><p class="_heading">Book Your Ticket</p><div class="_similar"><div><p>Air France</p></div></div></div>
    </div>

Failure classes:
    - fatal (ParseFatalError): missing/unparsable outbound date, unparsable
      return date, a modal without any usable outbound flight, or extracted
      values that fail validation. No partial output is returned.
    - soft-skip: a flight panel with a missing label, times or airports is
      dropped silently.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Dict, Iterable, List, Optional, Tuple, TypeVar

from pydantic import BaseModel, ValidationError
from selectolax.lexbor import LexborHTMLParser, LexborNode

from .errors import ParseFatalError
from .providers import ProviderProfile, get_provider
from .schema import Deal, Flight, Leg, ParsedDeals, Trip
from .utils import extract_price_minor_units, sha256_hex, underscore_spaces

logger = logging.getLogger(__name__)

MODAL_SELECTOR = 'div.modal[id^="myModal"]'
HEADING_SELECTOR = "p._heading"
PANEL_BODY_CLASS = "_panel_body"
OUTBOUND_HEADING = "Outbound"
RETURN_HEADING = "Return"
PROVIDER_HEADING = "Book Your Ticket"
UNKNOWN_PROVIDER = "Unknown"

_DATE_RE = re.compile(r"(\d{1,2})\s+(\w+)\s+(\d{4})")
_HOURS_MINUTES_RE = re.compile(r"(\d+)h\s*(\d+)?")
_IATA_RE = re.compile(r"^[A-Z]{3}$")

_MONTHS = {
    "Jan": 1, "Feb": 2, "Mar": 3, "Apr": 4, "May": 5, "Jun": 6,
    "Jul": 7, "Aug": 8, "Sep": 9, "Oct": 10, "Nov": 11, "Dec": 12,
}

M = TypeVar("M", bound=BaseModel)


# ============================================================================
# Text helpers
# ============================================================================

def parse_date(text: str) -> Optional[str]:
    """
    Parse a heading date like "Sun, 1 Feb 2026" into "2026-02-01".

    Returns:
        ISO date string, or None if no day/month/year triple is found
    """
    match = _DATE_RE.search(text)
    if not match:
        return None
    day, month_name, year = match.groups()
    month = _MONTHS.get(month_name[:3].capitalize())
    if month is None:
        return None
    try:
        return datetime(int(year), month, int(day)).strftime("%Y-%m-%d")
    except ValueError:
        return None


def _hours_minutes(text: str) -> Optional[int]:
    match = _HOURS_MINUTES_RE.search(text)
    if not match:
        return None
    return int(match.group(1)) * 60 + int(match.group(2) or 0)


def parse_duration(text: str) -> int:
    """
    Parse "2h 30" into 150 minutes. Minutes are optional; no match gives 0.

    Examples:
        >>> parse_duration("2h 30")
        150
        >>> parse_duration("1h")
        60
        >>> parse_duration("n/a")
        0
    """
    minutes = _hours_minutes(text)
    return 0 if minutes is None else minutes


def parse_connection_time(text: str) -> Optional[int]:
    """
    Parse a connect label like "2h 20 Connect in airport" into minutes.

    Unlike parse_duration, a label without the pattern gives None, not 0.
    """
    return _hours_minutes(text)


def make_flight_id(flight_number: str, origin: str, departure_date: str, departure_time: str) -> str:
    """
    Natural key of a flight.

    Example:
        >>> make_flight_id("KLM KL1770", "BER", "2026-02-01", "06:00")
        'KLM_KL1770_BER_2026-02-01_06-00'
    """
    return f"{underscore_spaces(flight_number)}_{origin}_{departure_date}_{departure_time.replace(':', '-')}"


def make_trip_id(flight_ids: Iterable[str]) -> str:
    """SHA-256 of the sorted, pipe-joined flight identifiers of a trip."""
    return sha256_hex("|".join(sorted(flight_ids)))


def _text(node: Optional[LexborNode]) -> str:
    if node is None:
        return ""
    return " ".join(node.text(separator=" ").split())


def _classes(node: LexborNode) -> List[str]:
    return (node.attributes.get("class") or "").split()


def _is_heading(node: LexborNode) -> bool:
    return node.tag == "p" and "_heading" in _classes(node)


def _closest(node: LexborNode, class_name: str) -> Optional[LexborNode]:
    current = node
    while current is not None:
        if class_name in _classes(current):
            return current
        current = current.parent
    return None


def _build(model: type, modal_id: str, **values) -> M:
    try:
        return model(**values)
    except ValidationError as e:
        raise ParseFatalError(
            f"invalid {model.__name__}: {e.errors()[0]['msg']}",
            modal_id=modal_id,
            raw=str(values),
        ) from e


# ============================================================================
# Block navigation
# ============================================================================

def find_heading(modal: LexborNode, keyword: str) -> Optional[LexborNode]:
    """First section heading in the modal whose text contains the keyword."""
    for heading in modal.css(HEADING_SELECTOR):
        if keyword in _text(heading):
            return heading
    return None


def direction_panels(heading: LexborNode, keyword: str) -> List[LexborNode]:
    """
    Flight panels that belong to the section opened by a heading.

    Walks the heading's enclosing section in document order and keeps the
    ``._panel_body`` elements whose nearest preceding heading is this
    direction's heading. This covers both known markup shapes: panels
    wrapped in a ``._panel`` sibling that follows the heading, and panels
    nested anywhere in a per-direction section element.
    """
    section = heading.parent
    if section is None:
        return []

    panels: List[LexborNode] = []
    current_heading = ""
    for node in section.traverse():
        classes = _classes(node)
        if _is_heading(node):
            current_heading = _text(node)
        elif PANEL_BODY_CLASS in classes and keyword in current_heading:
            panels.append(node)
    return panels


def heading_date(heading: LexborNode) -> Optional[str]:
    """Date of a direction. Only the heading's own text is consulted."""
    return parse_date(_text(heading))


def find_summary(tree: LexborHTMLParser, modal_id: str) -> Optional[LexborNode]:
    """The ``.list-item`` whose click handler opens the given modal."""
    opens_modal = re.compile(re.escape(modal_id) + r"(?!\w)")
    for anchor in tree.css(".list-item a[onclick]"):
        if opens_modal.search(anchor.attributes.get("onclick") or ""):
            return _closest(anchor, "list-item")
    return None


def summary_price(summary: Optional[LexborNode], profile: ProviderProfile) -> int:
    """Price in minor units from the summary block; 0 if none is shown."""
    if summary is None:
        return 0

    if profile.price_attribute:
        attr = f"[{profile.price_attribute}]"
        holder = summary if profile.price_attribute in summary.attributes else summary.css_first(attr)
        if holder is not None:
            value = (holder.attributes.get(profile.price_attribute) or "").strip()
            if value.isdigit():
                return int(value)

    price = extract_price_minor_units(_text(summary.css_first(".prices")))
    return 0 if price is None else price


def summary_link(summary: Optional[LexborNode], profile: ProviderProfile) -> str:
    if summary is None:
        return ""
    anchor = summary.css_first(f'a[href^="{profile.link_prefix}"]')
    return "" if anchor is None else (anchor.attributes.get("href") or "")


def summary_destination(summary: Optional[LexborNode]) -> Optional[str]:
    """Final stop shown in the summary's itinerary label, if it is an IATA code."""
    if summary is None:
        return None
    item = summary.css_first(".item")
    if item is None:
        return None
    stops = item.css(".stops p")
    if not stops:
        return None
    spans = stops[-1].css("span")
    if not spans:
        return None
    candidate = _text(spans[-1])
    return candidate if _IATA_RE.match(candidate) else None


def partner_name(modal: LexborNode) -> str:
    heading = find_heading(modal, PROVIDER_HEADING)
    if heading is None or heading.parent is None:
        return UNKNOWN_PROVIDER
    return _text(heading.parent.css_first("._similar > div > p")) or UNKNOWN_PROVIDER


# ============================================================================
# Flights
# ============================================================================

@dataclass
class _DirectionFlights:
    flights: List[Flight] = field(default_factory=list)
    connections: List[Optional[int]] = field(default_factory=list)


def _parse_panel(
    panel: LexborNode,
    profile: ProviderProfile,
    flight_date: str,
    captured_at: datetime,
    modal_id: str,
) -> Optional[Tuple[Flight, Optional[int]]]:
    label = _text(panel.css_first("._head small"))
    split = profile.split_flight_label(label)
    if split is None:
        logger.debug(f"{modal_id}: skipping panel with flight label {label!r}")
        return None
    airline, flight_number = split

    item = panel.css_first("._item")
    if item is None:
        logger.debug(f"{modal_id}: skipping panel {label!r} without item block")
        return None

    times = [_text(p) for p in item.css(".c3 p")]
    airports = [_text(p) for p in item.css(".c4 p")]
    if len(times) < 2 or len(airports) < 2:
        logger.debug(f"{modal_id}: skipping panel {label!r} without times/airports")
        return None

    departure_time, arrival_time = times[0], times[1]
    origin = airports[0].split()[0] if airports[0] else ""
    destination = airports[1].split()[0] if airports[1] else ""
    if not (departure_time and arrival_time and origin and destination):
        logger.debug(f"{modal_id}: skipping panel {label!r} with empty times/airports")
        return None

    flight = _build(
        Flight,
        modal_id,
        id=make_flight_id(flight_number, origin, flight_date, departure_time),
        flight_number=flight_number,
        airline=airline,
        origin=origin,
        destination=destination,
        departure_date=flight_date,
        departure_time=departure_time,
        # no overnight detection: arrival is dated like the section heading
        arrival_date=flight_date,
        arrival_time=arrival_time,
        duration=parse_duration(_text(item.css_first(".c1 p"))),
        created_at=captured_at,
    )
    connection = parse_connection_time(_text(panel.css_first(".connect_airport")))
    return flight, connection


def _parse_direction(
    panels: List[LexborNode],
    profile: ProviderProfile,
    flight_date: str,
    captured_at: datetime,
    modal_id: str,
) -> _DirectionFlights:
    direction = _DirectionFlights()
    for panel in panels:
        parsed = _parse_panel(panel, profile, flight_date, captured_at, modal_id)
        if parsed is None:
            continue
        flight, connection = parsed
        direction.flights.append(flight)
        direction.connections.append(connection)
    if direction.connections:
        direction.connections[-1] = None
    return direction


def _legs(trip_id: str, direction: _DirectionFlights, inbound: bool, captured_at: datetime, modal_id: str) -> List[Leg]:
    label = "inbound" if inbound else "outbound"
    return [
        _build(
            Leg,
            modal_id,
            id=f"{trip_id}_{label}_{flight.id}",
            trip=trip_id,
            flight=flight.id,
            inbound=inbound,
            order=order,
            connection_time=connection,
            created_at=captured_at,
        )
        for order, (flight, connection) in enumerate(zip(direction.flights, direction.connections))
    ]


# ============================================================================
# Entry point
# ============================================================================

class _Collector:
    """Accumulates entities, keeping the first occurrence of each identifier."""

    def __init__(self) -> None:
        self.deals: Dict[str, Deal] = {}
        self.flights: Dict[str, Flight] = {}
        self.legs: Dict[str, Leg] = {}
        self.trips: Dict[str, Trip] = {}

    @staticmethod
    def add(store: Dict[str, M], items: Iterable[M]) -> None:
        for item in items:
            store.setdefault(item.id, item)

    def result(self) -> ParsedDeals:
        return ParsedDeals(
            deals=list(self.deals.values()),
            flights=list(self.flights.values()),
            legs=list(self.legs.values()),
            trips=list(self.trips.values()),
        )


def parse_deals(
    results_html: str,
    provider: "ProviderProfile | str" = "skyscanner",
    captured_at: Optional[datetime] = None,
) -> ParsedDeals:
    """
    Parse a results fragment into deals, flights, legs and trips.

    Args:
        results_html: Field 6 of the terminal poll payload
        provider: Provider profile (or its name) the fragment came from
        captured_at: Timestamp shared by every entity of this call;
            defaults to the current UTC time, read once

    Returns:
        ParsedDeals with entity arrays deduplicated by identifier

    Raises:
        ParseFatalError: On any structural failure (see module docstring)
    """
    profile = get_provider(provider) if isinstance(provider, str) else provider
    if captured_at is None:
        captured_at = datetime.now(timezone.utc)

    tree = LexborHTMLParser(results_html)
    collected = _Collector()

    for modal in tree.css(MODAL_SELECTOR):
        modal_id = modal.attributes.get("id") or ""
        summary = find_summary(tree, modal_id)

        outbound_heading = find_heading(modal, OUTBOUND_HEADING)
        if outbound_heading is None:
            raise ParseFatalError("no Outbound section", modal_id=modal_id, raw=_text(modal))
        outbound_date = heading_date(outbound_heading)
        if outbound_date is None:
            raise ParseFatalError(
                f"could not parse outbound date from: {_text(outbound_heading)}",
                modal_id=modal_id,
                raw=_text(outbound_heading),
            )

        return_heading = find_heading(modal, RETURN_HEADING)
        return_date: Optional[str] = None
        if return_heading is not None:
            return_date = heading_date(return_heading)
            if return_date is None:
                raise ParseFatalError(
                    f"could not parse return date from: {_text(return_heading)}",
                    modal_id=modal_id,
                    raw=_text(return_heading),
                )

        partner = partner_name(modal)

        outbound = _parse_direction(
            direction_panels(outbound_heading, OUTBOUND_HEADING), profile, outbound_date, captured_at, modal_id
        )
        inbound = _DirectionFlights()
        if return_heading is not None and return_date is not None:
            inbound = _parse_direction(
                direction_panels(return_heading, RETURN_HEADING), profile, return_date, captured_at, modal_id
            )

        if not outbound.flights:
            raise ParseFatalError("no outbound flights found in modal", modal_id=modal_id, raw=_text(modal))

        trip_id = make_trip_id(f.id for f in outbound.flights + inbound.flights)
        trip = _build(Trip, modal_id, id=trip_id, created_at=captured_at)

        first_out, last_out = outbound.flights[0], outbound.flights[-1]
        first_in = inbound.flights[0] if inbound.flights else None
        deal = _build(
            Deal,
            modal_id,
            id=f"{trip_id}_{profile.source}_{underscore_spaces(partner)}",
            trip=trip_id,
            origin=first_out.origin,
            destination=summary_destination(summary) or last_out.destination,
            is_round=first_in is not None,
            departure_date=outbound_date,
            departure_time=first_out.departure_time,
            return_date=return_date if first_in is not None else None,
            return_time=first_in.departure_time if first_in is not None else None,
            source=profile.source,
            provider=partner,
            price=summary_price(summary, profile),
            link=summary_link(summary, profile),
            created_at=captured_at,
            updated_at=captured_at,
        )

        collected.add(collected.flights, outbound.flights + inbound.flights)
        collected.add(collected.trips, [trip])
        collected.add(collected.legs, _legs(trip_id, outbound, False, captured_at, modal_id))
        collected.add(collected.legs, _legs(trip_id, inbound, True, captured_at, modal_id))
        collected.add(collected.deals, [deal])

    result = collected.result()
    logger.info(
        f"Parsed {profile.name} results: {len(result.deals)} deals, {len(result.flights)} flights, "
        f"{len(result.legs)} legs, {len(result.trips)} trips"
    )
    return result


__all__ = [
    "parse_deals",
    "parse_date",
    "parse_duration",
    "parse_connection_time",
    "make_flight_id",
    "make_trip_id",
    "find_heading",
    "direction_panels",
    "find_summary",
]
