"""
Pydantic models for search inputs and the normalized record set.

The four entities (Flight, Trip, Leg, Deal) are frozen: once a parse call
creates them they are never updated, only replaced by re-parsing.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import List, Optional

from pydantic import BaseModel, Field, field_validator, model_validator

from .types import CabinClass
from .utils import format_duration, validate_airport_code, validate_date, validate_time


def _combine(date_str: str, time_str: str) -> datetime:
    return datetime.strptime(f"{date_str}T{time_str}", "%Y-%m-%dT%H:%M").replace(tzinfo=timezone.utc)


# ============================================================================
# Search input
# ============================================================================

class SearchInput(BaseModel):
    """Input for one search: route, dates and passenger mix."""

    origin: str = Field(
        description="Origin airport IATA code (e.g., 'BER')"
    )
    destination: str = Field(
        description="Destination airport IATA code (e.g., 'MAD')"
    )
    departure_date: str = Field(
        description="Departure date in YYYY-MM-DD format"
    )
    return_date: Optional[str] = Field(
        default=None,
        description="Return date in YYYY-MM-DD format. Omit for one-way."
    )
    adults: int = Field(default=1, ge=1, le=9)
    children: int = Field(default=0, ge=0, le=8)
    infants: int = Field(default=0, ge=0, le=4)
    cabin_class: CabinClass = Field(default="economy")
    currency: str = Field(default="EUR", pattern=r"^[A-Z]{3}$")

    model_config = {"frozen": True}

    @field_validator("origin", "destination")
    @classmethod
    def _iata(cls, v: str) -> str:
        return validate_airport_code(v)

    @field_validator("departure_date", "return_date")
    @classmethod
    def _iso_date(cls, v: Optional[str]) -> Optional[str]:
        return None if v is None else validate_date(v)

    @model_validator(mode="after")
    def _return_after_departure(self) -> "SearchInput":
        if self.return_date is not None and self.return_date < self.departure_date:
            raise ValueError(
                f"return_date {self.return_date} is before departure_date {self.departure_date}"
            )
        return self

    @property
    def is_round_trip(self) -> bool:
        return self.return_date is not None


# ============================================================================
# Normalized entities
# ============================================================================

class Flight(BaseModel):
    """A single scheduled segment."""

    id: str
    flight_number: str
    airline: str
    origin: str
    destination: str
    departure_date: str
    departure_time: str
    arrival_date: str
    arrival_time: str
    duration: int = Field(ge=0, description="Duration in minutes")
    created_at: datetime

    model_config = {"frozen": True}

    @field_validator("origin", "destination")
    @classmethod
    def _iata(cls, v: str) -> str:
        return validate_airport_code(v)

    @field_validator("departure_date", "arrival_date")
    @classmethod
    def _iso_date(cls, v: str) -> str:
        return validate_date(v)

    @field_validator("departure_time", "arrival_time")
    @classmethod
    def _hhmm(cls, v: str) -> str:
        return validate_time(v)

    def departure(self) -> datetime:
        return _combine(self.departure_date, self.departure_time)

    def arrival(self) -> datetime:
        return _combine(self.arrival_date, self.arrival_time)


class Trip(BaseModel):
    """An itinerary identified by the hash of its flight identifiers."""

    id: str = Field(pattern=r"^[0-9a-f]{64}$")
    created_at: datetime

    model_config = {"frozen": True}


class Leg(BaseModel):
    """One ordered occurrence of a flight within a trip's direction."""

    id: str
    trip: str
    flight: str
    inbound: bool
    order: int = Field(ge=0)
    connection_time: Optional[int] = Field(
        default=None,
        ge=0,
        description="Minutes until the next leg in the same direction; None for the last leg"
    )
    created_at: datetime

    model_config = {"frozen": True}


class Deal(BaseModel):
    """One bookable offer for a trip from one booking partner."""

    id: str
    trip: str
    origin: str
    destination: str
    is_round: bool
    departure_date: str
    departure_time: str
    return_date: Optional[str] = None
    return_time: Optional[str] = None
    source: str = Field(description="Provider family, e.g. 'skyscanner'")
    provider: str = Field(description="Booking partner name, e.g. 'Air France'")
    price: int = Field(ge=0, description="Price in minor currency units")
    link: str
    created_at: datetime
    updated_at: datetime

    model_config = {"frozen": True}

    @field_validator("origin", "destination")
    @classmethod
    def _iata(cls, v: str) -> str:
        return validate_airport_code(v)

    @field_validator("departure_date", "return_date")
    @classmethod
    def _iso_date(cls, v: Optional[str]) -> Optional[str]:
        return None if v is None else validate_date(v)

    @field_validator("departure_time", "return_time")
    @classmethod
    def _hhmm(cls, v: Optional[str]) -> Optional[str]:
        return None if v is None else validate_time(v)

    @model_validator(mode="after")
    def _round_trip_consistency(self) -> "Deal":
        if self.is_round != (self.return_date is not None):
            raise ValueError("is_round must be true exactly when return_date is set")
        return self

    def is_round_trip(self) -> bool:
        """Whether this deal includes a return journey."""
        return self.return_date is not None

    def departure(self) -> datetime:
        return _combine(self.departure_date, self.departure_time)

    def return_datetime(self) -> Optional[datetime]:
        if self.return_date is None or self.return_time is None:
            return None
        return _combine(self.return_date, self.return_time)


# ============================================================================
# Result envelope
# ============================================================================

class ParsedDeals(BaseModel):
    """The four entity arrays produced by one parse call."""

    deals: List[Deal] = Field(default_factory=list)
    flights: List[Flight] = Field(default_factory=list)
    legs: List[Leg] = Field(default_factory=list)
    trips: List[Trip] = Field(default_factory=list)


class SearchMetadata(BaseModel):
    """Run metadata for one search."""

    number_of_deals: int
    number_of_flights: int
    number_of_legs: int
    number_of_trips: int
    poll_retries: int
    errors: List[str] = Field(default_factory=list)
    time_spent_ms: int


class SearchResult(BaseModel):
    """Result of a successful search: entities plus run metadata."""

    data: ParsedDeals
    metadata: SearchMetadata

    def to_dict(self) -> dict:
        """Convert to a JSON-serializable dictionary."""
        return self.model_dump(mode="json")

    def cheapest_deal(self) -> Optional[Deal]:
        return min(self.data.deals, key=lambda d: d.price, default=None)

    def summary(self) -> str:
        """
        Get a human-readable summary of the search results.

        Example:
            "Found 3 deal(s) across 3 trip(s) after 2 poll retries in 4210 ms. Cheapest: 361.00 via Air France."
        """
        meta = self.metadata
        parts = [
            f"Found {meta.number_of_deals} deal(s) across {meta.number_of_trips} trip(s)"
            f" after {meta.poll_retries} poll retries in {meta.time_spent_ms} ms."
        ]
        best = self.cheapest_deal()
        if best:
            flights = {f.id: f for f in self.data.flights}
            outbound = [
                flights[leg.flight] for leg in self.data.legs
                if leg.trip == best.trip and not leg.inbound and leg.flight in flights
            ]
            travel = sum(f.duration for f in outbound)
            parts.append(
                f"Cheapest: {best.price / 100:.2f} via {best.provider}"
                f" ({best.origin} → {best.destination}, {format_duration(travel)} in the air)."
            )
        return " ".join(parts)


__all__ = [
    "SearchInput",
    "Flight",
    "Trip",
    "Leg",
    "Deal",
    "ParsedDeals",
    "SearchMetadata",
    "SearchResult",
]
