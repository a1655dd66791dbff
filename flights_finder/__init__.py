"""
flights-finder: flight deal retrieval from the flights-finder portal.

The portal fronts two provider families (skyscanner and kiwi) with an
asynchronous "submit, then poll" flow. This library drives that flow and
turns the returned results fragment into normalized, content-addressed
records: deals, flights, legs and trips.

Quick Start:
    >>> from flights_finder import search, SearchInput
    >>> result = search(
    ...     SearchInput(origin="BER", destination="MAD",
    ...                 departure_date="2026-02-01", return_date="2026-02-04"),
    ...     provider="skyscanner",
    ... )
    >>> print(result.summary())

Parsing a fragment you already have:
    >>> from flights_finder import parse_deals
    >>> deals = parse_deals(results_html, "kiwi")

Main Functions:
    - search(): Run one search end to end
    - search_async() / search_many(): Run searches from an event loop
    - parse_deals(): Parse a results fragment into normalized records
    - build_search_url(): Build a provider's bootstrap URL

Classes:
    - SearchInput: Route, dates and passenger mix of a search
    - Deal, Flight, Leg, Trip: Normalized records
    - SearchResult: Records plus run metadata
    - FinderError and subclasses: Typed failures
"""

from .async_api import search_async, search_many
from .config import FinderConfig, configure, get_config, reset_config
from .errors import (
    ConfigurationError,
    ErrorCode,
    FinderError,
    ParseFatalError,
    ProtocolFormatError,
    RetryBudgetExhausted,
    SearchErrorInfo,
    SessionExtractionError,
    TransportError,
)
from .parser import parse_deals
from .providers import KIWI, SKYSCANNER, ProviderProfile, build_search_url, get_provider
from .retrieval import PollingRetriever, RetrievalResult, RetrievalState
from .schema import (
    Deal,
    Flight,
    Leg,
    ParsedDeals,
    SearchInput,
    SearchMetadata,
    SearchResult,
    Trip,
)
from .search import search
from .transport import Transport

__version__ = "0.1.0"

__all__ = [
    # Search
    "search",
    "search_async",
    "search_many",
    "parse_deals",
    "build_search_url",
    # Providers
    "ProviderProfile",
    "SKYSCANNER",
    "KIWI",
    "get_provider",
    # Retrieval
    "PollingRetriever",
    "RetrievalResult",
    "RetrievalState",
    "Transport",
    # Models
    "SearchInput",
    "Flight",
    "Trip",
    "Leg",
    "Deal",
    "ParsedDeals",
    "SearchMetadata",
    "SearchResult",
    # Errors
    "ErrorCode",
    "FinderError",
    "TransportError",
    "ProtocolFormatError",
    "SessionExtractionError",
    "RetryBudgetExhausted",
    "ParseFatalError",
    "ConfigurationError",
    "SearchErrorInfo",
    # Configuration
    "FinderConfig",
    "get_config",
    "configure",
    "reset_config",
]
