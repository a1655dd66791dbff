"""
Search orchestrator.

Ties the pieces together for one search against one provider::

    build_search_url → PollingRetriever.run → parse_deals → SearchResult

Usage:
    >>> from flights_finder import search, SearchInput
    >>> result = search(
    ...     SearchInput(origin="BER", destination="MAD", departure_date="2026-02-01"),
    ...     provider="kiwi",
    ... )
    >>> print(result.summary())
"""

from __future__ import annotations

import logging
import time
from datetime import datetime, timezone
from typing import Any, Callable, Dict, Optional, Union

from .config import FinderConfig, get_config
from .parser import parse_deals
from .providers import get_provider
from .retrieval import PollingRetriever
from .schema import ParsedDeals, SearchInput, SearchMetadata, SearchResult
from .transport import Transport

logger = logging.getLogger(__name__)


def _validate_input(search_input: Union[SearchInput, Dict[str, Any]]) -> SearchInput:
    if isinstance(search_input, dict):
        return SearchInput(**search_input)
    return search_input


def _build_metadata(data: ParsedDeals, poll_retries: int, started: float) -> SearchMetadata:
    return SearchMetadata(
        number_of_deals=len(data.deals),
        number_of_flights=len(data.flights),
        number_of_legs=len(data.legs),
        number_of_trips=len(data.trips),
        poll_retries=poll_retries,
        errors=[],
        time_spent_ms=int((time.perf_counter() - started) * 1000),
    )


def search(
    search_input: Union[SearchInput, Dict[str, Any]],
    provider: str = "skyscanner",
    *,
    transport: Optional[Transport] = None,
    config: Optional[FinderConfig] = None,
    sleep: Callable[[float], None] = time.sleep,
) -> SearchResult:
    """
    Run one search end to end and return the normalized deals.

    Args:
        search_input: SearchInput or a dict of its fields
        provider: "skyscanner" or "kiwi"
        transport: HTTP transport; a primp-backed one is created if omitted
        config: Configuration; the global configuration if omitted
        sleep: Sleep function used between poll attempts

    Returns:
        SearchResult with the entity arrays and run metadata

    Raises:
        pydantic.ValidationError: If the search input is invalid
        ValueError: If the provider is unknown
        TransportError: A request failed
        ProtocolFormatError: The portal answered in an unexpected format
        RetryBudgetExhausted: Results never finished
        ParseFatalError: The results fragment could not be parsed
    """
    started = time.perf_counter()
    config = config or get_config()
    request = _validate_input(search_input)
    profile = get_provider(provider)
    transport = transport or Transport(config=config)

    search_url = profile.search_url(config.base_url, request)
    logger.info(
        f"Searching {profile.name}: {request.origin} → {request.destination} "
        f"on {request.departure_date}" + (f", back {request.return_date}" if request.return_date else "")
    )

    retriever = PollingRetriever(profile, transport, base_url=config.base_url, sleep=sleep, config=config)
    retrieval = retriever.run(search_url)

    data = parse_deals(retrieval.poll.results_html, profile, datetime.now(timezone.utc))
    result = SearchResult(data=data, metadata=_build_metadata(data, retrieval.retries, started))

    logger.info(f"[{profile.name}] {result.summary()}")
    return result


__all__ = [
    "search",
]
