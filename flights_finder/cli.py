"""
Command-line entry point.

Usage:
    flights-finder BER MAD 2026-02-01 --return-date 2026-02-04 --provider kiwi
    flights-finder BER MAD 2026-02-01 --local --summary
    flights-finder BER MAD 2026-02-01 --environment production

Prints the search result as JSON on stdout. On failure, prints a
``SearchErrorInfo`` JSON object and exits with status 1 (2 for invalid
parameters).
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from typing import List, Optional

from pydantic import ValidationError

from .config import configure, get_config
from .errors import SearchErrorInfo
from .schema import SearchInput
from .search import search
from .types import CABIN_CLASSES, ENVIRONMENTS, PROVIDERS

logger = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def configure_logging(level: Optional[str] = None) -> None:
    """Configure root logging on stderr using the configured level."""
    logging.basicConfig(
        level=(level or get_config().log_level).upper(),
        format=LOG_FORMAT,
        stream=sys.stderr,
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="flights-finder",
        description="Search flight deals on the flights-finder portal",
    )
    parser.add_argument("origin", help="Origin airport IATA code, e.g. BER")
    parser.add_argument("destination", help="Destination airport IATA code, e.g. MAD")
    parser.add_argument("departure_date", help="Departure date (YYYY-MM-DD)")
    parser.add_argument("--return-date", help="Return date (YYYY-MM-DD); omit for one-way")
    parser.add_argument("--provider", choices=PROVIDERS, default="skyscanner")
    parser.add_argument("--adults", type=int, default=1)
    parser.add_argument("--children", type=int, default=0)
    parser.add_argument("--infants", type=int, default=0)
    parser.add_argument("--cabin-class", choices=CABIN_CLASSES, default="economy")
    parser.add_argument("--currency", default="EUR")
    parser.add_argument("--environment", choices=ENVIRONMENTS, help="Portal to query (default from FLIGHTS_FINDER_ENVIRONMENT)")
    parser.add_argument("--local", action="store_const", dest="environment", const="local",
                        help="Shorthand for --environment local")
    parser.add_argument("--max-poll-retries", type=int, help="Override the poll attempt budget")
    parser.add_argument("--summary", action="store_true", help="Print a one-line summary instead of JSON")
    parser.add_argument("--log-level", help="Logging level (default from FLIGHTS_FINDER_LOG_LEVEL)")
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)

    overrides = {}
    if args.environment is not None:
        overrides["environment"] = args.environment
    if args.max_poll_retries is not None:
        overrides["max_poll_retries"] = args.max_poll_retries
    config = configure(**overrides) if overrides else get_config()
    configure_logging(args.log_level)

    try:
        request = SearchInput(
            origin=args.origin,
            destination=args.destination,
            departure_date=args.departure_date,
            return_date=args.return_date,
            adults=args.adults,
            children=args.children,
            infants=args.infants,
            cabin_class=args.cabin_class,
            currency=args.currency.upper(),
        )
    except ValidationError as e:
        logger.warning(f"Invalid search parameters: {e}")
        print(json.dumps(SearchErrorInfo.from_exception(e).to_dict(), indent=2))
        return 2

    try:
        result = search(request, args.provider, config=config)
    except Exception as e:
        logger.error(f"Search failed: {e}")
        print(json.dumps(SearchErrorInfo.from_exception(e).to_dict(), indent=2))
        return 1

    if args.summary:
        print(result.summary())
    else:
        print(json.dumps(result.to_dict(), indent=2))
    return 0


if __name__ == "__main__":
    sys.exit(main())
