"""
Shared utilities for flights-finder.

This module provides common helper functions used across the codebase,
reducing code duplication and ensuring consistent behavior.
"""

from __future__ import annotations

import hashlib
import re
from datetime import datetime
from typing import Optional

_CURRENCY_PRICE_RE = re.compile(r"[€£$]\s*(\d[\d,]*)")


def extract_price_minor_units(price_str: str) -> Optional[int]:
    """
    Extract a currency-prefixed integer price and convert it to minor units.

    Only the integer part following the currency symbol is used; thousands
    separators are tolerated.

    Args:
        price_str: Price string (e.g., "€361", "£1,299", "$99")

    Returns:
        Price in minor currency units, or None if no price is present

    Examples:
        >>> extract_price_minor_units("€361")
        36100
        >>> extract_price_minor_units("from £1,299")
        129900
        >>> extract_price_minor_units("N/A") is None
        True
    """
    if not price_str:
        return None

    match = _CURRENCY_PRICE_RE.search(price_str)
    if not match:
        return None

    return int(match.group(1).replace(",", "")) * 100


def format_duration(minutes: int) -> str:
    """
    Format duration in minutes to human-readable string.

    Args:
        minutes: Duration in minutes

    Returns:
        Formatted string like "5h 30m"

    Examples:
        >>> format_duration(330)
        '5h 30m'
        >>> format_duration(60)
        '1h 0m'
    """
    hours = minutes // 60
    mins = minutes % 60
    return f"{hours}h {mins}m"


def sha256_hex(text: str) -> str:
    """Lowercase hex SHA-256 digest of a UTF-8 string."""
    return hashlib.sha256(text.encode("utf-8")).hexdigest()


def underscore_spaces(value: str) -> str:
    """Replace every run of whitespace with a single underscore."""
    return re.sub(r"\s+", "_", value)


def truncate_string(s: str, max_length: int = 100, suffix: str = "...") -> str:
    """
    Truncate a string to a maximum length.

    Args:
        s: String to truncate
        max_length: Maximum length including suffix
        suffix: Suffix to append if truncated

    Returns:
        Truncated string with suffix if needed
    """
    if len(s) <= max_length:
        return s
    return s[:max_length - len(suffix)] + suffix


def validate_airport_code(code: str) -> str:
    """
    Validate and normalize an airport IATA code.

    Args:
        code: Airport code to validate

    Returns:
        Uppercase 3-letter code

    Raises:
        ValueError: If code is not a valid IATA format
    """
    code = code.strip().upper()
    if not re.match(r'^[A-Z]{3}$', code):
        raise ValueError(f"Invalid airport code: {code}. Must be 3 letters.")
    return code


def validate_date(date_str: str) -> str:
    """
    Validate a date string in YYYY-MM-DD format.

    Args:
        date_str: Date string to validate

    Returns:
        Validated date string

    Raises:
        ValueError: If date format is invalid
    """
    if not re.match(r'^\d{4}-\d{2}-\d{2}$', date_str):
        raise ValueError(f"Invalid date format: {date_str}. Use YYYY-MM-DD.")

    try:
        datetime.strptime(date_str, "%Y-%m-%d")
    except ValueError as e:
        raise ValueError(f"Invalid date: {date_str}. {e}")

    return date_str


def validate_time(time_str: str) -> str:
    """
    Validate a 24-hour time string in HH:MM format.

    Raises:
        ValueError: If the time is not HH:MM with valid hour and minute
    """
    if not re.match(r'^([01]\d|2[0-3]):[0-5]\d$', time_str):
        raise ValueError(f"Invalid time: {time_str}. Use HH:MM.")
    return time_str


__all__ = [
    "extract_price_minor_units",
    "format_duration",
    "sha256_hex",
    "underscore_spaces",
    "truncate_string",
    "validate_airport_code",
    "validate_date",
    "validate_time",
]
