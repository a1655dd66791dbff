"""
Decoder for the poll endpoint's pipe-delimited payload.

Wire format (at least 7 fields)::

    N|530|...|...|...|...|<results html>|...

- field 0: "Y" when result generation has finished, "N" otherwise
- field 1: decimal progress counter (informational)
- field 6: the results HTML fragment
"""

from __future__ import annotations

from dataclasses import dataclass

from .errors import ProtocolFormatError

MIN_FIELDS = 7
FINISHED_MARKERS = {"Y": True, "N": False}


@dataclass(frozen=True)
class PollData:
    """One decoded poll response."""
    finished: bool
    count: int
    results_html: str


def parse_poll_payload(payload: str, *, always_finished: bool = False) -> PollData:
    """
    Decode a poll response body.

    Args:
        payload: Raw response text
        always_finished: Provider defines every response as finished, so
            only "Y" is a valid marker

    Returns:
        PollData with the finished flag, counter and results HTML

    Raises:
        ProtocolFormatError: On too few fields, an invalid finished marker,
            a non-numeric counter, or an empty results fragment
    """
    parts = payload.split("|")

    if len(parts) < MIN_FIELDS:
        raise ProtocolFormatError(
            f"Expected at least {MIN_FIELDS} pipe-delimited parts, got {len(parts)}",
            raw=payload,
        )

    marker = parts[0].strip()
    if marker not in FINISHED_MARKERS:
        raise ProtocolFormatError(f"Expected first item to be 'N' or 'Y', got '{marker}'", raw=payload)
    if always_finished and marker != "Y":
        raise ProtocolFormatError(
            f"Expected first item to be 'Y' (polls are always finished), got '{marker}'",
            raw=payload,
        )

    count_str = parts[1].strip()
    if not count_str:
        raise ProtocolFormatError("Second item (count) is missing or empty", raw=payload)
    try:
        count = int(count_str)
    except ValueError:
        raise ProtocolFormatError(f"Second item (count) is not a valid number: '{count_str}'", raw=payload)

    results_html = parts[6].strip()
    if not results_html:
        raise ProtocolFormatError("Seventh item (resultsHtml) is missing or empty", raw=payload)

    return PollData(finished=FINISHED_MARKERS[marker], count=count, results_html=results_html)


__all__ = [
    "PollData",
    "parse_poll_payload",
]
