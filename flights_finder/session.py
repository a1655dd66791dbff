"""
Session field extraction from the bootstrap page.

The portal's bootstrap HTML embeds a script-level object literal such as::

    $.ajax({
        url: '/portal/sky/poll',
        data: { '_token': 'dfzDA8...', 'session': 'CrAB...', 'suuid': '...', ... }
    })

The poll endpoint expects those fields echoed back verbatim, plus a ``noc``
nonce holding the current time in epoch milliseconds.
"""

from __future__ import annotations

import logging
import re
import time
from typing import Callable, Dict, Sequence

from .errors import SessionExtractionError

logger = logging.getLogger(__name__)

SENTINEL_FIELD = "_token"

_DATA_OBJECT_RE = re.compile(r"data:\s*\{[\s\S]*?'" + re.escape(SENTINEL_FIELD) + r"'[\s\S]*?\}")


def _field_pattern(field_name: str) -> re.Pattern:
    # Values are single-quoted and may contain backslash-escaped quotes.
    return re.compile(r"'" + re.escape(field_name) + r"'\s*:\s*'((?:\\.|[^'\\])*)'", re.S)


def find_data_object(html: str) -> str:
    """
    Locate the embedded ``data: {...}`` object that carries the session token.

    Raises:
        SessionExtractionError: If no such object exists in the page
    """
    match = _DATA_OBJECT_RE.search(html)
    if not match:
        raise SessionExtractionError("Could not find data object in HTML string", html=html)
    return match.group(0)


def extract_field(data_object: str, field_name: str) -> str:
    """
    Extract one single-quoted string field from the data object.

    Raises:
        SessionExtractionError: If the field is absent
    """
    match = _field_pattern(field_name).search(data_object)
    if not match:
        raise SessionExtractionError(
            f"Could not extract '{field_name}' field",
            html=data_object,
            field=field_name,
        )
    return match.group(1)


def extract_session_fields(
    html: str,
    field_names: Sequence[str],
    *,
    clock: Callable[[], float] = time.time,
) -> Dict[str, str]:
    """
    Extract the provider's session fields from a bootstrap page.

    Each named field is required. On success the ``noc`` field is added,
    holding the current time as a decimal string of epoch milliseconds.

    Args:
        html: Bootstrap page returned by the search URL
        field_names: Provider-specific field names, in form-body order
        clock: Source of the current time in seconds (for tests)

    Returns:
        Ordered mapping of field name to raw string value

    Raises:
        SessionExtractionError: If the object or any field is missing
    """
    data_object = find_data_object(html)
    fields = {name: extract_field(data_object, name) for name in field_names}
    fields["noc"] = str(int(clock() * 1000))
    logger.debug(f"Extracted {len(fields)} session fields")
    return fields


__all__ = [
    "SENTINEL_FIELD",
    "find_data_object",
    "extract_field",
    "extract_session_fields",
]
