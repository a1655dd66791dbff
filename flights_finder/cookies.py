"""
Cookie propagation between the bootstrap and poll requests.

The portal binds a search to its session cookies, so every Set-Cookie seen
during a search is folded into the Cookie header sent on the next request.

Usage:
    >>> merge_cookies("a=1; b=2", "b=3; c=4")
    'a=1; b=3; c=4'
"""

from __future__ import annotations

from typing import Dict, Iterable, Mapping, Optional, Union

from .types import ResponseProtocol


def reduce_set_cookie(header: str) -> str:
    """
    Reduce a Set-Cookie header value to its bare ``name=value`` token.

    Attributes such as Path, Expires or HttpOnly are discarded.

    Examples:
        >>> reduce_set_cookie("flightsfinder_session=abc; Path=/; HttpOnly")
        'flightsfinder_session=abc'
    """
    return header.split(";", 1)[0].strip()


def extract_cookies(set_cookie_headers: Union[str, Iterable[str], None]) -> str:
    """
    Build a Cookie header value from one or more Set-Cookie header values.

    Args:
        set_cookie_headers: A single Set-Cookie value, a list of them, or None

    Returns:
        ``name=value`` tokens joined by ``"; "`` (empty string if none)
    """
    if not set_cookie_headers:
        return ""
    if isinstance(set_cookie_headers, str):
        set_cookie_headers = [set_cookie_headers]
    tokens = [reduce_set_cookie(h) for h in set_cookie_headers]
    return "; ".join(t for t in tokens if t)


def _parse_cookie_string(cookies: str) -> Dict[str, str]:
    parsed: Dict[str, str] = {}
    for pair in cookies.split(";"):
        name, sep, value = pair.partition("=")
        name = name.strip()
        if name and sep:
            parsed[name] = value.strip()
    return parsed


def merge_cookies(existing: str, new: str) -> str:
    """
    Merge two Cookie header values by cookie name.

    The newest value for a given name overrides the previous one; names keep
    the position where they were first seen.

    Args:
        existing: Current Cookie header value
        new: Cookie header value built from the latest response

    Returns:
        Merged ``name=value`` pairs joined by ``"; "``
    """
    jar = _parse_cookie_string(existing) if existing else {}
    if new:
        jar.update(_parse_cookie_string(new))
    return "; ".join(f"{name}={value}" for name, value in jar.items())


def response_set_cookies(response: ResponseProtocol) -> str:
    """
    Collect the cookies a response sets, as a Cookie header value.

    Reads the raw ``set-cookie`` header(s) and, when the client exposes one,
    the parsed ``cookies`` mapping of the response.
    """
    headers: Mapping[str, object] = response.headers or {}
    raw: Optional[object] = None
    get_list = getattr(headers, "get_list", None)
    if callable(get_list):
        # httpx-style headers fold repeated values when indexed
        raw = get_list("set-cookie")
    else:
        for key in ("set-cookie", "Set-Cookie"):
            if key in headers:
                raw = headers[key]
                break

    if isinstance(raw, (list, tuple)):
        cookies = extract_cookies([str(v) for v in raw])
    elif raw:
        cookies = extract_cookies(str(raw))
    else:
        cookies = ""

    parsed = getattr(response, "cookies", None)
    if parsed:
        cookies = merge_cookies(cookies, "; ".join(f"{k}={v}" for k, v in dict(parsed).items()))
    return cookies


__all__ = [
    "reduce_set_cookie",
    "extract_cookies",
    "merge_cookies",
    "response_set_cookies",
]
