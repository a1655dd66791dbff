"""
HTTP transport for the portal's bootstrap and poll requests.

Uses a ``primp`` client impersonating a desktop browser. Cookies are managed
explicitly by the retrieval state machine, so the client's own cookie store
is disabled.

Any network failure or non-200 status surfaces as a ``TransportError``.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Dict, Mapping, Optional

import primp

from .config import FinderConfig, get_config
from .cookies import response_set_cookies
from .errors import TransportError
from .types import ResponseProtocol
from .utils import truncate_string

logger = logging.getLogger(__name__)

BROWSER_HEADERS: Dict[str, str] = {
    "accept": "text/html,application/xhtml+xml,application/xml;q=0.9,image/avif,image/webp,*/*;q=0.8",
    "accept-language": "en,de;q=0.9",
}

POLL_HEADERS: Dict[str, str] = {
    "accept": "*/*",
    "accept-language": "en,de;q=0.9",
    "cache-control": "no-cache",
    "content-type": "application/x-www-form-urlencoded; charset=UTF-8",
    "pragma": "no-cache",
    "x-requested-with": "XMLHttpRequest",
}


@dataclass(frozen=True)
class HttpReply:
    """Body and cookies of a successful response."""
    text: str
    cookies: str
    status_code: int = 200


def make_client(config: Optional[FinderConfig] = None) -> primp.Client:
    """Create a primp client from configuration."""
    config = config or get_config()
    return primp.Client(
        impersonate=config.impersonate,
        timeout=config.request_timeout_seconds,
        verify=config.verify_tls,
        cookie_store=False,
        follow_redirects=True,
    )


def _origin_of(url: str) -> str:
    scheme, _, rest = url.partition("://")
    return f"{scheme}://{rest.split('/', 1)[0]}"


class Transport:
    """
    Issues the two request types of the portal protocol.

    Args:
        client: Any object with primp-compatible ``get``/``post`` methods.
            Defaults to a new primp client built from configuration.
        config: Configuration used when creating the default client
    """

    def __init__(self, client: Any = None, *, config: Optional[FinderConfig] = None):
        self.client = client if client is not None else make_client(config)

    def _reply(self, response: ResponseProtocol, url: str, attempt: Optional[int]) -> HttpReply:
        if response.status_code != 200:
            raise TransportError(
                url,
                f"HTTP {response.status_code}: {truncate_string(response.text or '', 200)}",
                attempt=attempt,
                status_code=response.status_code,
            )
        return HttpReply(text=response.text, cookies=response_set_cookies(response), status_code=200)

    def get(self, url: str) -> HttpReply:
        """
        Issue the bootstrap GET request.

        Raises:
            TransportError: On network failure or non-200 status
        """
        logger.debug(f"GET {url}")
        try:
            response = self.client.get(url, headers=BROWSER_HEADERS)
        except Exception as e:
            raise TransportError(url, str(e) or type(e).__name__) from e
        return self._reply(response, url, None)

    def post_form(
        self,
        url: str,
        data: Mapping[str, str],
        *,
        cookies: str,
        referer: str,
        attempt: int,
    ) -> HttpReply:
        """
        Issue one poll POST with a form-encoded body.

        Args:
            url: Poll endpoint
            data: Form fields, sent verbatim
            cookies: Cookie header value
            referer: The search URL the session was created for
            attempt: 1-based poll attempt number, for error context

        Raises:
            TransportError: On network failure or non-200 status
        """
        headers = dict(POLL_HEADERS)
        headers.update({
            "cookie": cookies,
            "origin": _origin_of(url),
            "referer": referer,
        })
        logger.debug(f"POST {url} (attempt {attempt})")
        try:
            response = self.client.post(url, headers=headers, data=dict(data))
        except Exception as e:
            raise TransportError(url, str(e) or type(e).__name__, attempt=attempt) from e
        return self._reply(response, url, attempt)


__all__ = [
    "HttpReply",
    "Transport",
    "make_client",
    "BROWSER_HEADERS",
    "POLL_HEADERS",
]
