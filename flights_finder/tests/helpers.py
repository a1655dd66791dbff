"""Shared fakes and HTML builders for the test suite."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence, Union
from urllib.parse import urlsplit

from ..fake_server import encode_poll_payload


@dataclass
class FakeResponse:
    status_code: int = 200
    text: str = ""
    headers: Dict[str, Any] = field(default_factory=dict)


@dataclass
class RecordedRequest:
    method: str
    url: str
    headers: Dict[str, str]
    data: Optional[Dict[str, str]] = None


class FakeClient:
    """
    Scripted stand-in for a primp client.

    ``get`` and ``post`` pop the next scripted item from their queue. An item
    is either a FakeResponse or an exception instance to raise.
    """

    def __init__(
        self,
        get: Sequence[Union[FakeResponse, Exception]] = (),
        post: Sequence[Union[FakeResponse, Exception]] = (),
    ):
        self._get = list(get)
        self._post = list(post)
        self.requests: List[RecordedRequest] = []

    @staticmethod
    def _next(queue: list):
        item = queue.pop(0)
        if isinstance(item, Exception):
            raise item
        return item

    def get(self, url, headers=None):
        self.requests.append(RecordedRequest("GET", url, dict(headers or {})))
        return self._next(self._get)

    def post(self, url, headers=None, data=None):
        self.requests.append(RecordedRequest("POST", url, dict(headers or {}), dict(data or {})))
        return self._next(self._post)

    @property
    def posts(self) -> List[RecordedRequest]:
        return [r for r in self.requests if r.method == "POST"]


class TestClientAdapter:
    """Exposes a FastAPI TestClient through the primp call signatures."""

    __test__ = False

    def __init__(self, test_client):
        self.test_client = test_client

    @staticmethod
    def _path(url: str) -> str:
        parts = urlsplit(url)
        return parts.path + (f"?{parts.query}" if parts.query else "")

    @staticmethod
    def _wrap(response) -> FakeResponse:
        return FakeResponse(
            status_code=response.status_code,
            text=response.text,
            headers={"set-cookie": response.headers.get_list("set-cookie")},
        )

    def get(self, url, headers=None):
        self.test_client.cookies.clear()
        return self._wrap(self.test_client.get(self._path(url), headers=headers))

    def post(self, url, headers=None, data=None):
        # only the explicit Cookie header may reach the server
        self.test_client.cookies.clear()
        return self._wrap(self.test_client.post(self._path(url), headers=headers, data=data))


def poll_response(html: str, *, finished: bool = True, cookies: Sequence[str] = ()) -> FakeResponse:
    return FakeResponse(
        text=encode_poll_payload(html, finished=finished),
        headers={"set-cookie": list(cookies)} if cookies else {},
    )


# ============================================================================
# Results HTML builders
# ============================================================================

def panel(label, dep, arr, origin, dest, duration="1h 30", connect=None) -> str:
    connect_html = f'<div class="connect_airport">{connect}</div>' if connect else ""
    return (
        '<div class="_panel_body">'
        f'<div class="_head"><small>{label}</small></div>'
        '<div class="_item">'
        f'<div class="c1"><p>{duration}</p></div>'
        f'<div class="c3"><p>{dep}</p><p>{arr}</p></div>'
        f'<div class="c4"><p>{origin} Airport</p><p>{dest} Airport</p></div>'
        '</div>'
        f'{connect_html}'
        '</div>'
    )


def modal(
    modal_id: str,
    outbound: Sequence[str],
    inbound: Optional[Sequence[str]] = None,
    *,
    outbound_heading: str = "Outbound Sun, 1 Feb 2026",
    return_heading: str = "Return Wed, 4 Feb 2026",
    partner: Optional[str] = "Air France",
    return_first: bool = False,
) -> str:
    directions = [f'<p class="_heading">{outbound_heading}</p><div class="_panel">' + "".join(outbound) + "</div>"]
    if inbound is not None:
        directions.append(f'<p class="_heading">{return_heading}</p><div class="_panel">' + "".join(inbound) + "</div>")
    if return_first:
        directions.reverse()

    parts = [f'<div class="modal fade" id="{modal_id}"><div class="modal-content">', *directions]
    if partner is not None:
        parts.append(
            '<div class="_providers"><p class="_heading">Book Your Ticket</p>'
            f'<div class="_similar"><div><p>{partner}</p></div></div></div>'
        )
    parts.append("</div></div>")
    return "".join(parts)


def list_item(
    modal_id: str,
    price: Optional[str] = "€361",
    link: str = "https://agw.skyscnr.com/v1/redirect?trip=1",
    stops: Optional[str] = None,
    data_price: Optional[int] = None,
) -> str:
    stops_html = (
        f'<div class="item"><div class="stops"><p><span>{stops.split()[0]}</span> '
        f'<span>{stops.split()[-1]}</span></p></div></div>'
        if stops else ""
    )
    price_attr = f' data-price="{data_price}"' if data_price is not None else ""
    price_html = (
        f'<div class="prices"{price_attr}>{price or ""}</div>'
        if price is not None or data_price is not None else ""
    )
    return (
        '<div class="list-item">'
        f"{stops_html}{price_html}"
        f'<a class="btn" href="{link}">Book</a>'
        f'<a class="details" onclick="openModal(\'{modal_id}\')">Details</a>'
        "</div>"
    )


def results(*blocks: str) -> str:
    return '<div class="results">' + "".join(blocks) + "</div>"
