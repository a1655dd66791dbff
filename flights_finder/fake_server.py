"""
Canned-response portal for local development and tests.

Serves the bundled samples on the same routes as the live portal, so a
search with ``environment="local"`` runs the whole bootstrap → poll →
parse flow without network access.

Run with:
    uvicorn flights_finder.fake_server:app --port 3000

Or using the CLI:
    flights-finder-fake-server --port 3000

Routes:
    GET  /portal/sky         skyscanner bootstrap page
    POST /portal/sky/poll    skyscanner poll (unfinished ``pending_polls`` times per bootstrap, then finished)
    GET  /portal/kiwi        kiwi bootstrap page
    POST /portal/kiwi/poll   kiwi poll (always finished)
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Dict, List, Optional
from urllib.parse import parse_qs

from fastapi import FastAPI, Request
from fastapi.responses import PlainTextResponse, Response

from .session import SENTINEL_FIELD

logger = logging.getLogger(__name__)

SAMPLES_DIR = Path(__file__).parent / "samples"

FAKE_COOKIES: List[str] = [
    'CookieScriptConsent={"action":"accept"}; Path=/',
    "flightsfinder_session=fake_session_token_12345; Path=/",
]


def read_sample(*parts: str) -> str:
    """Read a bundled sample file, e.g. ``read_sample("kiwi", "initial.html")``."""
    return SAMPLES_DIR.joinpath(*parts).read_text(encoding="utf-8")


def encode_poll_payload(results_html: str, *, finished: bool = True, count: int = 530) -> str:
    """
    Wrap a results fragment in the poll wire format.

    Raises:
        ValueError: If the fragment contains the field delimiter
    """
    if "|" in results_html:
        raise ValueError("results HTML must not contain '|'")
    marker = "Y" if finished else "N"
    return f"{marker}|{count}|0|0|0|0|{results_html}|"


def _with_cookies(response: Response) -> Response:
    for cookie in FAKE_COOKIES:
        response.headers.append("set-cookie", cookie)
    return response


async def _form(request: Request) -> Dict[str, str]:
    body = (await request.body()).decode("utf-8")
    return {k: v[0] for k, v in parse_qs(body, keep_blank_values=True).items()}


def create_app(
    pending_polls: int = 0,
    skyscanner_results: str = "round-trip.html",
    kiwi_results: str = "round-trip.html",
) -> FastAPI:
    """
    Create the fake portal application.

    Args:
        pending_polls: Unfinished skyscanner poll responses served after each
            bootstrap page before the finished one
        skyscanner_results: Sample file under ``samples/skyscanner`` served
            as the finished results
        kiwi_results: Sample file under ``samples/kiwi`` served as results
    """
    app = FastAPI(
        title="Flights Finder Fake Portal",
        description="Canned bootstrap and poll responses for both provider families",
    )
    app.state.poll_count = 0

    async def poll_gate(request: Request) -> Optional[Response]:
        form = await _form(request)
        if not form.get(SENTINEL_FIELD):
            # Laravel answers a missing CSRF token with 419
            return PlainTextResponse("CSRF token mismatch.", status_code=419)
        return None

    @app.get("/portal/sky")
    async def skyscanner_initial() -> Response:
        # every bootstrap opens a new search, which starts unfinished again
        app.state.poll_count = 0
        return _with_cookies(
            Response(read_sample("skyscanner", "initial.html"), media_type="text/html; charset=utf-8")
        )

    @app.post("/portal/sky/poll")
    async def skyscanner_poll(request: Request) -> Response:
        rejected = await poll_gate(request)
        if rejected is not None:
            return rejected

        app.state.poll_count += 1
        if app.state.poll_count <= pending_polls:
            logger.info(f"Serving pending poll {app.state.poll_count}/{pending_polls}")
            payload = read_sample("skyscanner", "poll-pending.txt")
        else:
            payload = encode_poll_payload(read_sample("skyscanner", skyscanner_results))
        return _with_cookies(Response(payload, media_type="text/html; charset=utf-8"))

    @app.get("/portal/kiwi")
    async def kiwi_initial() -> Response:
        return _with_cookies(
            Response(read_sample("kiwi", "initial.html"), media_type="text/html; charset=utf-8")
        )

    @app.post("/portal/kiwi/poll")
    async def kiwi_poll(request: Request) -> Response:
        rejected = await poll_gate(request)
        if rejected is not None:
            return rejected
        payload = encode_poll_payload(read_sample("kiwi", kiwi_results), count=500)
        return _with_cookies(Response(payload, media_type="text/html; charset=utf-8"))

    return app


app = create_app()


# ============================================================================
# CLI Entry Point
# ============================================================================

def run(host: str = "127.0.0.1", port: int = 3000, reload: bool = False):
    """Run the fake portal."""
    import uvicorn

    logger.info(f"Starting fake flights-finder portal on http://{host}:{port}")

    uvicorn.run(
        "flights_finder.fake_server:app",
        host=host,
        port=port,
        reload=reload,
    )


def main():
    import argparse

    parser = argparse.ArgumentParser(description="Run the canned-response flights-finder portal")
    parser.add_argument("--host", default="127.0.0.1")
    parser.add_argument("--port", type=int, default=3000)
    parser.add_argument("--reload", action="store_true")
    args = parser.parse_args()

    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    )
    run(host=args.host, port=args.port, reload=args.reload)


if __name__ == "__main__":
    main()
