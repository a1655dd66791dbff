import pytest

from flights_finder.errors import (
    ConfigurationError,
    ProtocolFormatError,
    RetryBudgetExhausted,
    SessionExtractionError,
    TransportError,
)
from flights_finder.providers import KIWI, SKYSCANNER
from flights_finder.retrieval import PollingRetriever, RetrievalState
from flights_finder.transport import Transport

from .helpers import FakeClient, FakeResponse, poll_response

BASE = "https://www.flightsfinder.com"
SEARCH_URL = BASE + "/portal/sky?originplace=BER&destinationplace=MAD"
BOOTSTRAP = "<script>$.ajax({ data: { '_token': 'tok', 'session': 's1', 'suuid': 'u', 'deeplink': 'd', 's': 'www', 'adults': '1', 'children': '0', 'infants': '0', 'currency': 'EUR' } })</script>"
RESULTS = "<div class='results'></div>"


def bootstrap(cookies=("flightsfinder_session=boot; Path=/",)):
    return FakeResponse(text=BOOTSTRAP, headers={"set-cookie": list(cookies)})


def retriever(client, sleep, **kwargs):
    kwargs.setdefault("max_retries", 20)
    kwargs.setdefault("poll_interval", 1.0)
    return PollingRetriever(SKYSCANNER, Transport(client), base_url=BASE, sleep=sleep, **kwargs)


@pytest.mark.parametrize("unfinished", [0, 1, 5])
def test_finishes_after_k_unfinished_responses(unfinished, no_sleep):
    posts = [poll_response(RESULTS, finished=False) for _ in range(unfinished)]
    posts.append(poll_response(RESULTS))
    client = FakeClient(get=[bootstrap()], post=posts)

    runner = retriever(client, no_sleep)
    result = runner.run(SEARCH_URL)

    assert result.retries == unfinished
    assert result.attempts == unfinished + 1
    assert result.poll.finished is True
    assert result.poll.results_html == RESULTS
    assert len(client.posts) == unfinished + 1
    assert no_sleep.calls == [1.0] * unfinished
    assert runner.state is RetrievalState.FINISHED


def test_exhausts_budget_without_trailing_sleep(no_sleep):
    client = FakeClient(get=[bootstrap()], post=[poll_response(RESULTS, finished=False) for _ in range(3)])
    runner = retriever(client, no_sleep, max_retries=3)

    with pytest.raises(RetryBudgetExhausted) as exc_info:
        runner.run(SEARCH_URL)

    assert exc_info.value.max_retries == 3
    assert "Max poll retries (3) reached" in exc_info.value.message
    assert len(client.posts) == 3
    assert no_sleep.calls == [1.0, 1.0]
    assert runner.state is RetrievalState.RETRY_EXHAUSTED


def test_default_budget_is_twenty_attempts(no_sleep):
    client = FakeClient(get=[bootstrap()], post=[poll_response(RESULTS, finished=False) for _ in range(20)])
    runner = PollingRetriever(SKYSCANNER, Transport(client), base_url=BASE, sleep=no_sleep)

    with pytest.raises(RetryBudgetExhausted):
        runner.run(SEARCH_URL)
    assert len(client.posts) == 20
    assert len(no_sleep.calls) == 19


@pytest.mark.parametrize("max_retries", [0, -1])
def test_empty_budget_is_rejected_before_any_request(max_retries, no_sleep):
    client = FakeClient(get=[bootstrap()])

    with pytest.raises(ConfigurationError) as exc_info:
        retriever(client, no_sleep, max_retries=max_retries)

    assert exc_info.value.setting == "max_retries"
    assert exc_info.value.value == max_retries
    assert client.requests == []


def test_each_poll_echoes_session_and_merged_cookies(no_sleep):
    client = FakeClient(
        get=[bootstrap()],
        post=[
            poll_response(RESULTS, finished=False, cookies=["flightsfinder_session=rotated; Path=/", "x=1"]),
            poll_response(RESULTS),
        ],
    )
    result = retriever(client, no_sleep).run(SEARCH_URL)

    first, second = client.posts
    assert first.url == BASE + "/portal/sky/poll"
    assert first.headers["cookie"] == "flightsfinder_session=boot"
    assert second.headers["cookie"] == "flightsfinder_session=rotated; x=1"
    assert first.headers["referer"] == SEARCH_URL
    assert first.data["_token"] == "tok"
    assert first.data["session"] == "s1"
    assert first.data["noc"].isdigit()
    assert result.cookies == "flightsfinder_session=rotated; x=1"
    assert result.session["suuid"] == "u"


def test_bootstrap_failure_is_not_retried(no_sleep):
    client = FakeClient(get=[ConnectionError("boom")])
    runner = retriever(client, no_sleep)

    with pytest.raises(TransportError) as exc_info:
        runner.run(SEARCH_URL)

    assert exc_info.value.attempt is None
    assert len(client.requests) == 1
    assert runner.state is RetrievalState.FAILED


def test_poll_transport_failure_is_terminal(no_sleep):
    client = FakeClient(
        get=[bootstrap()],
        post=[poll_response(RESULTS, finished=False), ConnectionError("reset by peer")],
    )
    runner = retriever(client, no_sleep)

    with pytest.raises(TransportError) as exc_info:
        runner.run(SEARCH_URL)

    assert exc_info.value.attempt == 2
    assert len(client.posts) == 2
    assert no_sleep.calls == [1.0]


def test_missing_session_object(no_sleep):
    client = FakeClient(get=[FakeResponse(text="<html>blocked</html>")])
    runner = retriever(client, no_sleep)

    with pytest.raises(SessionExtractionError):
        runner.run(SEARCH_URL)
    assert client.posts == []
    assert runner.state is RetrievalState.FAILED


def test_malformed_poll_payload(no_sleep):
    client = FakeClient(get=[bootstrap()], post=[FakeResponse(text="<html>error</html>")])
    with pytest.raises(ProtocolFormatError):
        retriever(client, no_sleep).run(SEARCH_URL)


def test_kiwi_runs_a_single_poll(sample, no_sleep):
    client = FakeClient(
        get=[FakeResponse(text=sample("kiwi", "initial.html"))],
        post=[FakeResponse(text="Y|500|||||<div>kiwi</div>")],
    )
    runner = PollingRetriever(KIWI, Transport(client), base_url=BASE, sleep=no_sleep)
    result = runner.run(BASE + "/portal/kiwi?type=return")

    assert result.retries == 0
    assert client.posts[0].url == BASE + "/portal/kiwi/poll"
    assert client.posts[0].data["bags-cabin"] == "0"
    assert no_sleep.calls == []


def test_kiwi_unfinished_marker_is_a_format_error(sample, no_sleep):
    client = FakeClient(
        get=[FakeResponse(text=sample("kiwi", "initial.html"))],
        post=[FakeResponse(text="N|500|||||<div>kiwi</div>")],
    )
    with pytest.raises(ProtocolFormatError):
        PollingRetriever(KIWI, Transport(client), base_url=BASE, sleep=no_sleep).run(BASE + "/portal/kiwi")
