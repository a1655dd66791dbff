from flights_finder.errors import (
    ErrorCode,
    ParseFatalError,
    ProtocolFormatError,
    RetryBudgetExhausted,
    SearchErrorInfo,
    SessionExtractionError,
    TransportError,
)


def test_protocol_error_truncates_raw_text_in_details():
    error = ProtocolFormatError("bad payload", raw="x" * 2000)
    assert error.raw == "x" * 2000
    assert len(error.details["raw"]) <= 500
    assert error.message == "Failed to read response: bad payload"


def test_session_error_is_a_protocol_error():
    error = SessionExtractionError("Could not extract 'suuid' field", html="data: {}", field="suuid")
    assert isinstance(error, ProtocolFormatError)
    assert error.code == ErrorCode.SESSION_EXTRACTION_ERROR
    assert error.message.startswith("Failed to extract session data")
    assert error.to_dict()["details"]["field"] == "suuid"


def test_parse_error_message_names_the_modal():
    error = ParseFatalError("no outbound flights found in modal", modal_id="myModal4")
    assert error.message == "Could not parse results: modal myModal4: no outbound flights found in modal"


def test_error_info_from_finder_error():
    info = SearchErrorInfo.from_exception(RetryBudgetExhausted(20))
    payload = info.to_dict()
    assert payload["code"] == "RETRY_BUDGET_EXHAUSTED"
    assert payload["exception_type"] == "RetryBudgetExhausted"
    assert payload["details"] == {"max_retries": 20}


def test_error_info_from_foreign_exception():
    info = SearchErrorInfo.from_exception(KeyError("x"))
    assert info.code == ErrorCode.UNKNOWN_ERROR
    assert info.details is None


def test_transport_error_to_dict():
    error = TransportError("https://example.test/poll", "HTTP 502", attempt=4, status_code=502)
    assert error.to_dict() == {
        "code": "TRANSPORT_ERROR",
        "message": "Poll request failed (attempt 4) for https://example.test/poll: HTTP 502",
        "details": {"url": "https://example.test/poll", "attempt": 4, "status_code": 502},
    }
