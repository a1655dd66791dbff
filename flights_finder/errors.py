"""
Structured error handling for flights-finder.

Every fatal failure of a search surfaces as one of the exception classes
below. Each carries a machine-readable ``ErrorCode`` plus enough context
(offending URL, attempt number, raw text) to diagnose the failure without
re-running the search.

Taxonomy:
    - TransportError: network/HTTP failure on the bootstrap or poll request
    - ProtocolFormatError: bootstrap object, session field or poll payload
      does not have the expected shape (SessionExtractionError for the former)
    - RetryBudgetExhausted: the provider never reported finished
    - ParseFatalError: the results fragment lacks a structural prerequisite
    - ConfigurationError: a search was set up with an unusable value
"""

from __future__ import annotations

from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, Field

from .utils import truncate_string


class ErrorCode(str, Enum):
    """
    Standardized error codes.

    These codes allow callers to programmatically handle different
    error types without parsing error messages.
    """

    TRANSPORT_ERROR = "TRANSPORT_ERROR"
    PROTOCOL_FORMAT_ERROR = "PROTOCOL_FORMAT_ERROR"
    SESSION_EXTRACTION_ERROR = "SESSION_EXTRACTION_ERROR"
    RETRY_BUDGET_EXHAUSTED = "RETRY_BUDGET_EXHAUSTED"
    PARSE_FATAL_ERROR = "PARSE_FATAL_ERROR"
    CONFIGURATION_ERROR = "CONFIGURATION_ERROR"
    UNKNOWN_ERROR = "UNKNOWN_ERROR"


class FinderError(Exception):
    """
    Base class for all fatal search failures.

    Attributes:
        code: Machine-readable error code
        message: Human-readable description
        details: Structured diagnostic context
    """

    code: ErrorCode = ErrorCode.UNKNOWN_ERROR

    def __init__(self, message: str, **details: Any):
        self.message = message
        self.details = details
        super().__init__(message)

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON serialization."""
        return {
            "code": self.code.value,
            "message": self.message,
            "details": self.details,
        }


class TransportError(FinderError):
    """Network or HTTP failure on the bootstrap or a poll request. Never retried."""

    code = ErrorCode.TRANSPORT_ERROR

    def __init__(
        self,
        url: str,
        reason: str,
        *,
        attempt: Optional[int] = None,
        status_code: Optional[int] = None,
    ):
        self.url = url
        self.reason = reason
        self.attempt = attempt
        self.status_code = status_code
        if attempt is None:
            message = f"Initial request failed for {url}: {reason}"
        else:
            message = f"Poll request failed (attempt {attempt}) for {url}: {reason}"
        super().__init__(message, url=url, attempt=attempt, status_code=status_code)


class ProtocolFormatError(FinderError):
    """A provider response does not follow the expected wire format."""

    code = ErrorCode.PROTOCOL_FORMAT_ERROR
    prefix = "Failed to read response"

    def __init__(self, reason: str, raw: str = "", **details: Any):
        self.reason = reason
        self.raw = raw
        super().__init__(
            f"{self.prefix}: {reason}",
            reason=reason,
            raw=truncate_string(raw, 500),
            **details,
        )


class SessionExtractionError(ProtocolFormatError):
    """The bootstrap page lacks the session object or one of its fields."""

    code = ErrorCode.SESSION_EXTRACTION_ERROR
    prefix = "Failed to extract session data"

    def __init__(self, reason: str, html: str, field: Optional[str] = None):
        self.field = field
        self.html = html
        super().__init__(reason, raw=html, field=field)


class RetryBudgetExhausted(FinderError):
    """The poll loop never observed finished=true within the attempt budget."""

    code = ErrorCode.RETRY_BUDGET_EXHAUSTED

    def __init__(self, max_retries: int):
        self.max_retries = max_retries
        super().__init__(
            f"Max poll retries ({max_retries}) reached without getting finished=true",
            max_retries=max_retries,
        )


class ParseFatalError(FinderError):
    """A structural prerequisite of the results fragment is missing."""

    code = ErrorCode.PARSE_FATAL_ERROR

    def __init__(self, reason: str, *, modal_id: Optional[str] = None, raw: str = ""):
        self.reason = reason
        self.modal_id = modal_id
        self.raw = raw
        prefix = f"modal {modal_id}: " if modal_id else ""
        super().__init__(
            f"Could not parse results: {prefix}{reason}",
            modal_id=modal_id,
            raw=truncate_string(raw, 500),
        )


class ConfigurationError(FinderError):
    """A search was set up with a value it cannot run with."""

    code = ErrorCode.CONFIGURATION_ERROR

    def __init__(self, setting: str, value: Any, reason: str):
        self.setting = setting
        self.value = value
        super().__init__(f"Invalid {setting}={value!r}: {reason}", setting=setting, value=value)


class SearchErrorInfo(BaseModel):
    """
    JSON-friendly description of a failed search.

    Used by the CLI and by callers that report failures to a scheduler
    rather than re-raising them.
    """

    code: ErrorCode = Field(
        description="Machine-readable error code"
    )
    message: str = Field(
        description="Human-readable error message"
    )
    details: Optional[dict] = Field(
        default=None,
        description="Additional error context (url, attempt, offending text)"
    )
    exception_type: str = Field(
        description="Name of the exception class that was raised"
    )

    @classmethod
    def from_exception(cls, e: Exception) -> "SearchErrorInfo":
        """
        Convert an exception to a structured SearchErrorInfo.

        FinderError subclasses keep their code and details; anything else
        is reported as UNKNOWN_ERROR.
        """
        if isinstance(e, FinderError):
            return cls(
                code=e.code,
                message=e.message,
                details=e.details,
                exception_type=type(e).__name__,
            )
        return cls(
            code=ErrorCode.UNKNOWN_ERROR,
            message=str(e),
            exception_type=type(e).__name__,
        )

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON serialization."""
        return self.model_dump(mode="json")


__all__ = [
    "ErrorCode",
    "FinderError",
    "TransportError",
    "ProtocolFormatError",
    "SessionExtractionError",
    "RetryBudgetExhausted",
    "ParseFatalError",
    "ConfigurationError",
    "SearchErrorInfo",
]
