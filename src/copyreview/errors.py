from __future__ import annotations

"""
MIT License
Copyright (c) 2026 socioy
See LICENSE file for full license text.

This module defines the error taxonomy shared by every pipeline stage.
"""

from enum import Enum


class ErrorKind(str, Enum):
    CONFIGURATION = "configuration"
    UPSTREAM_TIMEOUT = "upstream_timeout"
    RATE_LIMITED = "rate_limited"
    UPSTREAM_OVERLOADED = "upstream_overloaded"
    UNSUPPORTED_MODEL = "unsupported_model"
    INVALID_CREDENTIALS = "invalid_credentials"
    UPSTREAM_REQUEST = "upstream_request"
    TRUNCATED_OUTPUT = "truncated_output"
    UNPARSABLE_COMPLETION = "unparsable_completion"
    INVALID_RESULT_SHAPE = "invalid_result_shape"


class CopyReviewError(Exception):
    """Base exception for all copyreview pipeline errors."""

    kind: ErrorKind = ErrorKind.UPSTREAM_REQUEST
    retryable: bool = False


class ConfigurationError(CopyReviewError):
    """Missing or placeholder credentials, or invalid configuration values."""

    kind = ErrorKind.CONFIGURATION


class UpstreamError(CopyReviewError):
    """Failures reported by, or while talking to, a completion provider."""

    def __init__(self, message: str, *, status: int | None = None) -> None:
        super().__init__(message)
        self.status = status


class RetryableUpstreamError(UpstreamError):
    """
    Transient failures: rate limits, timeouts, provider overload.
    The caller may retry these with backoff.
    """

    retryable = True


class UpstreamTimeout(RetryableUpstreamError):
    kind = ErrorKind.UPSTREAM_TIMEOUT


class RateLimited(RetryableUpstreamError):
    kind = ErrorKind.RATE_LIMITED


class UpstreamOverloaded(RetryableUpstreamError):
    kind = ErrorKind.UPSTREAM_OVERLOADED


class InvalidCredentials(UpstreamError):
    """The provider rejected the API key. Requires operator action."""

    kind = ErrorKind.INVALID_CREDENTIALS


class UnsupportedModel(UpstreamError):
    """The provider does not know the requested model or endpoint."""

    kind = ErrorKind.UNSUPPORTED_MODEL


class UpstreamRequestError(UpstreamError):
    """Any other client-side rejection (malformed request, billing, ...)."""

    kind = ErrorKind.UPSTREAM_REQUEST


class TruncatedOutput(UpstreamError):
    """
    The completion stopped on the token budget. Truncated JSON is never parsed;
    the caller may retry with a shorter input.
    """

    kind = ErrorKind.TRUNCATED_OUTPUT

    def __init__(self, message: str, *, raw_text: str = "") -> None:
        super().__init__(message)
        self.raw_text = raw_text


class UnparsableCompletion(CopyReviewError):
    """
    The completion could not be turned into valid JSON, even after repair.
    Carries the raw text and the parser's character offset for diagnostics.
    """

    kind = ErrorKind.UNPARSABLE_COMPLETION

    def __init__(self, message: str, *, raw_text: str, offset: int | None = None) -> None:
        super().__init__(message)
        self.raw_text = raw_text
        self.offset = offset


class InvalidResultShape(CopyReviewError):
    """The completion was valid JSON but misses fields the result requires."""

    kind = ErrorKind.INVALID_RESULT_SHAPE

    def __init__(self, message: str, *, missing: list[str] | None = None) -> None:
        super().__init__(message)
        self.missing = list(missing or [])


_HTTP_CATEGORIES: dict[ErrorKind, tuple[str, int]] = {
    ErrorKind.CONFIGURATION: ("server_error", 500),
    ErrorKind.UPSTREAM_TIMEOUT: ("timeout", 504),
    ErrorKind.RATE_LIMITED: ("rate_limited", 429),
    ErrorKind.UPSTREAM_OVERLOADED: ("bad_gateway", 502),
    ErrorKind.UNSUPPORTED_MODEL: ("bad_gateway", 502),
    ErrorKind.INVALID_CREDENTIALS: ("server_error", 500),
    ErrorKind.UPSTREAM_REQUEST: ("bad_gateway", 502),
    ErrorKind.TRUNCATED_OUTPUT: ("bad_gateway", 502),
    ErrorKind.UNPARSABLE_COMPLETION: ("bad_gateway", 502),
    ErrorKind.INVALID_RESULT_SHAPE: ("bad_gateway", 502),
}


def error_category(exc: BaseException) -> str:
    """Coarse, client-safe category for an exception raised by the pipeline."""
    if isinstance(exc, CopyReviewError):
        return _HTTP_CATEGORIES[exc.kind][0]
    return "server_error"


def http_status(exc: BaseException) -> int:
    """HTTP status a route layer should answer with for `exc`."""
    if isinstance(exc, CopyReviewError):
        return _HTTP_CATEGORIES[exc.kind][1]
    return 500
