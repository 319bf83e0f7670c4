from __future__ import annotations

"""
Maps provider SDK exceptions and HTTP statuses onto the pipeline's error taxonomy.
"""

import asyncio
import socket

from ..errors import (
    CopyReviewError,
    InvalidCredentials,
    RateLimited,
    UnsupportedModel,
    UpstreamError,
    UpstreamOverloaded,
    UpstreamRequestError,
    UpstreamTimeout,
)

_TIMEOUT_PHRASES = ("timeout", "timed out")
_RATE_LIMIT_PHRASES = ("rate limit", "rate_limit", "rate-limit", "too many requests", "quota exceeded")
_OVERLOAD_PHRASES = (
    "overloaded",
    "temporarily unavailable",
    "service unavailable",
    "bad gateway",
    "connection reset",
    "connection aborted",
    "connection refused",
    "connection error",
    "econnreset",
    "econnrefused",
)
_CREDENTIAL_PHRASES = (
    "invalid api key",
    "invalid_api_key",
    "invalid x-api-key",
    "unauthorized",
    "authentication",
    "permission denied",
    "forbidden",
)
_MODEL_PHRASES = (
    "not a valid model",
    "model not found",
    "unknown model",
    "no endpoints found",
    "not_found_error",
)


def error_for_status(status: int, message: str) -> UpstreamError:
    """Classify one provider HTTP status (plus its message) into a typed error."""
    m = message.lower()
    if status in (401, 403):
        return InvalidCredentials(message, status=status)
    if status == 404:
        return UnsupportedModel(message, status=status)
    if status == 429:
        return RateLimited(message, status=status)
    if status == 408:
        return UpstreamTimeout(message, status=status)
    if status == 529 or 500 <= status < 600:
        return UpstreamOverloaded(message, status=status)
    if status == 400 and any(phrase in m for phrase in _MODEL_PHRASES):
        return UnsupportedModel(message, status=status)
    return UpstreamRequestError(message, status=status)


def classify_error(e: BaseException) -> CopyReviewError:
    """Map arbitrary transport exceptions into exactly one pipeline error kind."""
    if isinstance(e, CopyReviewError):
        return e

    msg = ""
    try:
        msg = str(e) or ""
    except Exception:
        msg = repr(e)
    if not msg:
        msg = type(e).__name__

    status = _extract_status(e)
    if status is not None:
        return error_for_status(status, msg)

    name = type(e).__name__
    if isinstance(e, (asyncio.TimeoutError, TimeoutError, socket.timeout)) or "Timeout" in name:
        return UpstreamTimeout(msg)
    if isinstance(e, (ConnectionError, OSError)) or "Connection" in name:
        return UpstreamOverloaded(msg)

    m = msg.lower()
    if any(phrase in m for phrase in _TIMEOUT_PHRASES):
        return UpstreamTimeout(msg)
    if any(phrase in m for phrase in _RATE_LIMIT_PHRASES):
        return RateLimited(msg)
    if any(phrase in m for phrase in _OVERLOAD_PHRASES):
        return UpstreamOverloaded(msg)
    if any(phrase in m for phrase in _CREDENTIAL_PHRASES):
        return InvalidCredentials(msg)
    if any(phrase in m for phrase in _MODEL_PHRASES):
        return UnsupportedModel(msg)
    return UpstreamRequestError(msg)


def _extract_status(e: BaseException) -> int | None:
    for attr in ("status_code", "status", "code"):
        val = getattr(e, attr, None)
        if isinstance(val, bool):
            continue
        if isinstance(val, int) and 100 <= val < 600:
            return val
        if isinstance(val, str) and val.isdigit():
            return int(val)

    resp = getattr(e, "response", None)
    if resp is not None:
        sc = getattr(resp, "status_code", None) or getattr(resp, "status", None)
        if isinstance(sc, int) and not isinstance(sc, bool):
            return sc
        if isinstance(sc, str) and sc.isdigit():
            return int(sc)
    return None
