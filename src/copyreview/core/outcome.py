from __future__ import annotations

"""
Explicit success/failure values for callers that prefer results to exceptions.
"""

from dataclasses import dataclass
from typing import TypeAlias

from ..errors import CopyReviewError, ErrorKind, error_category, http_status
from ..ingest.results import CombinedResult, ImproveResult, ReviewResult
from ..llms.types import SessionHandle


@dataclass(frozen=True, slots=True)
class TaskSuccess:
    result: ReviewResult | ImproveResult | CombinedResult
    session: SessionHandle

    @property
    def degraded(self) -> bool:
        """True when the result is the low-confidence review fallback."""
        return bool(getattr(self.result, "degraded", False))


@dataclass(frozen=True, slots=True)
class TaskFailure:
    error: CopyReviewError
    session: SessionHandle

    @property
    def kind(self) -> ErrorKind:
        return self.error.kind

    @property
    def retryable(self) -> bool:
        return self.error.retryable

    @property
    def category(self) -> str:
        return error_category(self.error)

    @property
    def http_status(self) -> int:
        return http_status(self.error)


TaskOutcome: TypeAlias = TaskSuccess | TaskFailure
