"""
MIT License
Copyright (c) 2026 socioy
See LICENSE file for full license text.

copyreview: ingest model completions for cold email review and rewriting.
"""

from .core import CopyPipeline, TaskFailure, TaskOutcome, TaskSuccess
from .errors import (
    ConfigurationError,
    CopyReviewError,
    ErrorKind,
    InvalidCredentials,
    InvalidResultShape,
    RateLimited,
    TruncatedOutput,
    UnparsableCompletion,
    UnsupportedModel,
    UpstreamError,
    UpstreamOverloaded,
    UpstreamRequestError,
    UpstreamTimeout,
    error_category,
    http_status,
)
from .ingest import CombinedResult, ImproveResult, ReviewResult
from .llms import PipelineConfig, ProviderId, SessionHandle, TaskKind

__all__ = [
    "CopyPipeline",
    "TaskSuccess",
    "TaskFailure",
    "TaskOutcome",
    "PipelineConfig",
    "ProviderId",
    "TaskKind",
    "SessionHandle",
    "ReviewResult",
    "ImproveResult",
    "CombinedResult",
    "CopyReviewError",
    "ErrorKind",
    "ConfigurationError",
    "UpstreamError",
    "UpstreamTimeout",
    "RateLimited",
    "UpstreamOverloaded",
    "InvalidCredentials",
    "UnsupportedModel",
    "UpstreamRequestError",
    "TruncatedOutput",
    "UnparsableCompletion",
    "InvalidResultShape",
    "error_category",
    "http_status",
]
