from __future__ import annotations

"""
MIT License
Copyright (c) 2026 socioy
See LICENSE file for full license text.

This module defines the provider-agnostic request/response types used by the pipeline.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import TYPE_CHECKING, Any, TypeAlias
import uuid

if TYPE_CHECKING:
    from ..ingest.results import ReviewResult


JSONPrimitive: TypeAlias = str | int | float | bool | None
JSONValue: TypeAlias = JSONPrimitive | list["JSONValue"] | dict[str, "JSONValue"]
JSONObject: TypeAlias = dict[str, JSONValue]


class TaskKind(str, Enum):
    REVIEW = "review"
    IMPROVE = "improve"
    ANALYZE_AND_IMPROVE = "analyze_and_improve"


class ProviderId(str, Enum):
    PRIMARY = "anthropic"
    GATEWAY = "openrouter"


class StopReason(str, Enum):
    STOP = "stop"
    MAX_TOKENS = "max_tokens"
    OTHER = "other"


@dataclass(frozen=True, slots=True)
class CompletionRequest:
    task_kind: TaskKind
    subject: str
    body: str
    prior_review: "ReviewResult | None" = None
    model_hint: str | None = None


@dataclass(frozen=True, slots=True)
class PromptParts:
    system_blocks: tuple[str, ...]
    user_prompt: str
    assistant_prefill: str

    @property
    def system_text(self) -> str:
        return "\n\n".join(self.system_blocks)


@dataclass(frozen=True, slots=True)
class ResolvedInvocation:
    """
    Everything a transport needs to issue one completion call.

    Built fresh per request. `assistant_prefill` is sent as the start of the
    assistant turn; providers never echo it back.
    """

    provider_id: ProviderId
    normalized_model: str
    system_blocks: tuple[str, ...]
    user_prompt: str
    assistant_prefill: str
    max_tokens: int = 2000
    temperature: float | None = None

    @property
    def system_text(self) -> str:
        """System blocks flattened for transports that take one system string."""
        return "\n\n".join(self.system_blocks)


@dataclass(frozen=True, slots=True)
class Usage:
    input_tokens: int | None = None
    output_tokens: int | None = None
    total_tokens: int | None = None


@dataclass(frozen=True, slots=True)
class RawCompletion:
    text: str
    stop_reason: StopReason
    latency_ms: int = 0
    content_length: int = 0
    model: str | None = None
    usage: Usage = field(default_factory=Usage)
    raw: dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True, slots=True)
class SessionHandle:
    """
    Per-request correlation handle for session logging.

    Passed explicitly through the call chain; two in-flight requests never
    share one unless the caller hands the same handle to both.
    """

    session_id: str
    started_at: datetime

    @classmethod
    def new(cls) -> "SessionHandle":
        now = datetime.now(timezone.utc)
        session_id = f"{now:%Y%m%dT%H%M%S%f}-{uuid.uuid4().hex[:8]}"
        return cls(session_id=session_id, started_at=now)
