from __future__ import annotations

"""
Typed observability primitives for completion lifecycle events.
"""

from dataclasses import dataclass
from typing import Awaitable, Literal, Protocol

from .types import Usage


CompletionLifecycleEventType = Literal[
    "request_start",
    "retry",
    "request_success",
    "request_error",
]


@dataclass(frozen=True, slots=True)
class CompletionLifecycleEvent:
    """
    One normalized lifecycle event emitted by the completion invoker.

    Observer callbacks are best-effort only; their failures never reach the caller.
    """

    event_type: CompletionLifecycleEventType
    request_id: str
    provider_id: str
    model: str | None = None
    attempt: int | None = None
    latency_ms: float | None = None
    usage: Usage | None = None
    stop_reason: str | None = None
    error_class: str | None = None
    error_message: str | None = None


class CompletionObserver(Protocol):
    """Observer callback protocol used by the completion invoker."""

    def __call__(self, event: CompletionLifecycleEvent) -> None | Awaitable[None]:
        ...

