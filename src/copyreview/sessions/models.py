from __future__ import annotations

"""
Session log data owned by the log sinks.
"""

from dataclasses import asdict, dataclass, field
from datetime import datetime, timezone
from typing import Any

from ..llms.types import JSONObject, SessionHandle, TaskKind


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True, slots=True)
class CallRecord:
    """One logged completion call: prompts, raw text, parsed result and timing."""

    task_kind: TaskKind
    system_text: str
    user_text: str
    raw_response: str
    parsed_result: JSONObject | None
    model: str
    provider_id: str
    latency_ms: int
    stop_reason: str
    content_length: int
    degraded: bool = False
    recorded_at: datetime = field(default_factory=utc_now)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "CallRecord":
        """Rebuild a record written by `to_dict`; omitted prompts come back empty."""
        return cls(
            task_kind=TaskKind(data["task_kind"]),
            system_text=data.get("system_text", ""),
            user_text=data.get("user_text", ""),
            raw_response=data.get("raw_response", ""),
            parsed_result=data.get("parsed_result"),
            model=data.get("model", ""),
            provider_id=data.get("provider_id", ""),
            latency_ms=int(data.get("latency_ms", 0)),
            stop_reason=data.get("stop_reason", ""),
            content_length=int(data.get("content_length", 0)),
            degraded=bool(data.get("degraded", False)),
            recorded_at=datetime.fromisoformat(data["recorded_at"]),
        )

    def to_dict(self, *, include_prompts: bool = True) -> dict[str, Any]:
        data = asdict(self)
        data["task_kind"] = self.task_kind.value
        data["recorded_at"] = self.recorded_at.isoformat()
        if not include_prompts:
            data.pop("system_text")
            data.pop("user_text")
        return data


@dataclass(slots=True)
class SessionRecord:
    session_id: str
    started_at: datetime
    review: CallRecord | None = None
    improve: CallRecord | None = None
    combined: CallRecord | None = None

    @classmethod
    def for_handle(cls, session: SessionHandle) -> "SessionRecord":
        return cls(session_id=session.session_id, started_at=session.started_at)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "SessionRecord":
        def _call(raw: Any) -> CallRecord | None:
            return CallRecord.from_dict(raw) if isinstance(raw, dict) else None

        return cls(
            session_id=data["session_id"],
            started_at=datetime.fromisoformat(data["started_at"]),
            review=_call(data.get("review")),
            improve=_call(data.get("improve")),
            combined=_call(data.get("combined")),
        )

    def attach(self, call: CallRecord) -> None:
        if call.task_kind is TaskKind.REVIEW:
            self.review = call
        elif call.task_kind is TaskKind.IMPROVE:
            self.improve = call
        else:
            self.combined = call

    @property
    def is_complete(self) -> bool:
        """True once the session holds both halves (or one combined call)."""
        return self.combined is not None or (
            self.review is not None and self.improve is not None
        )

    def to_dict(self, *, include_prompts: bool = True) -> dict[str, Any]:
        def _call(call: CallRecord | None) -> dict[str, Any] | None:
            return call.to_dict(include_prompts=include_prompts) if call else None

        return {
            "session_id": self.session_id,
            "started_at": self.started_at.isoformat(),
            "review": _call(self.review),
            "improve": _call(self.improve),
            "combined": _call(self.combined),
        }
