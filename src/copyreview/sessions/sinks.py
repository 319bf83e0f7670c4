from __future__ import annotations

"""
MIT License
Copyright (c) 2026 socioy
See LICENSE file for full license text.

Session log sinks. The pipeline hands each finished call to a sink in the
background; sinks never feed anything back into the response path.
"""

import asyncio
import json
import logging
from collections import OrderedDict
from pathlib import Path
from typing import Protocol

from ..llms.config import PipelineConfig
from ..llms.types import SessionHandle, TaskKind
from ..prompts.assembler import BODY_LABEL, SUBJECT_LABEL, extract_delimited
from .models import CallRecord, SessionRecord

logger = logging.getLogger(__name__)


class SessionLogSink(Protocol):
    async def record(
        self,
        task_kind: TaskKind,
        session: SessionHandle,
        call: CallRecord,
    ) -> None:
        ...


class NullSessionLogSink:
    """Discards every record."""

    async def record(
        self,
        task_kind: TaskKind,
        session: SessionHandle,
        call: CallRecord,
    ) -> None:
        return None


class InMemorySessionLogSink:
    """Process-local sink for development and tests."""

    def __init__(self) -> None:
        self._lock = asyncio.Lock()
        self._sessions: dict[str, SessionRecord] = {}

    async def record(
        self,
        task_kind: TaskKind,
        session: SessionHandle,
        call: CallRecord,
    ) -> None:
        async with self._lock:
            record = self._sessions.get(session.session_id)
            if record is None:
                record = SessionRecord.for_handle(session)
                self._sessions[session.session_id] = record
            record.attach(call)

    async def get(self, session_id: str) -> SessionRecord | None:
        async with self._lock:
            return self._sessions.get(session_id)

    async def list_sessions(self) -> list[SessionRecord]:
        async with self._lock:
            return sorted(self._sessions.values(), key=lambda r: r.started_at)


class FileSessionLogSink:
    """
    Writes one JSON document per session under `log_dir`, and a Markdown
    summary once the session is complete.

    Prompts are left out of the JSON unless `include_prompts` is set. At most
    `max_open_sessions` incomplete sessions are kept in memory; an evicted
    session is read back from its JSON file when its next call arrives.
    """

    def __init__(
        self,
        log_dir: str | Path,
        *,
        include_prompts: bool = True,
        max_open_sessions: int = 128,
    ) -> None:
        if max_open_sessions < 1:
            raise ValueError("max_open_sessions must be >= 1")
        self.log_dir = Path(log_dir)
        self.include_prompts = include_prompts
        self.max_open_sessions = max_open_sessions
        self._lock = asyncio.Lock()
        self._sessions: OrderedDict[str, SessionRecord] = OrderedDict()

    @property
    def open_session_count(self) -> int:
        return len(self._sessions)

    def session_path(self, session_id: str) -> Path:
        return self.log_dir / f"session-{session_id}.json"

    def summary_path(self, session_id: str) -> Path:
        return self.log_dir / f"session-{session_id}-summary.md"

    async def record(
        self,
        task_kind: TaskKind,
        session: SessionHandle,
        call: CallRecord,
    ) -> None:
        async with self._lock:
            record = self._sessions.pop(session.session_id, None)
            if record is None:
                record = await asyncio.to_thread(self._load, session)
            record.attach(call)

            document = json.dumps(
                record.to_dict(include_prompts=self.include_prompts),
                indent=2,
                ensure_ascii=False,
            )
            await asyncio.to_thread(self._write, self.session_path(record.session_id), document)

            if record.is_complete:
                summary = render_summary(record)
                await asyncio.to_thread(self._write, self.summary_path(record.session_id), summary)
            else:
                self._sessions[record.session_id] = record
                while len(self._sessions) > self.max_open_sessions:
                    self._sessions.popitem(last=False)

    def _load(self, session: SessionHandle) -> SessionRecord:
        path = self.session_path(session.session_id)
        if not path.exists():
            return SessionRecord.for_handle(session)
        try:
            return SessionRecord.from_dict(json.loads(path.read_text(encoding="utf-8")))
        except (OSError, ValueError, KeyError):
            logger.warning("Could not reload session log %s; starting it over", path, exc_info=True)
            return SessionRecord.for_handle(session)

    def _write(self, path: Path, content: str) -> None:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content, encoding="utf-8")


def render_summary(record: SessionRecord) -> str:
    """Markdown digest of a complete session."""
    lines = [
        f"# Session {record.session_id}",
        "",
        f"Started: {record.started_at.isoformat()}",
        "",
    ]

    first = record.combined or record.review or record.improve
    if first is not None:
        subject = extract_delimited(first.user_text, SUBJECT_LABEL)
        body = extract_delimited(first.user_text, BODY_LABEL)
        if subject is not None or body is not None:
            lines += ["## Original", "", f"**Subject:** {subject or ''}", "", body or "", ""]

    for label, call in (
        ("Review", record.review),
        ("Improve", record.improve),
        ("Analyze and improve", record.combined),
    ):
        if call is None:
            continue
        lines += [
            f"## {label}",
            "",
            f"- Model: {call.model} ({call.provider_id})",
            f"- Latency: {call.latency_ms}ms",
            f"- Stop reason: {call.stop_reason}",
            f"- Response length: {call.content_length} chars",
        ]
        if call.degraded:
            lines.append("- Degraded: fallback result")
        result = call.parsed_result or {}
        if "overallScore" in result:
            lines.append(f"- Score: {result['overallScore']}/100")
        if "improvedSubject" in result:
            lines += ["", f"**Improved subject:** {result['improvedSubject']}", ""]
            lines.append(str(result.get("improvedBody", "")))
        lines.append("")

    return "\n".join(lines)


def create_session_sink(config: PipelineConfig) -> SessionLogSink:
    """File sink when file logging is enabled, otherwise a no-op sink."""
    if config.enable_file_logging:
        return FileSessionLogSink(config.log_dir, include_prompts=config.log_detailed_prompts)
    return NullSessionLogSink()
