from __future__ import annotations

"""
MIT License
Copyright (c) 2026 socioy
See LICENSE file for full license text.

End-to-end completion ingestion: resolve the provider, assemble the prompt,
invoke the model, recover and validate the JSON result, and hand the call to
the session log sink in the background.
"""

import asyncio
import logging
from typing import Any, cast

from ..errors import CopyReviewError, InvalidResultShape, UnparsableCompletion
from ..ingest.recovery import recover
from ..ingest.results import CombinedResult, ImproveResult, ReviewResult, fallback_review
from ..ingest.validation import validate
from ..llms.config import PipelineConfig
from ..llms.invoker import CompletionInvoker
from ..llms.observability import CompletionObserver
from ..llms.routing import normalize_model, resolve_provider
from ..llms.types import (
    CompletionRequest,
    RawCompletion,
    ResolvedInvocation,
    SessionHandle,
    TaskKind,
)
from ..llms.utils import run_sync
from ..prompts.assembler import build_prompt
from ..prompts.knowledge import KnowledgeBase, StaticKnowledgeBase
from ..sessions.models import CallRecord
from ..sessions.sinks import SessionLogSink, create_session_sink
from .outcome import TaskFailure, TaskOutcome, TaskSuccess

logger = logging.getLogger(__name__)

TaskResultType = ReviewResult | ImproveResult | CombinedResult


class CopyPipeline:
    """
    Runs review, improve and combined tasks against the configured provider.

    Each call is independent: the only state shared between requests is the
    configuration, the transports and the log sink. Callers that want review
    and improve logged as one session pass the same `SessionHandle` to both.
    """

    def __init__(
        self,
        config: PipelineConfig | None = None,
        *,
        invoker: CompletionInvoker | None = None,
        knowledge: KnowledgeBase | None = None,
        sink: SessionLogSink | None = None,
        observers: list[CompletionObserver] | None = None,
        check_credentials: bool = True,
    ) -> None:
        self.config = config or PipelineConfig.from_env()
        self.invoker = invoker or CompletionInvoker(self.config, observers=observers)
        self.knowledge = knowledge or StaticKnowledgeBase()
        self.sink = sink if sink is not None else create_session_sink(self.config)
        self._pending: set[asyncio.Task[None]] = set()

        if check_credentials:
            # Misconfiguration surfaces at startup rather than on first request.
            provider_id = resolve_provider(self.config)
            logger.info(
                "Copy pipeline ready: provider=%s model=%s",
                provider_id.value,
                normalize_model(None, provider_id, self.config),
            )

    async def run_task(
        self,
        task_kind: TaskKind,
        subject: str,
        body: str,
        *,
        model_hint: str | None = None,
        prior_review: ReviewResult | None = None,
        session: SessionHandle | None = None,
    ) -> TaskResultType:
        """
        Run one task end to end and return its validated result.

        Raises a `CopyReviewError` subclass on failure. An unparsable Review
        completion degrades to a fallback result when `review_fallback` is on;
        every other parse or shape failure is raised.
        """
        session = session or SessionHandle.new()

        provider_id = resolve_provider(self.config, model_hint)
        model = normalize_model(model_hint, provider_id, self.config)
        parts = build_prompt(task_kind, subject, body, prior_review, self.knowledge)
        generation = self.config.generation_for(task_kind)

        invocation = ResolvedInvocation(
            provider_id=provider_id,
            normalized_model=model,
            system_blocks=parts.system_blocks,
            user_prompt=parts.user_prompt,
            assistant_prefill=parts.assistant_prefill,
            max_tokens=generation.max_tokens,
            temperature=generation.temperature,
        )

        if self.config.log_detailed_prompts:
            logger.debug(
                "Prompt for %s (%s):\n%s\n---\n%s",
                task_kind.value,
                session.session_id,
                invocation.system_text,
                invocation.user_prompt,
            )

        completion = await self.invoker.invoke(
            invocation,
            request_id=f"{session.session_id}:{task_kind.value}",
        )

        try:
            result = self._ingest(task_kind, completion, parts.assistant_prefill)
        except (UnparsableCompletion, InvalidResultShape):
            self._schedule_record(task_kind, session, invocation, completion, None)
            raise

        self._schedule_record(task_kind, session, invocation, completion, result)
        return result

    async def submit(
        self,
        request: CompletionRequest,
        *,
        session: SessionHandle | None = None,
    ) -> TaskResultType:
        return await self.run_task(
            request.task_kind,
            request.subject,
            request.body,
            model_hint=request.model_hint,
            prior_review=request.prior_review,
            session=session,
        )

    async def review(
        self,
        subject: str,
        body: str,
        *,
        model_hint: str | None = None,
        session: SessionHandle | None = None,
    ) -> ReviewResult:
        result = await self.run_task(
            TaskKind.REVIEW, subject, body, model_hint=model_hint, session=session
        )
        return cast(ReviewResult, result)

    async def improve(
        self,
        subject: str,
        body: str,
        prior_review: ReviewResult | None = None,
        *,
        model_hint: str | None = None,
        session: SessionHandle | None = None,
    ) -> ImproveResult:
        result = await self.run_task(
            TaskKind.IMPROVE,
            subject,
            body,
            model_hint=model_hint,
            prior_review=prior_review,
            session=session,
        )
        return cast(ImproveResult, result)

    async def analyze_and_improve(
        self,
        subject: str,
        body: str,
        *,
        model_hint: str | None = None,
        session: SessionHandle | None = None,
    ) -> CombinedResult:
        result = await self.run_task(
            TaskKind.ANALYZE_AND_IMPROVE,
            subject,
            body,
            model_hint=model_hint,
            session=session,
        )
        return cast(CombinedResult, result)

    async def attempt_task(
        self,
        task_kind: TaskKind,
        subject: str,
        body: str,
        **kwargs: Any,
    ) -> TaskOutcome:
        """Same as `run_task`, but returns pipeline failures as a `TaskFailure`."""
        session = kwargs.pop("session", None) or SessionHandle.new()
        try:
            result = await self.run_task(task_kind, subject, body, session=session, **kwargs)
        except CopyReviewError as e:
            logger.warning(
                "Task %s failed for session %s: %s (%s)",
                task_kind.value,
                session.session_id,
                e,
                e.kind.value,
            )
            return TaskFailure(error=e, session=session)
        return TaskSuccess(result=result, session=session)

    def run_task_sync(
        self,
        task_kind: TaskKind,
        subject: str,
        body: str,
        **kwargs: Any,
    ) -> TaskResultType:
        """Blocking wrapper around `run_task` for scripts; waits for log writes."""

        async def _run() -> TaskResultType:
            try:
                return await self.run_task(task_kind, subject, body, **kwargs)
            finally:
                await self.drain()
                await self.invoker.aclose()

        return run_sync(_run())

    async def drain(self) -> None:
        """Wait for in-flight session log writes."""
        while self._pending:
            pending = list(self._pending)
            await asyncio.gather(*pending, return_exceptions=True)
            self._pending.difference_update(pending)

    async def aclose(self) -> None:
        await self.drain()
        await self.invoker.aclose()

    def _ingest(
        self,
        task_kind: TaskKind,
        completion: RawCompletion,
        assistant_prefill: str,
    ) -> TaskResultType:
        try:
            document = recover(completion.text, assistant_prefill)
        except UnparsableCompletion as e:
            if task_kind is not TaskKind.REVIEW or not self.config.review_fallback:
                raise
            logger.warning(
                "Review completion could not be parsed (offset=%s); returning fallback review",
                e.offset,
            )
            return fallback_review(completion.text)
        return validate(task_kind, document)

    def _schedule_record(
        self,
        task_kind: TaskKind,
        session: SessionHandle,
        invocation: ResolvedInvocation,
        completion: RawCompletion,
        result: TaskResultType | None,
    ) -> None:
        call = CallRecord(
            task_kind=task_kind,
            system_text=invocation.system_text,
            user_text=invocation.user_prompt,
            raw_response=completion.text,
            parsed_result=result.to_json_dict() if result is not None else None,
            model=completion.model or invocation.normalized_model,
            provider_id=invocation.provider_id.value,
            latency_ms=completion.latency_ms,
            stop_reason=completion.stop_reason.value,
            content_length=completion.content_length,
            degraded=bool(getattr(result, "degraded", False)),
        )
        task = asyncio.create_task(self._safe_record(task_kind, session, call))
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)

    async def _safe_record(
        self,
        task_kind: TaskKind,
        session: SessionHandle,
        call: CallRecord,
    ) -> None:
        try:
            await self.sink.record(task_kind, session, call)
        except Exception:
            logger.warning(
                "Session log sink failed for %s (%s)",
                session.session_id,
                task_kind.value,
                exc_info=True,
            )
