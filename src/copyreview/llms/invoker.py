from __future__ import annotations

"""
MIT License
Copyright (c) 2026 socioy
See LICENSE file for full license text.
"""

import asyncio
import inspect
import logging
import time
import uuid
from dataclasses import replace
from typing import Any, Awaitable, Callable, Mapping, TypeVar, cast

from ..errors import CopyReviewError, RetryableUpstreamError, TruncatedOutput
from .classify import classify_error
from .config import PipelineConfig
from .observability import CompletionLifecycleEvent, CompletionObserver
from .transports.base import CompletionTransport
from .transports.factory import create_transport
from .types import ProviderId, RawCompletion, ResolvedInvocation, StopReason, Usage
from .utils import backoff_delay, clamp_str

ReturnT = TypeVar("ReturnT")

logger = logging.getLogger(__name__)


class CompletionInvoker:
    """
    Issues one completion call through the provider's transport.

    Applies the timeout, optional retries for transient failures, latency
    measurement, error classification and the truncation check. Every
    provider goes through this one flow; only `CompletionTransport.send`
    differs.
    """

    def __init__(
        self,
        config: PipelineConfig | None = None,
        *,
        transports: Mapping[ProviderId, CompletionTransport] | None = None,
        observers: list[CompletionObserver] | None = None,
    ) -> None:
        self.config = config or PipelineConfig.from_env()
        self._transports: dict[ProviderId, CompletionTransport] = dict(transports or {})
        self._observers = list(observers or [])

    def transport_for(self, provider_id: ProviderId) -> CompletionTransport:
        transport = self._transports.get(provider_id)
        if transport is None:
            transport = create_transport(provider_id, self.config)
            self._transports[provider_id] = transport
        return transport

    async def invoke(
        self,
        invocation: ResolvedInvocation,
        *,
        request_id: str | None = None,
    ) -> RawCompletion:
        """
        Execute one completion and return the normalized raw text.

        Raises a typed `CopyReviewError` for every failure, including
        `TruncatedOutput` when the provider stopped on the token budget.
        """
        transport = self.transport_for(invocation.provider_id)
        request_id = request_id or uuid.uuid4().hex
        timeout = self.config.timeout_s

        async def _provider_call() -> RawCompletion:
            started_at = time.monotonic()
            if timeout is None:
                completion = await transport.send(invocation)
            else:
                completion = await asyncio.wait_for(
                    transport.send(invocation),
                    timeout=timeout,
                )
            latency_ms = int((time.monotonic() - started_at) * 1000)
            return replace(
                completion,
                latency_ms=latency_ms,
                content_length=completion.content_length or len(completion.text),
            )

        completion = await self._call_with_retries(
            _provider_call,
            request_id=request_id,
            provider_id=invocation.provider_id,
            model=invocation.normalized_model,
            max_retries=self.config.max_retries,
        )

        logger.info(
            "Completion %s from %s/%s: %d chars in %dms (stop=%s)",
            request_id,
            invocation.provider_id.value,
            completion.model or invocation.normalized_model,
            completion.content_length,
            completion.latency_ms,
            completion.stop_reason.value,
        )

        if completion.stop_reason is StopReason.MAX_TOKENS:
            raise TruncatedOutput(
                f"Completion hit the max_tokens limit ({invocation.max_tokens}) "
                f"after {completion.content_length} chars; output is truncated",
                raw_text=completion.text,
            )
        return completion

    async def aclose(self) -> None:
        for transport in self._transports.values():
            await transport.aclose()

    async def _call_with_retries(
        self,
        fn: Callable[[], Awaitable[ReturnT]],
        *,
        request_id: str,
        provider_id: ProviderId,
        model: str | None,
        max_retries: int | None = None,
    ) -> ReturnT:
        """Execute a callable with retry-on-transient-error semantics."""
        retries = self.config.max_retries if max_retries is None else max_retries

        await self._emit_lifecycle_event(
            event_type="request_start",
            request_id=request_id,
            provider_id=provider_id,
            model=model,
            attempt=1,
        )

        attempt = 0
        while True:
            started_at = time.monotonic()
            try:
                result = await fn()
            except Exception as e:
                classified = classify_error(e)
                latency_ms = (time.monotonic() - started_at) * 1000.0

                retryable = isinstance(classified, RetryableUpstreamError)
                if retryable and attempt < retries:
                    delay = backoff_delay(
                        attempt,
                        self.config.backoff_base_s,
                        self.config.backoff_jitter_s,
                    )
                    logger.warning(
                        "Completion %s attempt %d failed (%s); retrying in %.2fs",
                        request_id,
                        attempt + 1,
                        type(classified).__name__,
                        delay,
                    )
                    await self._emit_lifecycle_event(
                        event_type="retry",
                        request_id=request_id,
                        provider_id=provider_id,
                        model=model,
                        attempt=attempt + 1,
                        latency_ms=latency_ms,
                        error=classified,
                    )
                    await asyncio.sleep(delay)
                    attempt += 1
                    continue

                await self._emit_lifecycle_event(
                    event_type="request_error",
                    request_id=request_id,
                    provider_id=provider_id,
                    model=model,
                    attempt=attempt + 1,
                    latency_ms=latency_ms,
                    error=classified,
                )
                if classified is e:
                    raise
                raise classified from e

            latency_ms = (time.monotonic() - started_at) * 1000.0
            await self._emit_lifecycle_event(
                event_type="request_success",
                request_id=request_id,
                provider_id=provider_id,
                model=model,
                attempt=attempt + 1,
                latency_ms=latency_ms,
                usage=result.usage if isinstance(result, RawCompletion) else None,
                stop_reason=(
                    result.stop_reason.value if isinstance(result, RawCompletion) else None
                ),
            )
            return result

    async def _emit_lifecycle_event(
        self,
        *,
        event_type: str,
        request_id: str,
        provider_id: ProviderId,
        model: str | None,
        attempt: int | None = None,
        latency_ms: float | None = None,
        usage: Usage | None = None,
        stop_reason: str | None = None,
        error: CopyReviewError | None = None,
    ) -> None:
        """Emit one lifecycle event to observers, swallowing observer failures."""
        if not self._observers:
            return

        event = CompletionLifecycleEvent(
            event_type=cast(Any, event_type),
            request_id=request_id,
            provider_id=provider_id.value,
            model=model,
            attempt=attempt,
            latency_ms=latency_ms,
            usage=usage,
            stop_reason=stop_reason,
            error_class=type(error).__name__ if error is not None else None,
            error_message=clamp_str(str(error), 500) if error is not None else None,
        )

        for observer in self._observers:
            try:
                result = observer(event)
                if inspect.isawaitable(result):
                    await cast(Awaitable[Any], result)
            except Exception:
                logger.debug("Lifecycle observer failed", exc_info=True)
                continue
