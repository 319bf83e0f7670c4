from __future__ import annotations

import asyncio

import pytest

from copyreview.errors import (
    InvalidCredentials,
    RateLimited,
    TruncatedOutput,
    UpstreamOverloaded,
    UpstreamTimeout,
)
from copyreview.llms.config import PipelineConfig
from copyreview.llms.invoker import CompletionInvoker
from copyreview.llms.transports.base import CompletionTransport
from copyreview.llms.types import (
    ProviderId,
    RawCompletion,
    ResolvedInvocation,
    StopReason,
    Usage,
)


def run_async(coro):
    return asyncio.run(coro)


class _StatusError(Exception):
    def __init__(self, message: str, status_code: int) -> None:
        super().__init__(message)
        self.status_code = status_code


class ScriptedTransport(CompletionTransport):
    """Plays back a list of completions or exceptions, one per send."""

    def __init__(self, script, *, delay_s: float = 0.0) -> None:
        super().__init__(PipelineConfig().provider_config(ProviderId.PRIMARY))
        self.script = list(script)
        self.delay_s = delay_s
        self.calls: list[ResolvedInvocation] = []

    @property
    def provider_id(self) -> ProviderId:
        return ProviderId.PRIMARY

    async def send(self, invocation: ResolvedInvocation) -> RawCompletion:
        self.calls.append(invocation)
        if self.delay_s:
            await asyncio.sleep(self.delay_s)
        item = self.script.pop(0)
        if isinstance(item, BaseException):
            raise item
        return item


def _invocation() -> ResolvedInvocation:
    return ResolvedInvocation(
        provider_id=ProviderId.PRIMARY,
        normalized_model="claude-sonnet-4-5-20250929",
        system_blocks=("role",),
        user_prompt="review this",
        assistant_prefill='{"overallScore":',
    )


def _ok(text: str = ' 80, "sections": []}') -> RawCompletion:
    return RawCompletion(
        text=text,
        stop_reason=StopReason.STOP,
        usage=Usage(input_tokens=10, output_tokens=5, total_tokens=15),
    )


def _invoker(transport, *, observers=None, **config_overrides) -> CompletionInvoker:
    config = PipelineConfig(backoff_base_s=0.0, backoff_jitter_s=0.0, **config_overrides)
    return CompletionInvoker(
        config,
        transports={ProviderId.PRIMARY: transport},
        observers=observers,
    )


def test_invoke_measures_latency_and_length():
    transport = ScriptedTransport([_ok()])

    completion = run_async(_invoker(transport).invoke(_invocation()))

    assert completion.text == ' 80, "sections": []}'
    assert completion.content_length == len(completion.text)
    assert completion.latency_ms >= 0
    assert len(transport.calls) == 1


def test_max_tokens_stop_is_truncation_even_when_text_parses():
    text = ' 80, "sections": []}'
    transport = ScriptedTransport([RawCompletion(text=text, stop_reason=StopReason.MAX_TOKENS)])

    with pytest.raises(TruncatedOutput) as exc_info:
        run_async(_invoker(transport).invoke(_invocation()))

    assert exc_info.value.raw_text == text
    assert exc_info.value.retryable is False


def test_timeout_is_classified():
    transport = ScriptedTransport([_ok()], delay_s=0.5)

    with pytest.raises(UpstreamTimeout):
        run_async(_invoker(transport, timeout_s=0.01).invoke(_invocation()))


@pytest.mark.parametrize(
    ("status", "expected"),
    [(401, InvalidCredentials), (429, RateLimited), (529, UpstreamOverloaded)],
)
def test_sdk_status_errors_are_classified(status, expected):
    transport = ScriptedTransport([_StatusError("upstream said no", status)])

    with pytest.raises(expected) as exc_info:
        run_async(_invoker(transport).invoke(_invocation()))

    assert exc_info.value.status == status


def test_transient_errors_are_retried_when_enabled():
    transport = ScriptedTransport([_StatusError("slow down", 429), _ok()])
    events = []

    invoker = _invoker(transport, observers=[events.append], max_retries=1)
    completion = run_async(invoker.invoke(_invocation(), request_id="req-1"))

    assert completion.stop_reason is StopReason.STOP
    assert len(transport.calls) == 2
    assert [e.event_type for e in events] == ["request_start", "retry", "request_success"]
    assert all(e.request_id == "req-1" for e in events)
    assert events[-1].usage is not None and events[-1].usage.total_tokens == 15


def test_no_retry_by_default():
    transport = ScriptedTransport([_StatusError("slow down", 429), _ok()])

    with pytest.raises(RateLimited):
        run_async(_invoker(transport).invoke(_invocation()))

    assert len(transport.calls) == 1


def test_non_transient_errors_are_not_retried():
    transport = ScriptedTransport([_StatusError("bad key", 401), _ok()])

    with pytest.raises(InvalidCredentials):
        run_async(_invoker(transport, max_retries=3).invoke(_invocation()))

    assert len(transport.calls) == 1


def test_failing_observer_does_not_break_the_call():
    def _boom(event):
        raise RuntimeError("observer down")

    transport = ScriptedTransport([_ok()])
    invoker = CompletionInvoker(
        PipelineConfig(),
        transports={ProviderId.PRIMARY: transport},
        observers=[_boom],
    )

    completion = run_async(invoker.invoke(_invocation()))

    assert completion.stop_reason is StopReason.STOP
