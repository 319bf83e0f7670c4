from __future__ import annotations

import asyncio
import sys
import types

import pytest

from copyreview.errors import RateLimited, UpstreamOverloaded
from copyreview.llms.config import PipelineConfig
from copyreview.llms.transports import (
    AnthropicTransport,
    OpenRouterTransport,
    create_transport,
    register_transport,
    unregister_transport,
)
from copyreview.llms.types import ProviderId, ResolvedInvocation, StopReason


def run_async(coro):
    return asyncio.run(coro)


CONFIG = PipelineConfig(
    anthropic_api_key="sk-ant-test",
    openrouter_api_key="sk-or-test",
    openrouter_app_url="https://copy.example.com",
    openrouter_app_title="copyreview-tests",
)


def _invocation(provider_id: ProviderId, model: str) -> ResolvedInvocation:
    return ResolvedInvocation(
        provider_id=provider_id,
        normalized_model=model,
        system_blocks=("You are a reviewer.", "Best practices."),
        user_prompt="Review this email.",
        assistant_prefill='{"overallScore":',
        max_tokens=2000,
        temperature=0.7,
    )


@pytest.fixture
def fake_anthropic(monkeypatch):
    module = types.ModuleType("anthropic")
    calls: list[dict] = []
    init_kwargs: list[dict] = []

    class _MessagesAPI:
        async def create(self, **kwargs):
            calls.append(kwargs)
            return {
                "model": kwargs["model"],
                "stop_reason": "end_turn",
                "content": [{"type": "text", "text": ' 81, "sections": []}'}],
                "usage": {"input_tokens": 120, "output_tokens": 9},
            }

    class AsyncAnthropic:
        def __init__(self, **kwargs):
            init_kwargs.append(kwargs)
            self.messages = _MessagesAPI()

        async def close(self):
            return None

    module.AsyncAnthropic = AsyncAnthropic
    monkeypatch.setitem(sys.modules, "anthropic", module)
    return {"calls": calls, "init_kwargs": init_kwargs}


@pytest.fixture
def fake_openai(monkeypatch):
    module = types.ModuleType("openai")
    calls: list[dict] = []
    responses: list[dict] = []

    class _CompletionsAPI:
        async def create(self, **kwargs):
            calls.append(kwargs)
            if responses:
                return responses.pop(0)
            return {
                "model": kwargs["model"],
                "choices": [
                    {
                        "finish_reason": "length",
                        "message": {"role": "assistant", "content": ' 55, "sections": ['},
                    }
                ],
                "usage": {"prompt_tokens": 100, "completion_tokens": 2000},
            }

    class _Chat:
        def __init__(self):
            self.completions = _CompletionsAPI()

    class AsyncOpenAI:
        def __init__(self, **kwargs):
            self.kwargs = kwargs
            self.chat = _Chat()

        async def close(self):
            return None

    module.AsyncOpenAI = AsyncOpenAI
    monkeypatch.setitem(sys.modules, "openai", module)
    return {"calls": calls, "responses": responses}


def test_anthropic_sends_system_blocks_and_prefill(fake_anthropic):
    transport = create_transport(ProviderId.PRIMARY, CONFIG)
    assert isinstance(transport, AnthropicTransport)

    completion = run_async(
        transport.send(_invocation(ProviderId.PRIMARY, "claude-sonnet-4-5-20250929"))
    )

    payload = fake_anthropic["calls"][0]
    assert payload["system"] == [
        {"type": "text", "text": "You are a reviewer."},
        {"type": "text", "text": "Best practices."},
    ]
    assert payload["messages"][-1] == {"role": "assistant", "content": '{"overallScore":'}
    assert payload["temperature"] == 0.7
    assert fake_anthropic["init_kwargs"][0]["api_key"] == "sk-ant-test"
    assert fake_anthropic["init_kwargs"][0]["max_retries"] == 0

    assert completion.text == ' 81, "sections": []}'
    assert completion.stop_reason is StopReason.STOP
    assert completion.usage.total_tokens == 129


def test_openrouter_joins_system_and_maps_length_stop(fake_openai):
    transport = create_transport(ProviderId.GATEWAY, CONFIG)
    assert isinstance(transport, OpenRouterTransport)

    completion = run_async(transport.send(_invocation(ProviderId.GATEWAY, "openai/gpt-4o")))

    payload = fake_openai["calls"][0]
    assert payload["model"] == "openai/gpt-4o"
    assert payload["messages"][0] == {
        "role": "system",
        "content": "You are a reviewer.\n\nBest practices.",
    }
    assert payload["messages"][-1]["role"] == "assistant"
    assert payload["extra_headers"] == {
        "HTTP-Referer": "https://copy.example.com",
        "X-Title": "copyreview-tests",
    }
    assert completion.stop_reason is StopReason.MAX_TOKENS
    assert completion.usage.input_tokens == 100


def test_openrouter_in_body_error_is_classified(fake_openai):
    fake_openai["responses"].append({"error": {"code": 429, "message": "Rate limited upstream"}})
    transport = create_transport(ProviderId.GATEWAY, CONFIG)

    with pytest.raises(RateLimited):
        run_async(transport.send(_invocation(ProviderId.GATEWAY, "openai/gpt-4o")))


def test_openrouter_empty_choices_is_overload(fake_openai):
    fake_openai["responses"].append({"choices": []})
    transport = create_transport(ProviderId.GATEWAY, CONFIG)

    with pytest.raises(UpstreamOverloaded):
        run_async(transport.send(_invocation(ProviderId.GATEWAY, "openai/gpt-4o")))


def test_registered_factory_overrides_builtin():
    sentinel = object()
    register_transport(ProviderId.PRIMARY, lambda cfg: sentinel)
    try:
        assert create_transport(ProviderId.PRIMARY, CONFIG) is sentinel
        with pytest.raises(ValueError):
            register_transport(ProviderId.PRIMARY, lambda cfg: sentinel)
    finally:
        unregister_transport(ProviderId.PRIMARY)
