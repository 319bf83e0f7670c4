from __future__ import annotations

"""
Primary-provider transport over the Anthropic Messages API.

System instructions go out as separate text blocks; the prefill is sent as
the opening of the assistant turn so the model continues the JSON object.
"""

from typing import Any

from ...errors import ConfigurationError
from ..types import ProviderId, RawCompletion, ResolvedInvocation
from .base import CompletionTransport
from .shared import extract_text_from_content, extract_usage, map_stop_reason, to_plain_dict

_STOP = {"end_turn", "stop_sequence"}
_MAX_TOKENS = {"max_tokens"}


class AnthropicTransport(CompletionTransport):
    """Concrete transport using `anthropic.AsyncAnthropic`."""

    _client: Any = None

    @property
    def provider_id(self) -> ProviderId:
        return ProviderId.PRIMARY

    async def send(self, invocation: ResolvedInvocation) -> RawCompletion:
        client = self._build_client()
        raw = await client.messages.create(**self.build_payload(invocation))
        return self.normalize_response(raw, invocation)

    def build_payload(self, invocation: ResolvedInvocation) -> dict[str, Any]:
        messages: list[dict[str, Any]] = [
            {"role": "user", "content": invocation.user_prompt},
        ]
        if invocation.assistant_prefill:
            messages.append({"role": "assistant", "content": invocation.assistant_prefill})

        payload: dict[str, Any] = {
            "model": invocation.normalized_model,
            "max_tokens": invocation.max_tokens,
            "system": [
                {"type": "text", "text": block}
                for block in invocation.system_blocks
                if block
            ],
            "messages": messages,
        }
        if invocation.temperature is not None:
            payload["temperature"] = invocation.temperature
        return payload

    def normalize_response(self, raw: Any, invocation: ResolvedInvocation) -> RawCompletion:
        raw_dict = to_plain_dict(raw)
        text = extract_text_from_content(raw_dict.get("content"))
        model = raw_dict.get("model")
        return RawCompletion(
            text=text,
            stop_reason=map_stop_reason(
                raw_dict.get("stop_reason"), stop=_STOP, max_tokens=_MAX_TOKENS
            ),
            content_length=len(text),
            model=model if isinstance(model, str) else invocation.normalized_model,
            usage=extract_usage(raw_dict),
            raw=raw_dict,
        )

    async def aclose(self) -> None:
        client, self._client = self._client, None
        if client is not None and hasattr(client, "close"):
            await client.close()

    def _build_client(self) -> Any:
        """Construct (once) the AsyncAnthropic client from provider config."""
        if self._client is not None:
            return self._client
        try:
            from anthropic import AsyncAnthropic
        except Exception as e:  # pragma: no cover - environment dependent
            raise ConfigurationError(
                "anthropic package is not installed. Install it with: pip install anthropic"
            ) from e

        kwargs: dict[str, Any] = {
            "api_key": self.config.api_key,
            "timeout": self.config.request_timeout_s,
            "max_retries": 0,
        }
        if self.config.base_endpoint:
            kwargs["base_url"] = self.config.base_endpoint

        self._client = AsyncAnthropic(**kwargs)
        return self._client
