from __future__ import annotations

"""
Gateway transport over OpenRouter's OpenAI-compatible chat completions API.

The gateway takes a single system message, so system blocks are joined with
blank lines. The reply's choice-list wrapper is unwrapped into the same
`RawCompletion` the primary transport produces.
"""

from typing import Any

from ...errors import ConfigurationError, UpstreamOverloaded
from ..classify import error_for_status
from ..config import ProviderConfig
from ..types import ProviderId, RawCompletion, ResolvedInvocation
from .base import CompletionTransport
from .shared import extract_text_from_content, extract_usage, map_stop_reason, to_plain_dict

_STOP = {"stop", "end_turn", "stop_sequence"}
_MAX_TOKENS = {"length", "max_tokens"}


class OpenRouterTransport(CompletionTransport):
    """Concrete transport using `openai.AsyncOpenAI` pointed at OpenRouter."""

    _client: Any = None

    def __init__(
        self,
        config: ProviderConfig,
        *,
        app_url: str | None = None,
        app_title: str | None = None,
    ) -> None:
        super().__init__(config)
        self.app_url = app_url
        self.app_title = app_title

    @property
    def provider_id(self) -> ProviderId:
        return ProviderId.GATEWAY

    async def send(self, invocation: ResolvedInvocation) -> RawCompletion:
        client = self._build_client()
        raw = await client.chat.completions.create(**self.build_payload(invocation))
        return self.normalize_response(raw, invocation)

    def build_payload(self, invocation: ResolvedInvocation) -> dict[str, Any]:
        messages: list[dict[str, Any]] = []
        if invocation.system_text:
            messages.append({"role": "system", "content": invocation.system_text})
        messages.append({"role": "user", "content": invocation.user_prompt})
        if invocation.assistant_prefill:
            messages.append({"role": "assistant", "content": invocation.assistant_prefill})

        payload: dict[str, Any] = {
            "model": invocation.normalized_model,
            "max_tokens": invocation.max_tokens,
            "messages": messages,
        }
        if invocation.temperature is not None:
            payload["temperature"] = invocation.temperature

        headers: dict[str, str] = {}
        if self.app_url:
            headers["HTTP-Referer"] = self.app_url
        if self.app_title:
            headers["X-Title"] = self.app_title
        if headers:
            payload["extra_headers"] = headers
        return payload

    def normalize_response(self, raw: Any, invocation: ResolvedInvocation) -> RawCompletion:
        raw_dict = to_plain_dict(raw)
        choices = raw_dict.get("choices")
        if not isinstance(choices, list) or not choices:
            # OpenRouter reports some upstream failures as a 200 with an error body.
            error = raw_dict.get("error")
            if isinstance(error, dict):
                message = str(error.get("message") or "gateway returned an error")
                code = error.get("code")
                if isinstance(code, int) and not isinstance(code, bool):
                    raise error_for_status(code, message)
                raise UpstreamOverloaded(message)
            raise UpstreamOverloaded("gateway response contained no choices")

        choice = to_plain_dict(choices[0])
        message = to_plain_dict(choice.get("message"))
        text = extract_text_from_content(message.get("content"))
        model = raw_dict.get("model")
        return RawCompletion(
            text=text,
            stop_reason=map_stop_reason(
                choice.get("finish_reason"), stop=_STOP, max_tokens=_MAX_TOKENS
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
        """Construct (once) the AsyncOpenAI client from provider config."""
        if self._client is not None:
            return self._client
        try:
            from openai import AsyncOpenAI
        except Exception as e:  # pragma: no cover - environment dependent
            raise ConfigurationError(
                "openai package is not installed. Install it with: pip install openai"
            ) from e

        kwargs: dict[str, Any] = {
            "api_key": self.config.api_key,
            "timeout": self.config.request_timeout_s,
            "max_retries": 0,
        }
        if self.config.base_endpoint:
            kwargs["base_url"] = self.config.base_endpoint

        self._client = AsyncOpenAI(**kwargs)
        return self._client
