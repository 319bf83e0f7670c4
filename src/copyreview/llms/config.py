from __future__ import annotations

"""
MIT License
Copyright (c) 2026 socioy
See LICENSE file for full license text.
"""

import os
from dataclasses import dataclass
from typing import Callable, TypeVar

from ..errors import ConfigurationError
from .types import ProviderId, TaskKind

DEFAULT_ANTHROPIC_BASE_URL = "https://api.anthropic.com"
DEFAULT_OPENROUTER_BASE_URL = "https://openrouter.ai/api/v1"

# Values shipped in .env.example files; treated the same as a missing key.
PLACEHOLDER_API_KEYS = frozenset(
    {
        "your-anthropic-api-key-here",
        "your-openrouter-api-key-here",
        "your-api-key-here",
        "changeme",
        "sk-...",
        "sk-ant-...",
    }
)

_PROVIDER_ALIASES = {
    "anthropic": ProviderId.PRIMARY,
    "claude": ProviderId.PRIMARY,
    "openrouter": ProviderId.GATEWAY,
}


@dataclass(frozen=True, slots=True)
class ProviderConfig:
    provider_id: ProviderId
    api_key: str | None
    base_endpoint: str | None
    request_timeout_s: float = 60.0


@dataclass(frozen=True, slots=True)
class GenerationSettings:
    max_tokens: int
    temperature: float


@dataclass(frozen=True, slots=True)
class PipelineConfig:
    # Provider selection
    explicit_provider: ProviderId | None = None
    anthropic_api_key: str | None = None
    anthropic_base_url: str | None = None
    openrouter_api_key: str | None = None
    openrouter_base_url: str = DEFAULT_OPENROUTER_BASE_URL
    openrouter_app_url: str | None = None
    openrouter_app_title: str | None = "copyreview"

    # Models
    default_model: str = "claude-sonnet-4-5-20250929"
    gateway_default_model: str = "anthropic/claude-sonnet-4.5"

    # Reliability
    timeout_s: float = 60.0
    max_retries: int = 0
    backoff_base_s: float = 0.5
    backoff_jitter_s: float = 0.15

    # Generation
    review_generation: GenerationSettings = GenerationSettings(max_tokens=2000, temperature=0.7)
    improve_generation: GenerationSettings = GenerationSettings(max_tokens=2000, temperature=0.8)
    combined_generation: GenerationSettings = GenerationSettings(max_tokens=4000, temperature=0.7)

    # Degradation policy for unparsable Review completions
    review_fallback: bool = True

    # Session logging
    enable_file_logging: bool = False
    log_detailed_prompts: bool = True
    log_dir: str = "logs"

    @staticmethod
    def from_env(*, load_dotenv_file: bool = False) -> "PipelineConfig":
        if load_dotenv_file:
            from dotenv import load_dotenv

            load_dotenv()

        return PipelineConfig(
            explicit_provider=parse_provider(os.getenv("AI_PROVIDER")),
            anthropic_api_key=os.getenv("ANTHROPIC_API_KEY"),
            anthropic_base_url=os.getenv("ANTHROPIC_BASE_URL"),
            openrouter_api_key=os.getenv("OPENROUTER_API_KEY"),
            openrouter_base_url=os.getenv("OPENROUTER_BASE_URL", DEFAULT_OPENROUTER_BASE_URL),
            openrouter_app_url=os.getenv("OPENROUTER_APP_URL"),
            openrouter_app_title=os.getenv("OPENROUTER_APP_TITLE", "copyreview"),
            default_model=os.getenv("COPYREVIEW_MODEL", "claude-sonnet-4-5-20250929"),
            gateway_default_model=os.getenv(
                "COPYREVIEW_GATEWAY_MODEL", "anthropic/claude-sonnet-4.5"
            ),
            timeout_s=_env_number("COPYREVIEW_TIMEOUT_S", 60.0, float),
            max_retries=_env_number("COPYREVIEW_MAX_RETRIES", 0, int),
            backoff_base_s=_env_number("COPYREVIEW_BACKOFF_BASE_S", 0.5, float),
            backoff_jitter_s=_env_number("COPYREVIEW_BACKOFF_JITTER_S", 0.15, float),
            review_fallback=_env_flag("COPYREVIEW_REVIEW_FALLBACK", True),
            enable_file_logging=_env_flag("ENABLE_FILE_LOGGING", False),
            log_detailed_prompts=_env_flag("LOG_DETAILED_PROMPTS", True),
            log_dir=os.getenv("COPYREVIEW_LOG_DIR", "logs"),
        )

    def provider_config(self, provider_id: ProviderId) -> ProviderConfig:
        if provider_id is ProviderId.GATEWAY:
            return ProviderConfig(
                provider_id=provider_id,
                api_key=self.openrouter_api_key,
                base_endpoint=self.openrouter_base_url,
                request_timeout_s=self.timeout_s,
            )
        return ProviderConfig(
            provider_id=provider_id,
            api_key=self.anthropic_api_key,
            base_endpoint=self.anthropic_base_url,
            request_timeout_s=self.timeout_s,
        )

    def generation_for(self, task_kind: TaskKind) -> GenerationSettings:
        if task_kind is TaskKind.REVIEW:
            return self.review_generation
        if task_kind is TaskKind.IMPROVE:
            return self.improve_generation
        return self.combined_generation


def parse_provider(value: str | None) -> ProviderId | None:
    """Map an `AI_PROVIDER` value to a provider id; blank means "not configured"."""
    if value is None or not value.strip():
        return None
    key = value.strip().lower()
    provider = _PROVIDER_ALIASES.get(key)
    if provider is None:
        raise ConfigurationError(
            f"AI_PROVIDER must be 'anthropic', 'claude', or 'openrouter', got: '{value}'"
        )
    return provider


def _env_flag(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    value = raw.strip().lower()
    if value not in ("true", "false"):
        raise ConfigurationError(f"{name} should be 'true' or 'false', got: '{raw}'")
    return value == "true"


NumberT = TypeVar("NumberT", int, float)


def _env_number(name: str, default: NumberT, parse: Callable[[str], NumberT]) -> NumberT:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        value = parse(raw.strip())
    except ValueError as e:
        raise ConfigurationError(f"{name} should be a number, got: '{raw}'") from e
    if value < 0:
        raise ConfigurationError(f"{name} must not be negative, got: '{raw}'")
    return value
