from __future__ import annotations

"""
Provider resolution and model-name normalization.

Both steps are pure and run before any network call, so credential problems
fail fast instead of surfacing on first use.
"""

import logging

from ..errors import ConfigurationError
from .config import PLACEHOLDER_API_KEYS, PipelineConfig
from .types import ProviderId

logger = logging.getLogger(__name__)

# Short aliases accepted for the primary provider, mapped to exact versioned ids.
PRIMARY_MODEL_ALIASES: dict[str, str] = {
    "claude-3.5-sonnet": "claude-3-5-sonnet-20241022",
    "claude-3-5-sonnet": "claude-3-5-sonnet-20241022",
    "claude-3.5-haiku": "claude-3-5-haiku-20241022",
    "claude-3-5-haiku": "claude-3-5-haiku-20241022",
    "claude-3.7-sonnet": "claude-3-7-sonnet-20250219",
    "claude-3-7-sonnet": "claude-3-7-sonnet-20250219",
    "claude-3-opus": "claude-3-opus-20240229",
    "claude-sonnet-4": "claude-sonnet-4-20250514",
    "claude-opus-4": "claude-opus-4-20250514",
    "claude-opus-4.1": "claude-opus-4-1-20250805",
    "claude-opus-4-1": "claude-opus-4-1-20250805",
    "claude-sonnet-4.5": "claude-sonnet-4-5-20250929",
    "claude-sonnet-4-5": "claude-sonnet-4-5-20250929",
    "claude-haiku-4.5": "claude-haiku-4-5-20251001",
    "claude-haiku-4-5": "claude-haiku-4-5-20251001",
}

_CREDENTIAL_ENV = {
    ProviderId.PRIMARY: "ANTHROPIC_API_KEY",
    ProviderId.GATEWAY: "OPENROUTER_API_KEY",
}


def resolve_provider(config: PipelineConfig, model_hint: str | None = None) -> ProviderId:
    """
    Choose the provider for one call and check its credential.

    An explicitly configured provider always wins; otherwise a namespaced
    model hint (`vendor/model`) routes to the gateway; otherwise primary.
    """
    if config.explicit_provider is not None:
        provider_id = config.explicit_provider
    elif model_hint and "/" in model_hint:
        provider_id = ProviderId.GATEWAY
    else:
        provider_id = ProviderId.PRIMARY

    ensure_credentials(config, provider_id)
    return provider_id


def ensure_credentials(config: PipelineConfig, provider_id: ProviderId) -> None:
    api_key = config.provider_config(provider_id).api_key
    env_name = _CREDENTIAL_ENV[provider_id]
    if api_key is None or not api_key.strip():
        raise ConfigurationError(
            f"{env_name} is required when using the {provider_id.value} provider"
        )
    if api_key.strip() in PLACEHOLDER_API_KEYS:
        raise ConfigurationError(
            f"{env_name} appears to be a placeholder. Please set a real API key."
        )


def normalize_model(
    model_hint: str | None,
    provider_id: ProviderId,
    config: PipelineConfig | None = None,
) -> str:
    """Map a caller-supplied (or default) model name to the provider's identifier."""
    candidate = (model_hint or "").strip()
    if not candidate:
        if config is None:
            raise ConfigurationError("No model hint given and no config to take a default from")
        candidate = (
            config.gateway_default_model
            if provider_id is ProviderId.GATEWAY
            else config.default_model
        )

    if provider_id is ProviderId.GATEWAY:
        return candidate

    if "/" in candidate:
        candidate = candidate.split("/", 1)[1]
    normalized = PRIMARY_MODEL_ALIASES.get(candidate, candidate)
    if normalized != candidate:
        logger.debug("Model alias %s resolved to %s", candidate, normalized)
    return normalized
