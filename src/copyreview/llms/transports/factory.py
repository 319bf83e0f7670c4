from __future__ import annotations

"""
Factory utilities for constructing concrete completion transports.
"""

from typing import Callable

from ...errors import ConfigurationError
from ..config import PipelineConfig
from ..types import ProviderId
from .base import CompletionTransport


TransportFactory = Callable[[PipelineConfig], CompletionTransport]
_REGISTRY: dict[ProviderId, TransportFactory] = {}


def register_transport(
    provider_id: ProviderId,
    factory: TransportFactory,
    *,
    overwrite: bool = False,
) -> None:
    """Register a custom transport factory for one provider."""
    if (not overwrite) and provider_id in _REGISTRY:
        raise ValueError(f"Transport already registered: {provider_id.value}")

    _REGISTRY[provider_id] = factory


def unregister_transport(provider_id: ProviderId) -> None:
    _REGISTRY.pop(provider_id, None)


def create_transport(provider_id: ProviderId, config: PipelineConfig) -> CompletionTransport:
    """Create the transport for `provider_id`, preferring registered overrides."""
    factory = _REGISTRY.get(provider_id)
    if factory is None:
        factory = _builtin_factory(provider_id)
    return factory(config)


def _builtin_factory(provider_id: ProviderId) -> TransportFactory:
    """Resolve built-in transport factories lazily to avoid hard SDK imports."""
    if provider_id is ProviderId.PRIMARY:
        from .anthropic import AnthropicTransport

        return lambda cfg: AnthropicTransport(cfg.provider_config(ProviderId.PRIMARY))

    if provider_id is ProviderId.GATEWAY:
        from .openrouter import OpenRouterTransport

        return lambda cfg: OpenRouterTransport(
            cfg.provider_config(ProviderId.GATEWAY),
            app_url=cfg.openrouter_app_url,
            app_title=cfg.openrouter_app_title,
        )

    raise ConfigurationError(f"Unknown provider '{provider_id}'")
