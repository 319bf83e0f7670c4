from __future__ import annotations

import pytest

from copyreview.errors import ConfigurationError
from copyreview.llms.config import PipelineConfig
from copyreview.llms.routing import ensure_credentials, normalize_model, resolve_provider
from copyreview.llms.types import ProviderId


def _config(**overrides) -> PipelineConfig:
    values = {"anthropic_api_key": "sk-ant-test", "openrouter_api_key": "sk-or-test"}
    values.update(overrides)
    return PipelineConfig(**values)


def test_plain_model_routes_to_primary():
    assert resolve_provider(_config(), "claude-sonnet-4.5") is ProviderId.PRIMARY
    assert resolve_provider(_config()) is ProviderId.PRIMARY


def test_namespaced_model_routes_to_gateway():
    assert resolve_provider(_config(), "openai/gpt-4o") is ProviderId.GATEWAY


def test_explicit_provider_wins_over_model_hint():
    config = _config(explicit_provider=ProviderId.PRIMARY)

    assert resolve_provider(config, "anthropic/claude-sonnet-4.5") is ProviderId.PRIMARY


def test_missing_key_fails_before_any_call():
    config = _config(anthropic_api_key=None)

    with pytest.raises(ConfigurationError, match="ANTHROPIC_API_KEY"):
        resolve_provider(config)


def test_placeholder_key_is_rejected():
    config = _config(openrouter_api_key="your-openrouter-api-key-here")

    with pytest.raises(ConfigurationError, match="placeholder"):
        ensure_credentials(config, ProviderId.GATEWAY)


def test_gateway_models_pass_through_verbatim():
    assert normalize_model("openai/gpt-4o", ProviderId.GATEWAY) == "openai/gpt-4o"


@pytest.mark.parametrize(
    ("hint", "expected"),
    [
        ("anthropic/claude-sonnet-4.5", "claude-sonnet-4-5-20250929"),
        ("claude-3.5-sonnet", "claude-3-5-sonnet-20241022"),
        ("claude-3-5-haiku-20241022", "claude-3-5-haiku-20241022"),
        ("some-future-model", "some-future-model"),
    ],
)
def test_primary_models_are_normalized(hint, expected):
    assert normalize_model(hint, ProviderId.PRIMARY) == expected


def test_default_model_comes_from_config():
    config = _config(default_model="claude-haiku-4.5", gateway_default_model="openai/gpt-4o")

    assert normalize_model(None, ProviderId.PRIMARY, config) == "claude-haiku-4-5-20251001"
    assert normalize_model("", ProviderId.GATEWAY, config) == "openai/gpt-4o"


def test_no_hint_and_no_config_is_a_configuration_error():
    with pytest.raises(ConfigurationError):
        normalize_model(None, ProviderId.PRIMARY)
