from __future__ import annotations

import pytest

from copyreview.errors import ConfigurationError
from copyreview.llms.config import PipelineConfig, parse_provider
from copyreview.llms.types import ProviderId, TaskKind

_ENV_VARS = (
    "AI_PROVIDER",
    "ANTHROPIC_API_KEY",
    "ANTHROPIC_BASE_URL",
    "OPENROUTER_API_KEY",
    "OPENROUTER_BASE_URL",
    "OPENROUTER_APP_URL",
    "OPENROUTER_APP_TITLE",
    "COPYREVIEW_MODEL",
    "COPYREVIEW_GATEWAY_MODEL",
    "COPYREVIEW_TIMEOUT_S",
    "COPYREVIEW_MAX_RETRIES",
    "COPYREVIEW_BACKOFF_BASE_S",
    "COPYREVIEW_BACKOFF_JITTER_S",
    "COPYREVIEW_REVIEW_FALLBACK",
    "ENABLE_FILE_LOGGING",
    "LOG_DETAILED_PROMPTS",
    "COPYREVIEW_LOG_DIR",
)


@pytest.fixture
def clean_env(monkeypatch):
    for name in _ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    return monkeypatch


def test_defaults_without_environment(clean_env):
    config = PipelineConfig.from_env()

    assert config.explicit_provider is None
    assert config.anthropic_api_key is None
    assert config.timeout_s == 60.0
    assert config.max_retries == 0
    assert config.review_fallback is True
    assert config.enable_file_logging is False


def test_environment_overrides(clean_env):
    clean_env.setenv("AI_PROVIDER", "Claude")
    clean_env.setenv("ANTHROPIC_API_KEY", "sk-ant-real")
    clean_env.setenv("COPYREVIEW_TIMEOUT_S", "12.5")
    clean_env.setenv("COPYREVIEW_MAX_RETRIES", "2")
    clean_env.setenv("ENABLE_FILE_LOGGING", "true")
    clean_env.setenv("LOG_DETAILED_PROMPTS", "FALSE")
    clean_env.setenv("COPYREVIEW_LOG_DIR", "/tmp/sessions")

    config = PipelineConfig.from_env()

    assert config.explicit_provider is ProviderId.PRIMARY
    assert config.provider_config(ProviderId.PRIMARY).api_key == "sk-ant-real"
    assert config.provider_config(ProviderId.PRIMARY).request_timeout_s == 12.5
    assert config.max_retries == 2
    assert config.enable_file_logging is True
    assert config.log_detailed_prompts is False
    assert config.log_dir == "/tmp/sessions"


def test_invalid_flag_is_rejected(clean_env):
    clean_env.setenv("ENABLE_FILE_LOGGING", "yes")

    with pytest.raises(ConfigurationError, match="ENABLE_FILE_LOGGING"):
        PipelineConfig.from_env()


def test_parse_provider():
    assert parse_provider("openrouter") is ProviderId.GATEWAY
    assert parse_provider(" anthropic ") is ProviderId.PRIMARY
    assert parse_provider("") is None
    with pytest.raises(ConfigurationError):
        parse_provider("bedrock")


def test_generation_settings_per_task():
    config = PipelineConfig()

    assert config.generation_for(TaskKind.REVIEW).max_tokens == 2000
    assert config.generation_for(TaskKind.IMPROVE).temperature == 0.8
    assert config.generation_for(TaskKind.ANALYZE_AND_IMPROVE).max_tokens == 4000


@pytest.mark.parametrize(
    ("name", "value"),
    [
        ("COPYREVIEW_TIMEOUT_S", "sixty"),
        ("COPYREVIEW_MAX_RETRIES", "1.5"),
        ("COPYREVIEW_BACKOFF_BASE_S", "fast"),
        ("COPYREVIEW_BACKOFF_JITTER_S", "-1"),
    ],
)
def test_malformed_numbers_are_configuration_errors(clean_env, name, value):
    clean_env.setenv(name, value)

    with pytest.raises(ConfigurationError, match=name):
        PipelineConfig.from_env()
