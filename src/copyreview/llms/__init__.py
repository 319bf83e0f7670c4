"""Provider resolution, configuration and completion invocation."""

from .classify import classify_error, error_for_status
from .config import GenerationSettings, PipelineConfig, ProviderConfig, parse_provider
from .invoker import CompletionInvoker
from .observability import CompletionLifecycleEvent, CompletionObserver
from .routing import ensure_credentials, normalize_model, resolve_provider
from .types import (
    CompletionRequest,
    PromptParts,
    ProviderId,
    RawCompletion,
    ResolvedInvocation,
    SessionHandle,
    StopReason,
    TaskKind,
    Usage,
)

__all__ = [
    "PipelineConfig",
    "ProviderConfig",
    "GenerationSettings",
    "parse_provider",
    "resolve_provider",
    "ensure_credentials",
    "normalize_model",
    "CompletionInvoker",
    "CompletionLifecycleEvent",
    "CompletionObserver",
    "classify_error",
    "error_for_status",
    "TaskKind",
    "ProviderId",
    "StopReason",
    "CompletionRequest",
    "PromptParts",
    "ResolvedInvocation",
    "RawCompletion",
    "Usage",
    "SessionHandle",
]
