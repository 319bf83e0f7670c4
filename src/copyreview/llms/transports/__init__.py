"""Completion transport implementations."""

from .anthropic import AnthropicTransport
from .base import CompletionTransport
from .factory import create_transport, register_transport, unregister_transport
from .openrouter import OpenRouterTransport

__all__ = [
    "CompletionTransport",
    "AnthropicTransport",
    "OpenRouterTransport",
    "create_transport",
    "register_transport",
    "unregister_transport",
]
