from __future__ import annotations

"""
Shared normalization helpers used across completion transports.
"""

from dataclasses import asdict, is_dataclass
from typing import Any

from ..types import StopReason, Usage


def to_plain_dict(value: Any) -> dict[str, Any]:
    """Best-effort conversion of SDK/provider objects into plain dictionaries."""
    if isinstance(value, dict):
        return value

    if hasattr(value, "model_dump"):
        try:
            dumped = value.model_dump()
            if isinstance(dumped, dict):
                return dumped
        except Exception:
            pass

    if hasattr(value, "to_dict"):
        try:
            dumped = value.to_dict()
            if isinstance(dumped, dict):
                return dumped
        except Exception:
            pass

    if is_dataclass(value) and not isinstance(value, type):
        return asdict(value)

    if hasattr(value, "__dict__"):
        return dict(value.__dict__)

    return {}


def extract_text_from_content(content: Any) -> str:
    """Join the text of Anthropic-style content blocks or OpenAI-style message content."""
    if isinstance(content, str):
        return content

    if isinstance(content, list):
        out: list[str] = []
        for item in content:
            if isinstance(item, str):
                out.append(item)
                continue

            block = to_plain_dict(item)
            if block.get("type", "text") != "text":
                continue
            text = block.get("text")
            if isinstance(text, str):
                out.append(text)
        return "".join(out)

    if isinstance(content, dict):
        text = content.get("text")
        if isinstance(text, str):
            return text

    return ""


def extract_usage(raw_dict: dict[str, Any]) -> Usage:
    """Normalize usage token counters from either provider payload."""
    usage = raw_dict.get("usage")
    if not isinstance(usage, dict):
        usage = to_plain_dict(usage) if usage is not None else {}

    input_tokens = usage.get("input_tokens")
    if input_tokens is None:
        input_tokens = usage.get("prompt_tokens")

    output_tokens = usage.get("output_tokens")
    if output_tokens is None:
        output_tokens = usage.get("completion_tokens")

    total_tokens = usage.get("total_tokens")
    if total_tokens is None and isinstance(input_tokens, int) and isinstance(output_tokens, int):
        total_tokens = input_tokens + output_tokens

    return Usage(
        input_tokens=input_tokens if isinstance(input_tokens, int) else None,
        output_tokens=output_tokens if isinstance(output_tokens, int) else None,
        total_tokens=total_tokens if isinstance(total_tokens, int) else None,
    )


def map_stop_reason(value: Any, *, stop: set[str], max_tokens: set[str]) -> StopReason:
    if isinstance(value, str):
        if value in max_tokens:
            return StopReason.MAX_TOKENS
        if value in stop:
            return StopReason.STOP
    return StopReason.OTHER
