from __future__ import annotations

"""
MIT License
Copyright (c) 2026 socioy
See LICENSE file for full license text.

Recovery of a JSON document from a free-form model completion.

The completion is supposed to continue a JSON object seeded by the assistant
prefill, but may carry markdown fences, prose around the object, raw control
characters inside string literals, or trailing commas. `recover` either
returns a syntactically valid JSON value or raises `UnparsableCompletion`.
"""

import json
import re
from typing import Any

from ..errors import UnparsableCompletion

# Opening fences may carry a language tag (```json); closers are bare.
_FENCE_RE = re.compile(r"```[A-Za-z0-9_+.-]*[ \t]*(?:\r?\n)?")

_CONTROL_ESCAPES = {
    "\n": "\\n",
    "\r": "\\r",
    "\t": "\\t",
    "\b": "\\b",
    "\f": "\\f",
}

_CLOSERS = {"{": "}", "[": "]"}
_WHITESPACE_RE = re.compile(r"\s+")


def strip_code_fences(text: str) -> str:
    """Remove every markdown code-fence marker, wherever it appears."""
    return _FENCE_RE.sub("", text or "")


def reattach_prefill(text: str, assistant_prefill: str) -> str:
    """Put the assistant seed back in front of its continuation."""
    if not assistant_prefill:
        return text
    stripped = text.lstrip()
    # Gateway-routed models sometimes restart the object instead of continuing
    # it, often pretty-printed; compare with whitespace removed.
    prefix = _compact(assistant_prefill)
    if prefix and _compact(stripped).startswith(prefix):
        return stripped
    return assistant_prefill + text


def extract_candidate(text: str) -> str | None:
    """Span from the first `{` to the last `}` (or to the end when none follows)."""
    start = text.find("{")
    if start == -1:
        return None
    end = text.rfind("}")
    if end < start:
        return text[start:]
    return text[start : end + 1]


def repair_json_text(candidate: str) -> str:
    """
    Single left-to-right repair pass over a JSON candidate.

    Inside string literals raw control characters are rewritten to their
    escaped form. Outside strings, trailing commas before `}`/`]` are
    dropped, scanning stops where the top-level container closes, and
    containers still open at the end are closed in order. A string still
    open at the end is left unterminated.
    """
    out: list[str] = []
    stack: list[str] = []
    in_string = False
    escape = False

    for ch in candidate:
        if in_string:
            if escape:
                escape = False
                out.append(ch)
                continue
            if ch == "\\":
                escape = True
                out.append(ch)
                continue
            if ch == '"':
                in_string = False
                out.append(ch)
                continue
            if ch in _CONTROL_ESCAPES:
                out.append(_CONTROL_ESCAPES[ch])
            elif ord(ch) < 0x20:
                out.append(f"\\u{ord(ch):04x}")
            else:
                out.append(ch)
            continue

        if ch == '"':
            in_string = True
            out.append(ch)
            continue

        if ch in _CLOSERS:
            stack.append(_CLOSERS[ch])
            out.append(ch)
            continue

        if ch in "}]":
            _drop_trailing_comma(out)
            if stack and stack[-1] == ch:
                stack.pop()
            out.append(ch)
            if not stack:
                break
            continue

        out.append(ch)

    if in_string:
        # A cut-off string value is never completed; the parse must fail.
        return "".join(out)
    if stack:
        _drop_trailing_comma(out)
        out.extend(reversed(stack))

    return "".join(out)


def recover(raw_text: str, assistant_prefill: str = "") -> Any:
    """
    Reconstruct the JSON value a completion was meant to contain.

    Never partially succeeds: returns the parsed value, or raises
    `UnparsableCompletion` carrying the raw text and the parser's offset.
    """
    cleaned = strip_code_fences(raw_text)
    text = reattach_prefill(cleaned, assistant_prefill)

    candidate = extract_candidate(text)
    if candidate is None:
        raise UnparsableCompletion(
            "No JSON object found in completion",
            raw_text=raw_text,
            offset=0,
        )

    try:
        return json.loads(candidate)
    except json.JSONDecodeError:
        pass

    repaired = repair_json_text(candidate)
    try:
        return json.loads(repaired)
    except json.JSONDecodeError as e:
        raise UnparsableCompletion(
            f"Completion is not valid JSON after repair: {e.msg} at offset {e.pos}",
            raw_text=raw_text,
            offset=e.pos,
        ) from e


def _compact(text: str) -> str:
    return _WHITESPACE_RE.sub("", text)


def _drop_trailing_comma(out: list[str]) -> None:
    idx = len(out) - 1
    while idx >= 0 and out[idx] in " \t\r\n":
        idx -= 1
    if idx >= 0 and out[idx] == ",":
        del out[idx]
