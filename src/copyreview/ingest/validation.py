from __future__ import annotations

"""
Shape validation of recovered completion documents.

`validate` is pure: it checks the minimal contract each task kind needs,
clamps the score, fills optional collections with empty defaults, and
returns the typed result model.
"""

import json
import math
from typing import Any

from pydantic import ValidationError

from ..errors import InvalidResultShape
from ..llms.types import TaskKind
from .results import CombinedResult, ImproveResult, ReviewResult

SCORE_MIN = 0
SCORE_MAX = 100

_CHANGE_TEXT_FIELDS = ("issue", "reason", "why", "summary", "detail", "signal")


def validate(task_kind: TaskKind, value: Any) -> ReviewResult | ImproveResult | CombinedResult:
    if not isinstance(value, dict):
        raise InvalidResultShape(
            f"Expected a JSON object for {task_kind.value}, got {type(value).__name__}"
        )

    if task_kind is TaskKind.REVIEW:
        _require(value, task_kind, ("overallScore", "sections"))
        payload: dict[str, Any] = {
            "overallScore": clamp_score(value["overallScore"]),
            "sections": _normalize_sections(value["sections"]),
        }
        return _build(ReviewResult, payload)

    if task_kind is TaskKind.IMPROVE:
        _require(value, task_kind, ("improvedSubject", "improvedBody"))
        return _build(ImproveResult, _improve_payload(value))

    _require(value, task_kind, ("overallScore", "improvedSubject", "improvedBody"))
    payload = _improve_payload(value)
    payload["overallScore"] = clamp_score(value["overallScore"])
    return _build(CombinedResult, payload)


def clamp_score(raw: Any) -> int:
    """Coerce a model-reported score to an int within [0, 100]."""
    if isinstance(raw, bool):
        raise InvalidResultShape("overallScore must be a number, got a boolean")
    if isinstance(raw, str):
        try:
            raw = float(raw.strip().rstrip("%"))
        except ValueError as e:
            raise InvalidResultShape(f"overallScore is not numeric: {raw!r}") from e
    if not isinstance(raw, (int, float)) or (isinstance(raw, float) and not math.isfinite(raw)):
        raise InvalidResultShape(f"overallScore must be a finite number, got {raw!r}")
    return max(SCORE_MIN, min(SCORE_MAX, int(round(raw))))


def _require(value: dict[str, Any], task_kind: TaskKind, fields: tuple[str, ...]) -> None:
    missing = [name for name in fields if value.get(name) is None]
    if missing:
        raise InvalidResultShape(
            f"{task_kind.value} result is missing required fields: {', '.join(missing)}",
            missing=missing,
        )


def _normalize_sections(raw: Any) -> list[dict[str, Any]]:
    if not isinstance(raw, list):
        raise InvalidResultShape("sections must be an array")

    sections: list[dict[str, Any]] = []
    for idx, section in enumerate(raw):
        if not isinstance(section, dict):
            raise InvalidResultShape(f"sections[{idx}] must be an object")
        normalized: dict[str, Any] = {
            "title": _text(section.get("title")),
            "content": _text(section.get("content")),
            "items": _string_list(section.get("items"), f"sections[{idx}].items"),
        }
        highlight = section.get("highlight")
        if isinstance(highlight, dict):
            normalized["highlight"] = {
                "title": _text(highlight.get("title")),
                "content": _text(highlight.get("content")),
            }
        sections.append(normalized)
    return sections


def _improve_payload(value: dict[str, Any]) -> dict[str, Any]:
    subject = value["improvedSubject"]
    body = value["improvedBody"]
    for name, text in (("improvedSubject", subject), ("improvedBody", body)):
        if not isinstance(text, str) or not text.strip():
            raise InvalidResultShape(f"{name} must be a non-empty string", missing=[name])

    payload: dict[str, Any] = {
        "improvedSubject": subject,
        "improvedBody": body,
        "changes": _normalize_changes(value.get("changes")),
        "furtherTips": _string_list(value.get("furtherTips"), "furtherTips"),
    }
    expected_impact = value.get("expectedImpact")
    if expected_impact is not None:
        payload["expectedImpact"] = _text(expected_impact)
    return payload


def _normalize_changes(raw: Any) -> list[dict[str, str]]:
    if raw is None:
        return []
    if not isinstance(raw, list):
        raise InvalidResultShape("changes must be an array")

    changes: list[dict[str, str]] = []
    for idx, entry in enumerate(raw):
        if not isinstance(entry, dict):
            raise InvalidResultShape(f"changes[{idx}] must be an object")
        category = entry.get("category")
        if not isinstance(category, str) or not category.strip():
            raise InvalidResultShape(
                f"changes[{idx}] is missing its category",
                missing=[f"changes[{idx}].category"],
            )
        normalized = {"category": category}
        for name in _CHANGE_TEXT_FIELDS:
            normalized[name] = _text(entry.get(name))
        changes.append(normalized)
    return changes


def _string_list(raw: Any, field_name: str) -> list[str]:
    if raw is None:
        return []
    if not isinstance(raw, list):
        raise InvalidResultShape(f"{field_name} must be an array")
    return [item if isinstance(item, str) else _text(item) for item in raw]


def _text(raw: Any) -> str:
    if raw is None:
        return ""
    if isinstance(raw, str):
        return raw
    if isinstance(raw, (dict, list)):
        return json.dumps(raw, ensure_ascii=False)
    return str(raw)


def _build(model: type, payload: dict[str, Any]):
    try:
        return model.model_validate(payload)
    except ValidationError as e:
        raise InvalidResultShape(f"{model.__name__} did not match its schema: {e}") from e
