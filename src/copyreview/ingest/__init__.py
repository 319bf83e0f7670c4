"""Recovery and validation of completion documents."""

from .recovery import recover, repair_json_text, strip_code_fences
from .results import (
    ChangeEntry,
    CombinedResult,
    Highlight,
    ImproveResult,
    ReviewResult,
    ReviewSection,
    TaskResult,
    fallback_review,
)
from .validation import clamp_score, validate

__all__ = [
    "recover",
    "repair_json_text",
    "strip_code_fences",
    "validate",
    "clamp_score",
    "ReviewResult",
    "ImproveResult",
    "CombinedResult",
    "ReviewSection",
    "Highlight",
    "ChangeEntry",
    "TaskResult",
    "fallback_review",
]
