from __future__ import annotations

"""
MIT License
Copyright (c) 2026 socioy
See LICENSE file for full license text.

Typed result documents returned to callers, one per task kind.
"""

from typing import Annotated, Any, Literal, TypeAlias

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from ..llms.types import TaskKind


class _ResultModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        frozen=True,
    )

    def to_json_dict(self) -> dict[str, Any]:
        """Camel-cased JSON document, the shape clients and logs consume."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


class Highlight(_ResultModel):
    title: str = ""
    content: str = ""


class ReviewSection(_ResultModel):
    title: str = ""
    content: str = ""
    items: list[str] = Field(default_factory=list)
    highlight: Highlight | None = None


class ChangeEntry(_ResultModel):
    category: str
    issue: str = ""
    reason: str = ""
    why: str = ""
    summary: str = ""
    detail: str = ""
    signal: str = ""


class ReviewResult(_ResultModel):
    task_kind: Literal[TaskKind.REVIEW] = TaskKind.REVIEW
    overall_score: int = Field(ge=0, le=100)
    sections: list[ReviewSection] = Field(default_factory=list)
    degraded: bool = False


class ImproveResult(_ResultModel):
    task_kind: Literal[TaskKind.IMPROVE] = TaskKind.IMPROVE
    improved_subject: str
    improved_body: str
    changes: list[ChangeEntry] = Field(default_factory=list)
    further_tips: list[str] = Field(default_factory=list)
    expected_impact: str | None = None


class CombinedResult(_ResultModel):
    task_kind: Literal[TaskKind.ANALYZE_AND_IMPROVE] = TaskKind.ANALYZE_AND_IMPROVE
    overall_score: int = Field(ge=0, le=100)
    improved_subject: str
    improved_body: str
    changes: list[ChangeEntry] = Field(default_factory=list)
    further_tips: list[str] = Field(default_factory=list)
    expected_impact: str | None = None

    def estimated_improved_score(self, uplift: int = 15) -> int:
        """Presentation estimate for the rewrite's score, capped at 100."""
        return min(100, self.overall_score + uplift)


TaskResult: TypeAlias = Annotated[
    ReviewResult | ImproveResult | CombinedResult,
    Field(discriminator="task_kind"),
]

FALLBACK_SCORE = 50


def fallback_review(raw_text: str) -> ReviewResult:
    """
    Low-confidence Review used when a review completion cannot be parsed.

    The raw completion is kept as the single section's content so the caller
    still sees what the model said.
    """
    return ReviewResult(
        overall_score=FALLBACK_SCORE,
        sections=[
            ReviewSection(
                title="Analysis",
                content=raw_text or "Unable to generate detailed analysis. Please try again.",
                items=[],
            )
        ],
        degraded=True,
    )
