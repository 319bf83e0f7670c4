from __future__ import annotations

import pytest

from copyreview.errors import InvalidResultShape
from copyreview.ingest.results import CombinedResult, ImproveResult, ReviewResult
from copyreview.ingest.validation import clamp_score, validate
from copyreview.llms.types import TaskKind


def _review(score, sections=None):
    return {"overallScore": score, "sections": sections if sections is not None else []}


@pytest.mark.parametrize(
    ("raw", "expected"),
    [(150, 100), (-5, 0), (72.6, 73), ("85", 85), ("64%", 64), (0, 0), (100, 100)],
)
def test_review_score_is_clamped(raw, expected):
    result = validate(TaskKind.REVIEW, _review(raw))

    assert isinstance(result, ReviewResult)
    assert result.overall_score == expected


@pytest.mark.parametrize("raw", [True, "high", float("nan"), [80]])
def test_non_numeric_score_is_rejected(raw):
    with pytest.raises(InvalidResultShape):
        clamp_score(raw)


def test_null_score_counts_as_missing():
    with pytest.raises(InvalidResultShape) as exc_info:
        validate(TaskKind.REVIEW, _review(None))

    assert exc_info.value.missing == ["overallScore"]


def test_review_requires_sections():
    with pytest.raises(InvalidResultShape) as exc_info:
        validate(TaskKind.REVIEW, {"overallScore": 80})

    assert exc_info.value.missing == ["sections"]


def test_review_sections_are_normalized():
    result = validate(
        TaskKind.REVIEW,
        _review(
            70,
            [
                {
                    "title": "Opening Hook",
                    "content": "Generic opener.",
                    "items": ["Cut the pleasantry", 3],
                    "highlight": {"title": "Key", "content": "Lead with them"},
                },
                {"title": "CTA"},
            ],
        ),
    )

    first, second = result.sections
    assert first.items == ["Cut the pleasantry", "3"]
    assert first.highlight is not None and first.highlight.content == "Lead with them"
    assert second.content == ""
    assert second.items == []
    assert second.highlight is None


def test_improve_fills_optional_collections():
    result = validate(
        TaskKind.IMPROVE,
        {"improvedSubject": "Sarah, quick idea", "improvedBody": "Hi Sarah, ..."},
    )

    assert isinstance(result, ImproveResult)
    assert result.further_tips == []
    assert result.changes == []
    assert result.expected_impact is None


def test_improve_rejects_blank_subject():
    with pytest.raises(InvalidResultShape) as exc_info:
        validate(TaskKind.IMPROVE, {"improvedSubject": "  ", "improvedBody": "Body"})

    assert exc_info.value.missing == ["improvedSubject"]


def test_improve_requires_body():
    with pytest.raises(InvalidResultShape) as exc_info:
        validate(TaskKind.IMPROVE, {"improvedSubject": "Subject"})

    assert "improvedBody" in exc_info.value.missing


def test_change_entries_require_category():
    with pytest.raises(InvalidResultShape):
        validate(
            TaskKind.IMPROVE,
            {
                "improvedSubject": "S",
                "improvedBody": "B",
                "changes": [{"reason": "shorter"}],
            },
        )


def test_combined_result_carries_score_and_rewrite():
    result = validate(
        TaskKind.ANALYZE_AND_IMPROVE,
        {
            "changes": [{"category": "Opening", "issue": "Generic", "reason": "Lead with a trigger"}],
            "overallScore": 92,
            "improvedSubject": "New subject",
            "improvedBody": "New body",
            "furtherTips": ["Follow up in 3 days"],
            "expectedImpact": "Higher reply rate",
        },
    )

    assert isinstance(result, CombinedResult)
    assert result.overall_score == 92
    assert result.changes[0].issue == "Generic"
    assert result.changes[0].why == ""
    assert result.estimated_improved_score() == 100
    assert result.to_json_dict()["improvedSubject"] == "New subject"


def test_combined_requires_score():
    with pytest.raises(InvalidResultShape) as exc_info:
        validate(
            TaskKind.ANALYZE_AND_IMPROVE,
            {"improvedSubject": "S", "improvedBody": "B"},
        )

    assert exc_info.value.missing == ["overallScore"]


def test_non_object_document_is_rejected():
    with pytest.raises(InvalidResultShape):
        validate(TaskKind.REVIEW, [1, 2, 3])


def test_structured_list_items_are_rendered_as_json():
    result = validate(
        TaskKind.IMPROVE,
        {
            "improvedSubject": "S",
            "improvedBody": "B",
            "furtherTips": [{"tip": "Follow up", "days": 3}, ["a", "b"], 7],
        },
    )

    assert result.further_tips == ['{"tip": "Follow up", "days": 3}', '["a", "b"]', "7"]
