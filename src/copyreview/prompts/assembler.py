from __future__ import annotations

"""
MIT License
Copyright (c) 2026 socioy
See LICENSE file for full license text.

Prompt assembly for review, improve and combined tasks.

System instructions are an ordered tuple of independent blocks; the user
prompt wraps subject and body in fixed delimiters; the assistant prefill is
a JSON key-prefix unique to the task kind.
"""

import json
import re
from typing import TYPE_CHECKING

from ..llms.types import PromptParts, TaskKind
from .knowledge import KnowledgeBase, StaticKnowledgeBase

if TYPE_CHECKING:
    from ..ingest.results import ReviewResult


REVIEW_PREFILL = '{"overallScore":'
IMPROVE_PREFILL = '{"improvedSubject":'
COMBINED_PREFILL = '{"changes":['

ASSISTANT_PREFILLS: dict[TaskKind, str] = {
    TaskKind.REVIEW: REVIEW_PREFILL,
    TaskKind.IMPROVE: IMPROVE_PREFILL,
    TaskKind.ANALYZE_AND_IMPROVE: COMBINED_PREFILL,
}

SUBJECT_LABEL = "SUBJECT LINE"
BODY_LABEL = "EMAIL BODY"
FEEDBACK_LABEL = "REVIEW FEEDBACK"

_ROLES: dict[TaskKind, str] = {
    TaskKind.REVIEW: (
        "You are an expert cold email copywriter and analyst. Your role is to review "
        "cold email copy and provide actionable, specific feedback to improve response rates."
    ),
    TaskKind.IMPROVE: (
        "You are an expert cold email copywriter. Your role is to rewrite cold emails to "
        "maximize response rates based on proven best practices and patterns."
    ),
    TaskKind.ANALYZE_AND_IMPROVE: (
        "You are an expert cold email copywriter and analyst. Your role is to score cold "
        "email copy against proven best practices and then rewrite it to maximize response rates."
    ),
}

_GUIDANCE: dict[TaskKind, str] = {
    TaskKind.REVIEW: """Your analysis should:
1. Be specific and actionable
2. Reference concrete examples from the best performing patterns
3. Provide a numerical score out of 100
4. Break down feedback into clear sections
5. Be constructive and encouraging while being honest

Sections should include:
- Subject Line Analysis
- Opening Hook
- Value Proposition
- Personalization
- Call to Action
- Length and Structure
- Comparison to Best Performers""",
    TaskKind.IMPROVE: """Your rewrite should:
1. Apply the feedback from the review
2. Follow the patterns from our best performing emails
3. Maintain the core value proposition but improve delivery
4. Be specific, personalized, and action-oriented
5. Optimize for clarity and brevity (70-95 words for body)
6. Use conversational, authentic tone""",
    TaskKind.ANALYZE_AND_IMPROVE: """Work in this order:
1. Identify each concrete issue in the original and the change that fixes it
2. Score the ORIGINAL email out of 100 against the best practices
3. Write the improved subject line and body (70-95 words for body)
4. Add further tips the sender can apply to future emails
Maintain the core value proposition; keep the tone conversational and authentic.""",
}

_OUTPUT_FORMATS: dict[TaskKind, str] = {
    TaskKind.REVIEW: """{
    "overallScore": <number 0-100>,
    "sections": [
        {
            "title": "<section name>",
            "content": "<main feedback>",
            "items": ["<point 1>", "<point 2>"],
            "highlight": {
                "title": "<highlight title>",
                "content": "<key takeaway>"
            }
        }
    ]
}""",
    TaskKind.IMPROVE: """{
    "improvedSubject": "<improved subject line>",
    "improvedBody": "<improved email body>",
    "changes": [
        {
            "category": "<what was changed>",
            "reason": "<why this change improves the copy>"
        }
    ],
    "furtherTips": ["<tip 1>", "<tip 2>"],
    "expectedImpact": "<brief summary of how this should perform better>"
}""",
    TaskKind.ANALYZE_AND_IMPROVE: """{
    "changes": [
        {
            "category": "<area of the email>",
            "issue": "<what is wrong in the original>",
            "reason": "<the fix applied>",
            "why": "<why the fix improves response rate>",
            "summary": "<one-line summary>",
            "detail": "<longer explanation>",
            "signal": "<personalization signal used, if any>"
        }
    ],
    "overallScore": <number 0-100 for the original email>,
    "improvedSubject": "<improved subject line>",
    "improvedBody": "<improved email body>",
    "furtherTips": ["<tip 1>", "<tip 2>"],
    "expectedImpact": "<brief summary of how this should perform better>"
}""",
}

_FORMAT_RULES = (
    "Respond ONLY with valid JSON in this exact structure, with no markdown fences "
    "and no text before or after the JSON. Escape newlines inside string values as \\n."
)


def build_prompt(
    task_kind: TaskKind,
    subject: str,
    body: str,
    prior_review: "ReviewResult | None" = None,
    knowledge: KnowledgeBase | None = None,
) -> PromptParts:
    kb = knowledge or StaticKnowledgeBase()
    system_blocks = (
        _ROLES[task_kind],
        kb.best_practices(),
        "BEST PERFORMING PATTERNS (from our database):\n" + kb.best_performing_patterns(),
        f"{_GUIDANCE[task_kind]}\n\n{_FORMAT_RULES}\n{_OUTPUT_FORMATS[task_kind]}",
    )
    return PromptParts(
        system_blocks=tuple(block for block in system_blocks if block and block.strip()),
        user_prompt=_user_prompt(task_kind, subject, body, prior_review),
        assistant_prefill=ASSISTANT_PREFILLS[task_kind],
    )


def delimit(label: str, content: str) -> str:
    return f"---{label}---\n{content}\n---END {label}---"


def extract_delimited(text: str, label: str) -> str | None:
    """Pull one delimited section back out of an assembled (or logged) prompt."""
    match = re.search(
        rf"^---{re.escape(label)}---\n(.*?)\n---END {re.escape(label)}---$",
        text,
        flags=re.DOTALL | re.MULTILINE,
    )
    return match.group(1) if match else None


def _user_prompt(
    task_kind: TaskKind,
    subject: str,
    body: str,
    prior_review: "ReviewResult | None",
) -> str:
    wrapped = f"{delimit(SUBJECT_LABEL, subject)}\n\n{delimit(BODY_LABEL, body)}"

    if task_kind is TaskKind.REVIEW:
        return (
            "Please review this cold email and provide detailed feedback:\n\n"
            f"{wrapped}\n\n"
            "Provide your analysis in the JSON format specified."
        )

    if task_kind is TaskKind.IMPROVE:
        parts = [
            "Based on the review feedback below, please rewrite this cold email to maximize response rate."
            if prior_review is not None
            else "Please rewrite this cold email to maximize response rate.",
            wrapped,
        ]
        if prior_review is not None:
            sections = [s.to_json_dict() for s in prior_review.sections]
            feedback = (
                f"Score: {prior_review.overall_score}/100\n"
                f"{json.dumps(sections, indent=2, ensure_ascii=False)}"
            )
            parts.append(delimit(FEEDBACK_LABEL, feedback))
        parts.append(
            "Generate an improved version that follows best performing patterns. "
            "Provide your response in the JSON format specified."
        )
        return "\n\n".join(parts)

    return (
        "Analyze this cold email, score it, and rewrite it to maximize response rate:\n\n"
        f"{wrapped}\n\n"
        "Provide your analysis and rewrite in the JSON format specified."
    )
