from __future__ import annotations

"""
Knowledge-base content injected into system prompts.

The pipeline treats this content as opaque text blocks; it never parses it.
"""

import functools
import logging
from pathlib import Path
from typing import Protocol

logger = logging.getLogger(__name__)

DEFAULT_BEST_PRACTICES = """# COLD EMAIL BEST PRACTICES

## Core Principles
- Personalization: no generic compliments, reference specific recent information
- Subject lines: under 50 characters, no spam triggers
- Opening: the first sentence is entirely about the recipient
- Value proposition: focus on outcomes, quantify when possible
- CTA: one low-commitment ask ("Worth a chat?")
- Length: 70-95 words is optimal, never exceed 125
- Tone: conversational, show personality

## Critical DON'Ts
- Don't open with "I hope this email finds you well"
- No long paragraphs (3+ sentences)
- Never more than one CTA
- Don't talk about yourself in the first paragraph

## Key Frameworks
**Ask Before Pitch**: open with a question, state the trigger or problem, offer the solution, close with a relevant PS
**Not Too Different**: "I work with teams similar to yours who struggle with..."
**Do the Math**: trigger + quick pitch + ROI calculation + CTA

## Signals for Personalization
- Company growth (new offices, hiring, expansion)
- Funding events (new rounds, milestones)
- Executive changes (new hires, promotions)
- Product launches
- Content and thought leadership
"""

DEFAULT_BEST_PERFORMING_PATTERNS = """TOP PERFORMING PATTERNS:

Average Response Rate: 41%
Optimal Subject Length: 35-42 characters
Optimal Email Length: 72-95 words
Average Personalization Points: 3

KEY PATTERNS:
- Specific observation: opens with something concrete about the prospect's company
- Single data point: one statistic or result, never a list of claims
- Low-commitment CTA: asks for thoughts or a yes/no answer, not a meeting
- Brevity: under 100 words total

EXAMPLES BY CATEGORY:
B2B SaaS (45% response rate):
  - Opens with specific observation about prospect's company
  - Uses one concrete data point or statistic
  - CTA is simply asking for thoughts/feedback
Agency Services (38% response rate):
  - Subject line poses a question about a pain point
  - Shares a brief, relevant case study or result
  - Ends with a simple yes/no question
Consulting (42% response rate):
  - Heavy personalization (4+ specific references)
  - Social proof from a recognizable peer company
  - Under 75 words
"""


class KnowledgeBase(Protocol):
    """Source of the best-practice text blocks injected into system prompts."""

    def best_practices(self) -> str:
        ...

    def best_performing_patterns(self) -> str:
        ...


class StaticKnowledgeBase:
    """Knowledge base backed by in-memory strings."""

    def __init__(
        self,
        best_practices: str = DEFAULT_BEST_PRACTICES,
        best_performing_patterns: str = DEFAULT_BEST_PERFORMING_PATTERNS,
    ) -> None:
        self._best_practices = best_practices
        self._patterns = best_performing_patterns

    @classmethod
    def from_files(
        cls,
        best_practices_path: str | Path,
        patterns_path: str | Path | None = None,
    ) -> "StaticKnowledgeBase":
        """Load content from text files, keeping the built-in text for unreadable ones."""
        practices = _read_text(str(best_practices_path)) or DEFAULT_BEST_PRACTICES
        patterns = DEFAULT_BEST_PERFORMING_PATTERNS
        if patterns_path is not None:
            patterns = _read_text(str(patterns_path)) or DEFAULT_BEST_PERFORMING_PATTERNS
        return cls(best_practices=practices, best_performing_patterns=patterns)

    def best_practices(self) -> str:
        return self._best_practices

    def best_performing_patterns(self) -> str:
        return self._patterns


@functools.lru_cache(maxsize=16)
def _read_text(path: str) -> str | None:
    try:
        return Path(path).read_text(encoding="utf-8")
    except OSError:
        logger.warning("Could not read knowledge file %s; using built-in content", path, exc_info=True)
        return None
