"""Prompt assembly and knowledge-base content."""

from .assembler import ASSISTANT_PREFILLS, build_prompt, delimit, extract_delimited
from .knowledge import KnowledgeBase, StaticKnowledgeBase

__all__ = [
    "build_prompt",
    "delimit",
    "extract_delimited",
    "ASSISTANT_PREFILLS",
    "KnowledgeBase",
    "StaticKnowledgeBase",
]
