"""
Pattern extraction package.

Summarizes raw calendar and messaging history into aggregate statistics.
"""

from .content import analyze_message_content
from .service import (
    OTHER_LABEL,
    PatternExtractionService,
    classify_text,
    pattern_service,
)

__all__ = [
    "OTHER_LABEL",
    "PatternExtractionService",
    "analyze_message_content",
    "classify_text",
    "pattern_service",
]
