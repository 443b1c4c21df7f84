"""
Validation and clamping for classification values from untrusted sources.

Applied to AI-generated output and to values read back from the contacts
table, never to heuristic output.
"""

import math
from collections.abc import Iterable
from typing import Any

from .domain.vocabulary import DEFAULT_STAGE, is_allowed_tag, is_valid_stage

DEFAULT_MAX_TAGS = 8
DEFAULT_CONFIDENCE = 0.5


def validate_stage(raw: Any) -> str:
    """Return raw when it is a known lifecycle stage, else the default stage."""
    return raw if is_valid_stage(raw) else DEFAULT_STAGE


def validate_tags(raw: Any, max_tags: int = DEFAULT_MAX_TAGS) -> list[str]:
    """
    Filter raw tags down to the allowed vocabulary.

    Relative order is preserved, duplicates are dropped and the result is
    truncated to max_tags entries. Non-list input yields an empty list.
    """
    if raw is None or isinstance(raw, (str, bytes)) or not isinstance(raw, Iterable):
        return []

    tags: list[str] = []
    for tag in raw:
        if len(tags) >= max_tags:
            break
        if is_allowed_tag(tag) and tag not in tags:
            tags.append(tag)
    return tags


def clamp_confidence(raw: Any) -> float:
    """Clamp raw into [0.0, 1.0]; missing or non-numeric input becomes 0.5."""
    if raw is None or isinstance(raw, bool):
        return DEFAULT_CONFIDENCE
    try:
        value = float(raw)
    except (TypeError, ValueError):
        return DEFAULT_CONFIDENCE
    if math.isnan(value):
        return DEFAULT_CONFIDENCE
    return min(1.0, max(0.0, value))
