"""
Domain subpackage for the contact insights feature.
"""

from .models import (
    FALLBACK_INSIGHTS,
    BusinessContext,
    CalendarEventRecord,
    ContactHistory,
    ContactInsights,
    ContactRecord,
    EventPatternSummary,
    InsightOptions,
    InsightOutcome,
    MessageContentInsights,
    MessageIntent,
    MessagePatternSummary,
    MessageRecord,
    PatternSummary,
)

__all__ = [
    "FALLBACK_INSIGHTS",
    "BusinessContext",
    "CalendarEventRecord",
    "ContactHistory",
    "ContactInsights",
    "ContactRecord",
    "EventPatternSummary",
    "InsightOptions",
    "InsightOutcome",
    "MessageContentInsights",
    "MessageIntent",
    "MessagePatternSummary",
    "MessageRecord",
    "PatternSummary",
]
