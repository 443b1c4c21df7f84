"""
Prompt construction for AI-augmented contact analysis.
"""

import json
from collections.abc import Sequence
from datetime import datetime
from typing import Any

from relationship_engine.features.contact_insights.domain.models import (
    CalendarEventRecord,
    EventPatternSummary,
    MessageContentInsights,
    MessagePatternSummary,
    MessageRecord,
    PatternSummary,
)
from relationship_engine.features.contact_insights.domain.vocabulary import (
    ALLOWED_TAGS,
    LIFECYCLE_STAGES,
)

BODY_PREVIEW_CHARS = 200
MAX_MESSAGE_LABELS = 3


def build_system_message(max_tags: int) -> str:
    """System message describing the task and the closed vocabularies."""
    stages = ", ".join(LIFECYCLE_STAGES)
    tags = ", ".join(ALLOWED_TAGS)
    return f"""### Role
You are a relationship analyst for a wellness practitioner. Review the interaction history with one contact and classify the relationship.

### Output Requirements
- Return ONLY valid JSON (no backticks, no prose, no markdown formatting)
- Output structure: {{"notes": string, "stage": string, "tags": [string], "confidenceScore": number}}
- "notes": 1-3 sentences of practical observations about this contact
- "stage": exactly one of: {stages}
- "tags": at most {max_tags} entries, each taken verbatim from: {tags}
- "confidenceScore": a number between 0.0 and 1.0 reflecting how much evidence supports the classification

### Rules
- Base every value on the provided history only
- Prefer fewer, well-supported tags over many speculative ones
- Use a low confidenceScore when the history is thin
"""


def _iso(value: datetime | None) -> str | None:
    return value.isoformat() if value else None


def _summary_payload(summary: PatternSummary) -> dict[str, Any]:
    return {
        "totalCount": summary.total_count,
        "recentCount": summary.recent_count,
        "categories": list(summary.categories),
        "firstTimestamp": _iso(summary.first_timestamp),
        "lastTimestamp": _iso(summary.last_timestamp),
        "relationshipDays": summary.relationship_days,
        "averagePerMonth": round(summary.average_items_per_month, 2),
    }


def _content_payload(content: MessageContentInsights) -> dict[str, Any]:
    return {
        "sentimentTrend": content.sentiment_trend,
        "primaryIntents": [
            {
                "type": intent.type,
                "confidence": round(intent.confidence, 2),
                "examples": list(intent.examples),
            }
            for intent in content.primary_intents
        ],
        "businessContext": [
            {
                "category": context.category,
                "indicators": list(context.indicators),
                "value": context.value,
            }
            for context in content.business_context
        ],
        "urgencyLevel": content.urgency_level,
        "relationshipStage": content.relationship_stage,
        "keyTopics": list(content.key_topics),
        "recentContentSummary": content.recent_content_summary,
    }


def _event_excerpt(event: CalendarEventRecord) -> dict[str, Any]:
    return {
        "title": event.title,
        "description": event.description,
        "date": _iso(event.timestamp),
        "type": event.event_type,
        "category": event.business_category,
        "location": event.location,
    }


def _message_excerpt(message: MessageRecord) -> dict[str, Any]:
    body = message.body_text or ""
    return {
        "subject": message.subject,
        "preview": body[:BODY_PREVIEW_CHARS],
        "date": _iso(message.timestamp),
        "direction": message.direction,
        "labels": list(message.labels[:MAX_MESSAGE_LABELS]),
    }


def build_user_message(
    events: Sequence[CalendarEventRecord],
    messages: Sequence[MessageRecord],
    event_summary: EventPatternSummary,
    message_summary: MessagePatternSummary,
    max_excerpts: int,
) -> str:
    """User message carrying the history excerpts and both pattern summaries."""
    event_data = _summary_payload(event_summary)
    event_data["eventTypes"] = list(event_summary.event_types)

    message_data = _summary_payload(message_summary)
    message_data.update(
        {
            "inboundCount": message_summary.inbound_count,
            "outboundCount": message_summary.outbound_count,
            "uniqueThreads": message_summary.unique_threads,
            "commonLabels": list(message_summary.common_labels),
            "responseRate": round(message_summary.response_rate, 2),
            "contentInsights": _content_payload(message_summary.content),
        }
    )

    return f"""### Calendar Summary
{json.dumps(event_data, indent=2)}

### Email Summary
{json.dumps(message_data, indent=2)}

### Recent Calendar Events
{json.dumps([_event_excerpt(event) for event in events[:max_excerpts]], indent=2)}

### Recent Emails
{json.dumps([_message_excerpt(message) for message in messages[:max_excerpts]], indent=2)}"""


def build_messages(
    events: Sequence[CalendarEventRecord],
    messages: Sequence[MessageRecord],
    event_summary: EventPatternSummary,
    message_summary: MessagePatternSummary,
    *,
    max_excerpts: int,
    max_tags: int,
) -> list[dict[str, str]]:
    return [
        {"role": "system", "content": build_system_message(max_tags)},
        {
            "role": "user",
            "content": build_user_message(
                events, messages, event_summary, message_summary, max_excerpts
            ),
        },
    ]
