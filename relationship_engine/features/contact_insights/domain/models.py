"""
Domain models for the contact insights feature.

Lightweight dataclasses shared by the repositories, the pattern extractors,
the analysis generator and the orchestrator. History records are read-only
snapshots; pattern summaries live only for one engine invocation.
"""

from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import Enum
from typing import Any

from .vocabulary import DEFAULT_STAGE


def as_utc(value: datetime) -> datetime:
    """Interpret naive timestamps as UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value


@dataclass(slots=True)
class CalendarEventRecord:
    """A calendar event the contact attended."""

    title: str
    start_time: datetime
    end_time: datetime | None = None
    description: str | None = None
    location: str | None = None
    event_type: str | None = None
    business_category: str | None = None
    event_id: str | None = None

    @property
    def timestamp(self) -> datetime:
        return as_utc(self.start_time)

    @property
    def text(self) -> str:
        return f"{self.title or ''} {self.description or ''}"


@dataclass(slots=True)
class MessageRecord:
    """A messaging interaction (email) with the contact."""

    subject: str
    body_text: str
    occurred_at: datetime
    direction: str = "inbound"  # "inbound" or "outbound"
    thread_id: str | None = None
    source_id: str | None = None
    labels: list[str] = field(default_factory=list)
    message_id: str | None = None

    @property
    def timestamp(self) -> datetime:
        return as_utc(self.occurred_at)

    @property
    def is_outbound(self) -> bool:
        return self.direction == "outbound"

    @property
    def text(self) -> str:
        return f"{self.subject or ''} {self.body_text or ''}"


@dataclass(slots=True)
class ContactHistory:
    """Bounded, recency-ordered history loaded for one contact."""

    events: list[CalendarEventRecord] = field(default_factory=list)
    messages: list[MessageRecord] = field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        return not self.events and not self.messages


@dataclass(slots=True)
class PatternSummary:
    """Aggregate statistics shared by event and message summaries."""

    total_count: int
    recent_count: int
    categories: list[str]
    first_timestamp: datetime | None
    last_timestamp: datetime | None
    relationship_days: int
    average_items_per_month: float


@dataclass(slots=True)
class EventPatternSummary(PatternSummary):
    event_types: list[str] = field(default_factory=list)


@dataclass(slots=True)
class MessageIntent:
    type: str
    confidence: float
    examples: list[str] = field(default_factory=list)


@dataclass(slots=True)
class BusinessContext:
    category: str
    indicators: list[str] = field(default_factory=list)
    value: str = "low"  # low | medium | high


@dataclass(slots=True)
class MessageContentInsights:
    """Keyword-level reading of the recent message content."""

    sentiment_trend: str = "neutral"  # positive | neutral | negative | mixed
    primary_intents: list[MessageIntent] = field(default_factory=list)
    business_context: list[BusinessContext] = field(default_factory=list)
    urgency_level: str = "low"  # low | medium | high
    relationship_stage: str = "initial"  # initial | developing | established | strained
    key_topics: list[str] = field(default_factory=list)
    recent_content_summary: str = "No email content available"


@dataclass(slots=True)
class MessagePatternSummary(PatternSummary):
    inbound_count: int = 0
    outbound_count: int = 0
    unique_threads: int = 0
    common_labels: list[str] = field(default_factory=list)
    response_rate: float = 0.0
    content: MessageContentInsights = field(default_factory=MessageContentInsights)


@dataclass(slots=True)
class ContactRecord:
    """The classification-relevant slice of a contacts row."""

    id: str
    user_id: str
    display_name: str | None
    primary_email: str | None
    lifecycle_stage: str | None
    tags: list[str]
    confidence_score: float | None
    enriched_at: datetime | None
    updated_at: datetime | None

    @property
    def watermark(self) -> datetime | None:
        """Timestamp of the last successful enrichment."""
        value = self.enriched_at or self.updated_at
        return as_utc(value) if value else None


@dataclass(frozen=True, slots=True)
class ContactInsights:
    """Classification produced (or served) by the engine."""

    note_content: str
    lifecycle_stage: str
    tags: tuple[str, ...]
    confidence_score: float

    def to_dict(self) -> dict[str, Any]:
        return {
            "noteContent": self.note_content,
            "lifecycleStage": self.lifecycle_stage,
            "tags": list(self.tags),
            "confidenceScore": self.confidence_score,
        }


FALLBACK_INSIGHTS = ContactInsights(
    note_content="Fallback",
    lifecycle_stage=DEFAULT_STAGE,
    tags=(),
    confidence_score=0.1,
)


@dataclass(frozen=True, slots=True)
class InsightOptions:
    force_refresh: bool = False
    fetch_only: bool = False
    limit: int | None = None


class InsightOutcome(str, Enum):
    SELF_REFERENCE = "self_reference"
    NO_HISTORY = "no_history"
    CACHED = "cached"
    FETCH_ONLY = "fetch_only"
    COMPUTED = "computed"
    COMPUTED_UNPERSISTED = "computed_unpersisted"
    FAILED = "failed"
