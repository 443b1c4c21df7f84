"""
Pattern extraction service.

Turns raw calendar events and messages for one contact into aggregate
statistics and categorical labels. Pure computation, no I/O.
"""

from __future__ import annotations

import re
from collections import Counter
from collections.abc import Callable, Iterable, Sequence
from datetime import UTC, datetime, timedelta
from typing import Any, Protocol

from relationship_engine.config import settings
from relationship_engine.features.contact_insights.domain.models import (
    CalendarEventRecord,
    EventPatternSummary,
    MessagePatternSummary,
    MessageRecord,
)

from .content import analyze_message_content

OTHER_LABEL = "Other"

PatternTable = tuple[tuple[re.Pattern[str], str], ...]


def _compile(entries: Sequence[tuple[str, str]]) -> PatternTable:
    return tuple(
        (re.compile(rf"\b(?:{pattern})\b", re.IGNORECASE), label) for pattern, label in entries
    )


# Ordered: multi-word phrases are checked before the generic single words.
EVENT_CATEGORY_PATTERNS = _compile(
    [
        (r"power yoga|yin yoga", "Yoga"),
        (r"deep tissue|hot stone", "Massage"),
        (r"mat pilates", "Pilates"),
        (r"energy healing", "Reiki"),
        (r"health coaching", "Nutrition"),
        (r"mental health", "Therapy"),
        (r"yoga|asana|vinyasa|hatha|bikram", "Yoga"),
        (r"massage|therapeutic|swedish|aromatherapy", "Massage"),
        (r"meditation|mindfulness|zen|breathing|breathwork", "Meditation"),
        (r"pilates|reformer", "Pilates"),
        (r"reiki|chakra", "Reiki"),
        (r"acupuncture|needle|tcm", "Acupuncture"),
        (r"nutrition|diet", "Nutrition"),
        (r"therapy|counseling|counselling", "Therapy"),
        (r"fitness|training|workout|gym", "Fitness"),
    ]
)

EVENT_TYPE_PATTERNS = _compile(
    [
        (r"private session|one on one|1-on-1|discovery call", "Appointment"),
        (r"teacher training", "Workshop"),
        (r"workshop|seminar|training", "Workshop"),
        (r"appointment|consultation|private", "Appointment"),
        (r"retreat|getaway", "Retreat"),
        (r"class|lesson|session", "Class"),
        (r"meeting|discussion|planning|call", "Meeting"),
    ]
)

MESSAGE_CATEGORY_PATTERNS = _compile(
    [
        (r"book a session|book an appointment|schedule a call|set up a time", "Scheduling"),
        (r"can't make it|cannot make it|cancel my", "Cancellation"),
        (r"referred by|recommended you|a friend of", "Referral"),
        (r"thank you", "Feedback"),
        (r"reschedule|schedule|booking|appointment|availability", "Scheduling"),
        (r"cancel|cancellation|cancelled|canceled", "Cancellation"),
        (r"invoice|payment|receipt|billing|refund|package", "Billing"),
        (r"referral|refer", "Referral"),
        (r"thanks|feedback|review|loved|enjoyed", "Feedback"),
        (r"question|inquiry|enquiry|wondering|interested|pricing", "Inquiry"),
    ]
)


def classify_text(text: str, patterns: PatternTable) -> str:
    """Return the label of the first matching pattern, or "Other"."""
    for regex, label in patterns:
        if regex.search(text):
            return label
    return OTHER_LABEL


class _Timestamped(Protocol):
    @property
    def timestamp(self) -> datetime: ...


def _dedupe(values: Iterable[str]) -> list[str]:
    seen: list[str] = []
    for value in values:
        if value not in seen:
            seen.append(value)
    return seen


class PatternExtractionService:
    """Builds event and message pattern summaries for one contact."""

    MONTH_DAYS = 30
    COMMON_LABEL_LIMIT = 10

    def analyze_event_patterns(
        self, events: Sequence[CalendarEventRecord], now: datetime | None = None
    ) -> EventPatternSummary:
        ordered = sorted(events, key=lambda event: event.timestamp)
        base = self._summarize(ordered, self._event_category, now)
        return EventPatternSummary(
            **base,
            event_types=_dedupe(self._event_type(event) for event in ordered),
        )

    def analyze_message_patterns(
        self, messages: Sequence[MessageRecord], now: datetime | None = None
    ) -> MessagePatternSummary:
        now = now or datetime.now(UTC)
        ordered = sorted(messages, key=lambda message: message.timestamp)
        base = self._summarize(
            ordered,
            lambda message: classify_text(message.text, MESSAGE_CATEGORY_PATTERNS),
            now,
        )

        outbound = sum(1 for message in ordered if message.is_outbound)
        inbound = len(ordered) - outbound
        threads = {message.thread_id for message in ordered if message.thread_id}
        label_counts = Counter(label for message in ordered for label in message.labels)
        common_labels = [
            label
            for label, _ in sorted(label_counts.items(), key=lambda item: (-item[1], item[0]))
        ][: self.COMMON_LABEL_LIMIT]

        return MessagePatternSummary(
            **base,
            inbound_count=inbound,
            outbound_count=outbound,
            unique_threads=len(threads),
            common_labels=common_labels,
            response_rate=outbound / inbound if inbound else 0.0,
            content=analyze_message_content(
                ordered, now, timedelta(days=settings.INSIGHTS_RECENT_WINDOW_DAYS)
            ),
        )

    def _summarize(
        self,
        ordered: Sequence[_Timestamped],
        classify: Callable[[Any], str],
        now: datetime | None,
    ) -> dict[str, Any]:
        """Common statistics over a time-sorted item list."""
        now = now or datetime.now(UTC)
        window = timedelta(days=settings.INSIGHTS_RECENT_WINDOW_DAYS)

        total = len(ordered)
        recent = sum(1 for item in ordered if now - item.timestamp <= window)

        first = ordered[0].timestamp if ordered else None
        last = ordered[-1].timestamp if ordered else None

        relationship_days = 0
        if total >= 2 and first and last and last > first:
            relationship_days = (last - first).days

        # Linear-rate estimate kept for compatibility with stored scores;
        # not a calendar-month bucket average.
        average_per_month = total * (self.MONTH_DAYS / max(relationship_days, 1))

        return {
            "total_count": total,
            "recent_count": recent,
            "categories": _dedupe(classify(item) for item in ordered),
            "first_timestamp": first,
            "last_timestamp": last,
            "relationship_days": relationship_days,
            "average_items_per_month": average_per_month,
        }

    @staticmethod
    def _event_category(event: CalendarEventRecord) -> str:
        if event.business_category and event.business_category.strip():
            return event.business_category.strip().title()
        return classify_text(event.text, EVENT_CATEGORY_PATTERNS)

    @staticmethod
    def _event_type(event: CalendarEventRecord) -> str:
        if event.event_type and event.event_type.strip():
            return event.event_type.strip().title()
        return classify_text(event.text, EVENT_TYPE_PATTERNS)


pattern_service = PatternExtractionService()
