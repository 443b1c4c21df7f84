"""
Staleness gate for persisted contact classifications.

A classification is cached against the contact's enrichment watermark and
stays valid until some loaded history item is strictly newer than it.
"""

from collections.abc import Iterable
from dataclasses import dataclass
from datetime import datetime

from relationship_engine.features.contact_insights.domain.models import (
    CalendarEventRecord,
    ContactInsights,
    MessageRecord,
    as_utc,
)


def has_new_data(
    watermark: datetime | None,
    events: Iterable[CalendarEventRecord],
    messages: Iterable[MessageRecord],
) -> bool:
    """True when any event or message is strictly newer than the watermark."""
    if watermark is None:
        return True
    watermark = as_utc(watermark)
    return any(event.timestamp > watermark for event in events) or any(
        message.timestamp > watermark for message in messages
    )


@dataclass(frozen=True, slots=True)
class InsightCacheEntry:
    """A persisted classification keyed by contact, with its computation time."""

    contact_id: str
    result: ContactInsights
    computed_at: datetime | None

    def is_stale(
        self,
        events: Iterable[CalendarEventRecord],
        messages: Iterable[MessageRecord],
    ) -> bool:
        return has_new_data(self.computed_at, events, messages)
