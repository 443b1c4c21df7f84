"""
Repository helpers for loading a contact's interaction history.

Reads calendar events and Gmail interactions that involve one contact.
Read-only; both queries are bounded and ordered most recent first.
"""

import asyncio
from typing import Any

from relationship_engine.config import settings
from relationship_engine.db.helpers import fetch_all
from relationship_engine.features.contact_insights.domain.models import (
    CalendarEventRecord,
    ContactHistory,
    MessageRecord,
)
from relationship_engine.infrastructure.observability.logging import get_logger, mask_id

logger = get_logger(__name__)

OUTBOUND_LABELS = {"SENT", "DRAFT"}


def escape_like(value: str) -> str:
    """Escape LIKE wildcards so the value matches literally."""
    return value.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


class ContactHistoryRepository:
    """Raw SQL helpers for calendar and messaging history."""

    @staticmethod
    async def fetch_events(
        user_id: str, email: str | None, display_name: str | None, limit: int
    ) -> list[CalendarEventRecord]:
        if email:
            match_clause = """
              AND EXISTS (
                  SELECT 1
                  FROM jsonb_array_elements(ce.attendees) AS attendee
                  WHERE lower(attendee->>'email') = lower(%s)
              )
            """
            match_param = email
        elif display_name:
            # No resolvable email: fall back to a looser attendee text match
            match_clause = "AND ce.attendees::text ILIKE '%%' || %s || '%%' ESCAPE '\\'"
            match_param = escape_like(display_name)
        else:
            return []

        query = f"""
            SELECT
                ce.id,
                ce.title,
                ce.description,
                ce.location,
                ce.start_time,
                ce.end_time,
                ce.event_type,
                ce.business_category
            FROM calendar_events ce
            WHERE ce.user_id = %s
              AND ce.attendees IS NOT NULL
              AND jsonb_typeof(ce.attendees) = 'array'
              {match_clause}
            ORDER BY ce.start_time DESC
            LIMIT %s
        """

        rows = await fetch_all(query, (user_id, match_param, limit))
        return [_row_to_event(row) for row in rows]

    @staticmethod
    async def fetch_messages(
        user_id: str, contact_id: str | None, email: str | None, limit: int
    ) -> list[MessageRecord]:
        if email:
            query = """
                SELECT i.id, i.subject, i.body_text, i.occurred_at, i.source_id, i.source_meta
                FROM interactions i
                WHERE i.user_id = %s
                  AND i.source = 'gmail'
                  AND (
                      i.contact_id = %s
                      OR lower(i.source_meta->>'fromEmail') = lower(%s)
                      OR lower(i.source_meta->'extractedMetadata'->>'fromEmail') = lower(%s)
                      OR lower(%s) = ANY(
                          regexp_split_to_array(
                              lower(COALESCE(i.source_meta->>'toEmails', '')), '\\s*,\\s*'
                          )
                      )
                  )
                ORDER BY i.occurred_at DESC
                LIMIT %s
            """
            params: tuple = (user_id, contact_id, email, email, email, limit)
        elif contact_id:
            query = """
                SELECT i.id, i.subject, i.body_text, i.occurred_at, i.source_id, i.source_meta
                FROM interactions i
                WHERE i.user_id = %s
                  AND i.source = 'gmail'
                  AND i.contact_id = %s
                ORDER BY i.occurred_at DESC
                LIMIT %s
            """
            params = (user_id, contact_id, limit)
        else:
            return []

        rows = await fetch_all(query, params)
        return [_row_to_message(row) for row in rows]


async def load_contact_history(
    user_id: str,
    *,
    contact_id: str | None,
    email: str | None,
    display_name: str | None = None,
    limit: int | None = None,
) -> ContactHistory:
    """
    Load recent events and messages for a contact.

    The two reads are independent and issued concurrently.

    Args:
        user_id: Operating user
        contact_id: Contact row id, when resolved
        email: Contact's primary email, when known
        display_name: Used for a looser event match when email is missing
        limit: Per-source limit, defaults to settings.INSIGHTS_HISTORY_LIMIT
    """
    limit = limit or settings.INSIGHTS_HISTORY_LIMIT

    events, messages = await asyncio.gather(
        ContactHistoryRepository.fetch_events(user_id, email, display_name, limit),
        ContactHistoryRepository.fetch_messages(user_id, contact_id, email, limit),
    )

    logger.debug(
        "Contact history loaded",
        user_id=mask_id(user_id),
        contact_id=mask_id(contact_id),
        event_count=len(events),
        message_count=len(messages),
        limit=limit,
    )
    return ContactHistory(events=events, messages=messages)


def _row_to_event(row: dict[str, Any]) -> CalendarEventRecord:
    return CalendarEventRecord(
        event_id=str(row["id"]) if row.get("id") else None,
        title=row.get("title") or "",
        description=row.get("description"),
        location=row.get("location"),
        start_time=row["start_time"],
        end_time=row.get("end_time"),
        event_type=row.get("event_type"),
        business_category=row.get("business_category"),
    )


def _row_to_message(row: dict[str, Any]) -> MessageRecord:
    meta = row.get("source_meta") or {}
    return MessageRecord(
        message_id=str(row["id"]) if row.get("id") else None,
        subject=row.get("subject") or "",
        body_text=row.get("body_text") or "",
        occurred_at=row["occurred_at"],
        source_id=row.get("source_id"),
        direction="outbound" if is_outbound_message(meta) else "inbound",
        thread_id=extract_thread_id(meta),
        labels=extract_labels(meta),
    )


def _extracted(meta: Any) -> dict:
    if not isinstance(meta, dict):
        return {}
    nested = meta.get("extractedMetadata")
    return nested if isinstance(nested, dict) else {}


def is_outbound_message(meta: Any) -> bool:
    """Outbound when flagged in extracted metadata, else when labelled SENT/DRAFT."""
    if not isinstance(meta, dict):
        return False
    flag = _extracted(meta).get("isOutbound")
    if isinstance(flag, bool):
        return flag
    labels = meta.get("labelIds")
    if isinstance(labels, list):
        return any(isinstance(label, str) and label in OUTBOUND_LABELS for label in labels)
    return False


def extract_thread_id(meta: Any) -> str | None:
    if not isinstance(meta, dict):
        return None
    thread_id = meta.get("threadId") or _extracted(meta).get("threadId")
    return thread_id if isinstance(thread_id, str) and thread_id else None


def extract_labels(meta: Any) -> list[str]:
    if not isinstance(meta, dict):
        return []
    labels = meta.get("labelIds")
    if not isinstance(labels, list):
        labels = _extracted(meta).get("labels")
    if not isinstance(labels, list):
        return []
    return [label for label in labels if isinstance(label, str)]
