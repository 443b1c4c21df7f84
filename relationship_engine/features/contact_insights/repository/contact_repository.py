"""
Repository helpers for contact classification reads and writes.
"""

import json
import uuid
from datetime import datetime
from typing import Any

from psycopg.types.json import Jsonb

from relationship_engine.db.helpers import execute_query, fetch_all, fetch_one
from relationship_engine.db.pool import get_db_transaction
from relationship_engine.features.contact_insights.domain.models import (
    ContactInsights,
    ContactRecord,
)
from relationship_engine.infrastructure.observability.logging import get_logger, mask_id

logger = get_logger(__name__)

NOTE_TITLE = "AI insight"

_CONTACT_COLUMNS = """
    id,
    user_id,
    display_name,
    primary_email,
    lifecycle_stage,
    tags,
    confidence_score,
    enriched_at,
    updated_at
"""


class ContactNotFoundError(Exception):
    """Raised when a classification write matches no contact row."""

    def __init__(self, user_id: str, contact_identifier: str):
        super().__init__(f"Contact {contact_identifier} not found for user")
        self.user_id = user_id
        self.contact_identifier = contact_identifier


def is_contact_id(identifier: str) -> bool:
    try:
        uuid.UUID(str(identifier))
    except ValueError:
        return False
    return True


def _identifier_clause(identifier: str) -> str:
    if is_contact_id(identifier):
        return "id = %s"
    return "lower(primary_email) = lower(%s)"


class ContactRepository:
    """Raw SQL helpers over the contacts and notes tables."""

    @staticmethod
    async def get_contact(user_id: str, contact_identifier: str) -> ContactRecord | None:
        """Fetch a contact by id or by primary email."""
        query = f"""
            SELECT {_CONTACT_COLUMNS}
            FROM contacts
            WHERE user_id = %s
              AND {_identifier_clause(contact_identifier)}
            ORDER BY updated_at DESC NULLS LAST
            LIMIT 1
        """
        row = await fetch_one(query, (user_id, contact_identifier))
        return _row_to_contact(row) if row else None

    @staticmethod
    async def get_contacts_by_ids(user_id: str, contact_ids: list[str]) -> list[ContactRecord]:
        if not contact_ids:
            return []
        query = f"""
            SELECT {_CONTACT_COLUMNS}
            FROM contacts
            WHERE user_id = %s
              AND id = ANY(%s::uuid[])
            ORDER BY display_name ASC
        """
        rows = await fetch_all(query, (user_id, list(contact_ids)))
        return [_row_to_contact(row) for row in rows]

    @staticmethod
    async def list_contacts(user_id: str, limit: int, offset: int = 0) -> list[ContactRecord]:
        query = f"""
            SELECT {_CONTACT_COLUMNS}
            FROM contacts
            WHERE user_id = %s
            ORDER BY display_name ASC, id ASC
            LIMIT %s OFFSET %s
        """
        rows = await fetch_all(query, (user_id, limit, offset))
        return [_row_to_contact(row) for row in rows]

    @staticmethod
    async def save_insights(
        user_id: str,
        contact_identifier: str,
        insights: ContactInsights,
        enriched_at: datetime,
    ) -> str:
        """
        Overwrite the contact's classification and append the narrative note.

        Both writes happen in one transaction. Raises ContactNotFoundError
        (rolling back) when no row matches.

        Returns:
            The id of the updated contact
        """
        update_query = f"""
            UPDATE contacts
            SET lifecycle_stage = %s,
                tags = %s,
                confidence_score = %s,
                enriched_at = %s,
                updated_at = %s
            WHERE user_id = %s
              AND {_identifier_clause(contact_identifier)}
            RETURNING id
        """
        note_query = """
            INSERT INTO notes (user_id, contact_id, title, content)
            VALUES (%s, %s, %s, %s)
        """

        async with await get_db_transaction() as conn:
            row = await fetch_one(
                update_query,
                (
                    insights.lifecycle_stage,
                    Jsonb(list(insights.tags)),
                    str(insights.confidence_score),
                    enriched_at,
                    enriched_at,
                    user_id,
                    contact_identifier,
                ),
                connection=conn,
            )
            if not row:
                raise ContactNotFoundError(user_id, contact_identifier)

            contact_id = str(row["id"])
            if insights.note_content:
                await execute_query(
                    note_query,
                    (user_id, contact_id, NOTE_TITLE, insights.note_content),
                    connection=conn,
                )

        logger.info(
            "Contact classification saved",
            user_id=mask_id(user_id),
            contact_id=mask_id(contact_id),
            lifecycle_stage=insights.lifecycle_stage,
            tag_count=len(insights.tags),
            note_created=bool(insights.note_content),
        )
        return contact_id


def _parse_tags(raw: Any) -> list[str]:
    if isinstance(raw, str):
        try:
            raw = json.loads(raw)
        except ValueError:
            return []
    if not isinstance(raw, list):
        return []
    return [tag for tag in raw if isinstance(tag, str)]


def _parse_confidence(raw: Any) -> float | None:
    if raw is None or raw == "":
        return None
    try:
        return float(raw)
    except (TypeError, ValueError):
        return None


def _row_to_contact(row: dict[str, Any]) -> ContactRecord:
    return ContactRecord(
        id=str(row["id"]),
        user_id=str(row["user_id"]),
        display_name=row.get("display_name"),
        primary_email=row.get("primary_email"),
        lifecycle_stage=row.get("lifecycle_stage"),
        tags=_parse_tags(row.get("tags")),
        confidence_score=_parse_confidence(row.get("confidence_score")),
        enriched_at=row.get("enriched_at"),
        updated_at=row.get("updated_at"),
    )
