"""
Bulk contact enrichment service.

Runs the insight engine over many contacts of one user, sequentially and
with a delay between contacts so the text-generation provider is not
flooded. Offers batch, streaming and statistics entry points.
"""

import asyncio
from collections.abc import AsyncIterator
from dataclasses import asdict, dataclass, field
from typing import Any

from relationship_engine.config import settings
from relationship_engine.features.contact_insights.domain.models import (
    ContactRecord,
    InsightOptions,
    InsightOutcome,
)
from relationship_engine.features.contact_insights.repository.contact_repository import (
    ContactRepository,
)
from relationship_engine.infrastructure.observability.logging import get_logger, mask_id

from .insight_service import ContactInsightService, contact_insight_service

logger = get_logger(__name__)

NO_CONTACTS_MESSAGE = "No contacts found to enrich"

OUTCOME_REASONS = {
    InsightOutcome.SELF_REFERENCE: "Contact is the account owner",
    InsightOutcome.NO_HISTORY: "No interaction history to analyze",
    InsightOutcome.CACHED: "Classification already up to date",
    InsightOutcome.FETCH_ONLY: "Classification not recomputed",
    InsightOutcome.COMPUTED_UNPERSISTED: "Classification could not be saved",
    InsightOutcome.FAILED: "Enrichment failed",
}


def _to_camel(name: str) -> str:
    head, *rest = name.split("_")
    return head + "".join(part.title() for part in rest)


@dataclass(slots=True)
class EnrichmentResult:
    enriched_count: int
    total_requested: int
    message: str
    errors: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {_to_camel(key): value for key, value in asdict(self).items()}


@dataclass(slots=True)
class EnrichmentProgress:
    """One event of a streaming enrichment run."""

    type: str  # start | progress | enriched | error | complete
    contact_id: str | None = None
    contact_name: str | None = None
    lifecycle_stage: str | None = None
    tags: list[str] | None = None
    confidence_score: float | None = None
    enriched_count: int | None = None
    total: int | None = None
    error: str | None = None
    message: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            _to_camel(key): value for key, value in asdict(self).items() if value is not None
        }


@dataclass(slots=True)
class EnrichmentStats:
    total_contacts: int = 0
    enriched_contacts: int = 0
    needs_enrichment: int = 0
    enrichment_percentage: int = 0

    def to_dict(self) -> dict[str, Any]:
        return {_to_camel(key): value for key, value in asdict(self).items()}


def completion_message(enriched: int, total: int) -> str:
    noun = "contact" if total == 1 else "contacts"
    return f"Successfully enriched {enriched} of {total} {noun} with AI insights"


def is_enriched(contact: ContactRecord) -> bool:
    return bool(
        contact.lifecycle_stage and contact.tags and contact.confidence_score is not None
    )


def _contact_label(contact: ContactRecord) -> str:
    return contact.display_name or contact.primary_email or contact.id


class ContactEnrichmentService:
    """Batch and streaming enrichment over a user's contacts."""

    def __init__(self, insight_service: ContactInsightService | None = None):
        self.insight_service = insight_service or contact_insight_service

    async def enrich_contacts_by_ids(
        self, user_id: str, contact_ids: list[str], delay_ms: int | None = None
    ) -> EnrichmentResult:
        """Recompute the classification of the listed contacts."""
        contacts = await ContactRepository.get_contacts_by_ids(user_id, contact_ids)
        if not contacts:
            return EnrichmentResult(
                enriched_count=0,
                total_requested=len(contact_ids),
                message=NO_CONTACTS_MESSAGE,
            )

        enriched, errors = await self._enrich_sequentially(user_id, contacts, delay_ms)

        logger.info(
            "Contact enrichment by ids completed",
            user_id=mask_id(user_id),
            requested_count=len(contact_ids),
            enriched_count=enriched,
            error_count=len(errors),
        )
        return EnrichmentResult(
            enriched_count=enriched,
            total_requested=len(contact_ids),
            message=completion_message(enriched, len(contact_ids)),
            errors=errors,
        )

    async def enrich_all_contacts(
        self, user_id: str, batch_size: int | None = None, delay_ms: int | None = None
    ) -> EnrichmentResult:
        """Recompute the classification of every contact of the user."""
        contacts = await self._list_all_contacts(user_id, batch_size)
        if not contacts:
            return EnrichmentResult(enriched_count=0, total_requested=0, message=NO_CONTACTS_MESSAGE)

        enriched, errors = await self._enrich_sequentially(user_id, contacts, delay_ms)

        logger.info(
            "Contact enrichment completed",
            user_id=mask_id(user_id),
            total_contacts=len(contacts),
            enriched_count=enriched,
            error_count=len(errors),
        )
        return EnrichmentResult(
            enriched_count=enriched,
            total_requested=len(contacts),
            message=completion_message(enriched, len(contacts)),
            errors=errors,
        )

    async def enrich_all_contacts_streaming(
        self, user_id: str, batch_size: int | None = None, delay_ms: int | None = None
    ) -> AsyncIterator[EnrichmentProgress]:
        """
        Enrich every contact, yielding progress events as work happens.

        A failure while listing contacts ends the stream with a single
        error event instead of raising.
        """
        try:
            contacts = await self._list_all_contacts(user_id, batch_size)
        except Exception as e:
            logger.error(
                "Streaming contact enrichment failed", user_id=mask_id(user_id), error=str(e)
            )
            yield EnrichmentProgress(type="error", error=str(e) or "Unknown error occurred")
            return

        total = len(contacts)
        yield EnrichmentProgress(type="start", total=total, message="Starting AI enrichment...")

        if total == 0:
            yield EnrichmentProgress(
                type="complete", enriched_count=0, total=0, message=NO_CONTACTS_MESSAGE
            )
            return

        enriched = 0
        errors = 0
        for index, contact in enumerate(contacts):
            if index:
                await self._pause(delay_ms)

            yield EnrichmentProgress(
                type="progress",
                contact_id=contact.id,
                contact_name=contact.display_name,
                enriched_count=enriched,
                total=total,
            )

            insights, outcome = await self._enrich_one(user_id, contact)
            if outcome is InsightOutcome.COMPUTED:
                enriched += 1
                yield EnrichmentProgress(
                    type="enriched",
                    contact_id=contact.id,
                    contact_name=contact.display_name,
                    lifecycle_stage=insights.lifecycle_stage,
                    tags=list(insights.tags),
                    confidence_score=insights.confidence_score,
                    enriched_count=enriched,
                    total=total,
                )
            else:
                errors += 1
                yield EnrichmentProgress(
                    type="error",
                    contact_id=contact.id,
                    contact_name=contact.display_name,
                    error=f"{_contact_label(contact)}: {OUTCOME_REASONS[outcome]}",
                )

        logger.info(
            "Streaming contact enrichment completed",
            user_id=mask_id(user_id),
            total_contacts=total,
            enriched_count=enriched,
            error_count=errors,
        )
        yield EnrichmentProgress(
            type="complete",
            enriched_count=enriched,
            total=total,
            message=completion_message(enriched, total),
        )

    async def contact_needs_enrichment(self, user_id: str, contact_id: str) -> bool:
        """True when the contact is missing its stage, tags or confidence."""
        try:
            contact = await ContactRepository.get_contact(user_id, contact_id)
        except Exception as e:
            logger.warning(
                "Failed to check if contact needs enrichment",
                user_id=mask_id(user_id),
                contact_id=mask_id(contact_id),
                error=str(e),
            )
            return False
        if contact is None:
            return False
        return not is_enriched(contact)

    async def get_enrichment_stats(self, user_id: str) -> EnrichmentStats:
        try:
            contacts = await self._list_all_contacts(user_id, None)
        except Exception as e:
            logger.error("Failed to get enrichment stats", user_id=mask_id(user_id), error=str(e))
            return EnrichmentStats()

        total = len(contacts)
        enriched = sum(1 for contact in contacts if is_enriched(contact))
        return EnrichmentStats(
            total_contacts=total,
            enriched_contacts=enriched,
            needs_enrichment=total - enriched,
            enrichment_percentage=round(enriched / total * 100) if total else 0,
        )

    async def _enrich_sequentially(
        self, user_id: str, contacts: list[ContactRecord], delay_ms: int | None
    ) -> tuple[int, list[str]]:
        enriched = 0
        errors: list[str] = []
        for index, contact in enumerate(contacts):
            if index:
                await self._pause(delay_ms)
            _, outcome = await self._enrich_one(user_id, contact)
            if outcome is InsightOutcome.COMPUTED:
                enriched += 1
            else:
                errors.append(f"{_contact_label(contact)}: {OUTCOME_REASONS[outcome]}")
        return enriched, errors

    async def _enrich_one(self, user_id: str, contact: ContactRecord):
        return await self.insight_service.generate_contact_insights_with_outcome(
            user_id, contact.id, InsightOptions(force_refresh=True)
        )

    @staticmethod
    async def _list_all_contacts(user_id: str, batch_size: int | None) -> list[ContactRecord]:
        batch_size = batch_size or settings.ENRICHMENT_BATCH_SIZE
        contacts: list[ContactRecord] = []
        offset = 0
        while True:
            page = await ContactRepository.list_contacts(user_id, batch_size, offset)
            contacts.extend(page)
            if len(page) < batch_size:
                return contacts
            offset += batch_size

    @staticmethod
    async def _pause(delay_ms: int | None) -> None:
        delay = settings.ENRICHMENT_DELAY_MS if delay_ms is None else delay_ms
        if delay > 0:
            await asyncio.sleep(delay / 1000)


contact_enrichment_service = ContactEnrichmentService()
