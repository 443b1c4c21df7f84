"""
Contact insight orchestration service.

Entry point of the relationship intelligence engine. Sequences the
self-reference guard, history load, staleness gate, pattern extraction,
analysis and persistence for one contact. Never raises to its caller: every
failure resolves to either a computed result or FALLBACK_INSIGHTS.
"""

import asyncio
from datetime import UTC, datetime

import psycopg

from relationship_engine.config import settings
from relationship_engine.db.helpers import DatabaseError
from relationship_engine.features.contact_insights.domain.models import (
    FALLBACK_INSIGHTS,
    ContactInsights,
    ContactRecord,
    InsightOptions,
    InsightOutcome,
)
from relationship_engine.features.contact_insights.pipeline.analysis.service import (
    AnalysisGenerator,
    analysis_generator,
)
from relationship_engine.features.contact_insights.pipeline.patterns.service import (
    PatternExtractionService,
    pattern_service,
)
from relationship_engine.features.contact_insights.repository.contact_repository import (
    ContactNotFoundError,
    ContactRepository,
)
from relationship_engine.features.contact_insights.repository.history_repository import (
    load_contact_history,
)
from relationship_engine.features.contact_insights.validation import (
    clamp_confidence,
    validate_stage,
    validate_tags,
)
from relationship_engine.infrastructure.observability.logging import (
    get_logger,
    mask_email,
    mask_id,
)
from relationship_engine.services.user_service import is_own_email

from .staleness import InsightCacheEntry

logger = get_logger(__name__)

InsightRun = tuple[ContactInsights, InsightOutcome]


def persisted_insights(contact: ContactRecord) -> ContactInsights:
    """
    Classification stored on the contact row, validated and with no note.

    The row may have been written by other paths, so stored values are not
    trusted as-is.
    """
    return ContactInsights(
        note_content="",
        lifecycle_stage=validate_stage(contact.lifecycle_stage),
        tags=tuple(validate_tags(contact.tags, settings.INSIGHTS_MAX_TAGS)),
        confidence_score=clamp_confidence(contact.confidence_score),
    )


class ContactInsightService:
    """Generates and maintains the classification of a single contact."""

    def __init__(
        self,
        generator: AnalysisGenerator | None = None,
        patterns: PatternExtractionService | None = None,
    ):
        self.generator = generator or analysis_generator
        self.patterns = patterns or pattern_service

    async def generate_contact_insights(
        self,
        user_id: str,
        contact_identifier: str,
        options: InsightOptions | None = None,
    ) -> ContactInsights:
        """
        Return the classification for a contact, recomputing it when stale.

        Args:
            user_id: Operating user
            contact_identifier: Contact id (UUID) or primary email
            options: force_refresh / fetch_only / per-source history limit

        Returns:
            A well-formed ContactInsights; FALLBACK_INSIGHTS on failure
        """
        insights, _ = await self.generate_contact_insights_with_outcome(
            user_id, contact_identifier, options
        )
        return insights

    async def generate_contact_insights_with_outcome(
        self,
        user_id: str,
        contact_identifier: str,
        options: InsightOptions | None = None,
    ) -> InsightRun:
        """Same as generate_contact_insights, also reporting how the result was produced."""
        options = options or InsightOptions()

        try:
            insights, outcome = await self._run(user_id, contact_identifier, options)
        except Exception as e:
            logger.error(
                "Contact insight generation failed",
                user_id=mask_id(user_id),
                contact=self._mask_identifier(contact_identifier),
                error=str(e),
                error_type=type(e).__name__,
            )
            return FALLBACK_INSIGHTS, InsightOutcome.FAILED

        logger.info(
            "Contact insights resolved",
            user_id=mask_id(user_id),
            contact=self._mask_identifier(contact_identifier),
            outcome=outcome.value,
            lifecycle_stage=insights.lifecycle_stage,
            tag_count=len(insights.tags),
        )
        return insights, outcome

    async def _run(
        self, user_id: str, contact_identifier: str, options: InsightOptions
    ) -> InsightRun:
        is_email = "@" in contact_identifier
        contact = await ContactRepository.get_contact(user_id, contact_identifier)

        if is_email:
            contact_email = contact_identifier
        else:
            contact_email = contact.primary_email if contact else None

        if await is_own_email(user_id, contact_email):
            return FALLBACK_INSIGHTS, InsightOutcome.SELF_REFERENCE

        if options.fetch_only:
            if contact and contact.watermark and contact.lifecycle_stage:
                return persisted_insights(contact), InsightOutcome.FETCH_ONLY
            return FALLBACK_INSIGHTS, InsightOutcome.FETCH_ONLY

        if contact is None and not is_email:
            logger.warning(
                "Contact not found",
                user_id=mask_id(user_id),
                contact_id=mask_id(contact_identifier),
            )
            return FALLBACK_INSIGHTS, InsightOutcome.FAILED

        history = await load_contact_history(
            user_id,
            contact_id=contact.id if contact else None,
            email=contact_email,
            display_name=contact.display_name if contact else None,
            limit=options.limit,
        )
        if history.is_empty:
            return FALLBACK_INSIGHTS, InsightOutcome.NO_HISTORY

        # A row without a stage was never classified, so there is nothing to serve
        if contact and contact.lifecycle_stage and not options.force_refresh:
            cache_entry = InsightCacheEntry(
                contact_id=contact.id,
                result=persisted_insights(contact),
                computed_at=contact.watermark,
            )
            if not cache_entry.is_stale(history.events, history.messages):
                return await self._serve_cached(user_id, contact_identifier)

        now = datetime.now(UTC)
        event_summary, message_summary = await asyncio.gather(
            asyncio.to_thread(self.patterns.analyze_event_patterns, history.events, now),
            asyncio.to_thread(self.patterns.analyze_message_patterns, history.messages, now),
        )

        insights, mode = await self.generator.generate(
            user_id, history.events, history.messages, event_summary, message_summary
        )
        logger.debug(
            "Contact analysis generated",
            user_id=mask_id(user_id),
            mode=mode.value,
            event_count=event_summary.total_count,
            message_count=message_summary.total_count,
        )

        target = contact.id if contact else contact_identifier
        try:
            await ContactRepository.save_insights(
                user_id, target, insights, enriched_at=datetime.now(UTC)
            )
        except ContactNotFoundError:
            logger.warning(
                "Contact disappeared before classification could be saved",
                user_id=mask_id(user_id),
                contact=self._mask_identifier(contact_identifier),
            )
            return FALLBACK_INSIGHTS, InsightOutcome.FAILED
        except (DatabaseError, psycopg.Error) as e:
            logger.error(
                "Failed to persist contact classification, returning unsaved result",
                user_id=mask_id(user_id),
                contact=self._mask_identifier(contact_identifier),
                error=str(e),
            )
            return insights, InsightOutcome.COMPUTED_UNPERSISTED

        return insights, InsightOutcome.COMPUTED

    async def _serve_cached(self, user_id: str, contact_identifier: str) -> InsightRun:
        contact = await ContactRepository.get_contact(user_id, contact_identifier)
        if contact is None:
            return FALLBACK_INSIGHTS, InsightOutcome.FAILED
        return persisted_insights(contact), InsightOutcome.CACHED

    @staticmethod
    def _mask_identifier(identifier: str) -> str | None:
        return mask_email(identifier) if "@" in identifier else mask_id(identifier)


contact_insight_service = ContactInsightService()


async def generate_contact_insights(
    user_id: str,
    contact_identifier: str,
    options: InsightOptions | None = None,
) -> ContactInsights:
    return await contact_insight_service.generate_contact_insights(
        user_id, contact_identifier, options
    )


async def generate_contact_insights_with_outcome(
    user_id: str,
    contact_identifier: str,
    options: InsightOptions | None = None,
) -> InsightRun:
    return await contact_insight_service.generate_contact_insights_with_outcome(
        user_id, contact_identifier, options
    )
