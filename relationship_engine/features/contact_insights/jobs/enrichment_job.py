"""
Contact enrichment job.

Recomputes the classification of every contact belonging to the user in
ENRICHMENT_USER_ID. Runs once inside the worker process and exits.
"""

from relationship_engine.config import settings
from relationship_engine.db.pool import db_pool
from relationship_engine.features.contact_insights.services.enrichment_service import (
    contact_enrichment_service,
)
from relationship_engine.infrastructure.observability.logging import get_logger, mask_id

logger = get_logger(__name__)


async def run_contact_enrichment(user_id: str | None = None) -> None:
    user_id = user_id or settings.ENRICHMENT_USER_ID
    if not user_id:
        logger.warning("Contact enrichment skipped - no user configured", flag="ENRICHMENT_USER_ID")
        return

    await db_pool.initialize()
    try:
        result = await contact_enrichment_service.enrich_all_contacts(
            user_id,
            batch_size=settings.ENRICHMENT_BATCH_SIZE,
            delay_ms=settings.ENRICHMENT_DELAY_MS,
        )
    finally:
        await db_pool.close()

    logger.info(
        "Contact enrichment job finished",
        user_id=mask_id(user_id),
        enriched_count=result.enriched_count,
        total_requested=result.total_requested,
        error_count=len(result.errors),
        message=result.message,
    )
