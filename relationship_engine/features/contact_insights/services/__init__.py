"""
Service layer for contact insights.
"""

from .enrichment_service import (
    ContactEnrichmentService,
    EnrichmentProgress,
    EnrichmentResult,
    EnrichmentStats,
    contact_enrichment_service,
)
from .insight_service import (
    ContactInsightService,
    contact_insight_service,
    generate_contact_insights,
    generate_contact_insights_with_outcome,
)
from .staleness import InsightCacheEntry, has_new_data

__all__ = [
    "ContactEnrichmentService",
    "ContactInsightService",
    "EnrichmentProgress",
    "EnrichmentResult",
    "EnrichmentStats",
    "InsightCacheEntry",
    "contact_enrichment_service",
    "contact_insight_service",
    "generate_contact_insights",
    "generate_contact_insights_with_outcome",
    "has_new_data",
]
