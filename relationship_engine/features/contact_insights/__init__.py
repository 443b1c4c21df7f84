"""
Contact insights feature package.

This vertical slice keeps every layer of the relationship intelligence
engine co-located: domain models, validation, pattern extraction, analysis,
repositories, services and jobs.
"""

# Re-export the primary building blocks for easy access.
from .domain.models import (  # noqa: F401
    FALLBACK_INSIGHTS,
    ContactInsights,
    InsightOptions,
    InsightOutcome,
)
from .services.enrichment_service import (  # noqa: F401
    ContactEnrichmentService,
    contact_enrichment_service,
)
from .services.insight_service import (  # noqa: F401
    ContactInsightService,
    contact_insight_service,
    generate_contact_insights,
    generate_contact_insights_with_outcome,
)
