"""
Analysis generation service.

Produces the final classification for a contact from its pattern summaries,
either through the text-generation service (AI mode) or from fixed
thresholds (heuristic mode). AI output is always validated before use and
any AI failure degrades to heuristic mode.
"""

from __future__ import annotations

from collections.abc import Sequence
from enum import Enum

from pydantic import BaseModel, ConfigDict

from relationship_engine.config import settings
from relationship_engine.features.contact_insights.domain.models import (
    CalendarEventRecord,
    ContactInsights,
    EventPatternSummary,
    MessagePatternSummary,
    MessageRecord,
)
from relationship_engine.features.contact_insights.domain.vocabulary import (
    CALENDAR_ACTIVE,
    DEFAULT_STAGE,
    EMAIL_ACTIVE,
    EMAIL_FOCUSED,
    HIGH_ENGAGEMENT,
    MEETING_FOCUSED,
)
from relationship_engine.features.contact_insights.validation import (
    clamp_confidence,
    validate_stage,
    validate_tags,
)
from relationship_engine.infrastructure.observability.logging import get_logger, mask_id
from relationship_engine.services.openai_service import GenerationFailed, get_openai_service

from .prompts import build_messages

logger = get_logger(__name__)

CORE_CLIENT_THRESHOLD = 5
NEW_CLIENT_THRESHOLD = 2
HIGH_ENGAGEMENT_THRESHOLD = 3
MIN_CONFIDENCE = 0.1
RECENT_ACTIVITY_BONUS = 0.3


class AnalysisMode(str, Enum):
    HEURISTIC = "heuristic"
    AI = "ai"


class ContactIntelligenceResponse(BaseModel):
    """JSON shape requested from the text-generation service."""

    model_config = ConfigDict(extra="ignore")

    notes: str | None = None
    stage: str | None = None
    tags: list[str] | None = None
    confidenceScore: float | None = None


def heuristic_insights(
    event_summary: EventPatternSummary, message_summary: MessagePatternSummary
) -> ContactInsights:
    """Deterministic classification computed from the two summaries alone."""
    total_events = event_summary.total_count
    total_messages = message_summary.total_count
    recent_activity = event_summary.recent_count + message_summary.recent_count

    if recent_activity > CORE_CLIENT_THRESHOLD:
        stage = "Core Client"
    elif recent_activity > NEW_CLIENT_THRESHOLD:
        stage = "New Client"
    else:
        stage = DEFAULT_STAGE

    tags: list[str] = []
    if total_events > 0:
        tags.append(CALENDAR_ACTIVE)
    if total_messages > 0:
        tags.append(EMAIL_ACTIVE)
    if recent_activity > HIGH_ENGAGEMENT_THRESHOLD:
        tags.append(HIGH_ENGAGEMENT)
    if total_events > total_messages:
        tags.append(MEETING_FOCUSED)
    elif total_messages > total_events:
        tags.append(EMAIL_FOCUSED)

    confidence = min(
        1.0,
        max(
            MIN_CONFIDENCE,
            (total_events + total_messages) / 10
            + (RECENT_ACTIVITY_BONUS if recent_activity > 0 else 0.0),
        ),
    )

    note = f"Contact with {total_events} calendar events and {total_messages} email interactions."
    if recent_activity > 0:
        note += f" {recent_activity} interactions in the last 30 days."
    else:
        note += " No recent activity."

    return ContactInsights(
        note_content=note,
        lifecycle_stage=stage,
        tags=tuple(tags),
        confidence_score=confidence,
    )


def insights_from_response(
    response: ContactIntelligenceResponse,
    event_summary: EventPatternSummary,
    message_summary: MessagePatternSummary,
    max_tags: int,
) -> ContactInsights:
    """Validate and clamp every field of an AI response."""
    note = (response.notes or "").strip()
    if not note:
        note = (
            f"Contact with {event_summary.total_count} calendar events and "
            f"{message_summary.total_count} email interactions"
        )
    return ContactInsights(
        note_content=note,
        lifecycle_stage=validate_stage(response.stage),
        tags=tuple(validate_tags(response.tags, max_tags)),
        confidence_score=clamp_confidence(response.confidenceScore),
    )


class AnalysisGenerator:
    """Chooses between AI and heuristic analysis for one contact."""

    def should_use_ai(
        self, event_summary: EventPatternSummary, message_summary: MessagePatternSummary
    ) -> bool:
        total = event_summary.total_count + message_summary.total_count
        return settings.ai_configured() and total >= settings.INSIGHTS_MIN_INTERACTIONS_FOR_AI

    async def generate(
        self,
        user_id: str,
        events: Sequence[CalendarEventRecord],
        messages: Sequence[MessageRecord],
        event_summary: EventPatternSummary,
        message_summary: MessagePatternSummary,
    ) -> tuple[ContactInsights, AnalysisMode]:
        """
        Produce the classification and report which mode produced it.

        Never raises for AI-side failures; those fall back to heuristic mode.
        """
        if not self.should_use_ai(event_summary, message_summary):
            return heuristic_insights(event_summary, message_summary), AnalysisMode.HEURISTIC

        try:
            insights = await self._generate_with_ai(
                user_id, events, messages, event_summary, message_summary
            )
        except Exception as e:
            logger.warning(
                "AI analysis raised, using heuristic analysis",
                user_id=mask_id(user_id),
                error=str(e),
                error_type=type(e).__name__,
            )
            insights = None

        if insights is None:
            return heuristic_insights(event_summary, message_summary), AnalysisMode.HEURISTIC
        return insights, AnalysisMode.AI

    async def _generate_with_ai(
        self,
        user_id: str,
        events: Sequence[CalendarEventRecord],
        messages: Sequence[MessageRecord],
        event_summary: EventPatternSummary,
        message_summary: MessagePatternSummary,
    ) -> ContactInsights | None:
        service = get_openai_service()
        if service is None:
            return None

        max_tags = settings.INSIGHTS_MAX_TAGS
        prompt = build_messages(
            events,
            messages,
            event_summary,
            message_summary,
            max_excerpts=settings.INSIGHTS_PROMPT_EXCERPTS,
            max_tags=max_tags,
        )
        result = await service.generate(
            user_id,
            messages=prompt,
            response_schema=ContactIntelligenceResponse,
        )

        if isinstance(result, GenerationFailed):
            logger.warning(
                "AI analysis failed, using heuristic analysis",
                user_id=mask_id(user_id),
                reason=result.reason,
                error_type=result.error_type,
            )
            return None

        return insights_from_response(result.data, event_summary, message_summary, max_tags)


analysis_generator = AnalysisGenerator()
