"""
Keyword-level content analysis of recent messages.

Reads subject and body text of the messages inside the recent window and
derives sentiment, intents, business context, urgency, a coarse
relationship stage and key topics. Feeds the AI prompt only; the heuristic
classification does not depend on it.
"""

from __future__ import annotations

import re
from collections import Counter
from collections.abc import Iterable, Sequence
from datetime import datetime, timedelta

from relationship_engine.features.contact_insights.domain.models import (
    BusinessContext,
    MessageContentInsights,
    MessageIntent,
    MessageRecord,
)

KeywordTable = tuple[tuple[re.Pattern[str], str], ...]


def _keywords(words: Iterable[str]) -> KeywordTable:
    return tuple(
        (re.compile(rf"\b{re.escape(word)}\b", re.IGNORECASE), word) for word in words
    )


def matched_keywords(text: str, table: KeywordTable) -> list[str]:
    """Keywords of the table that occur in text as whole words."""
    return [word for regex, word in table if regex.search(text)]


POSITIVE_KEYWORDS = _keywords(
    [
        "thank", "thanks", "great", "excellent", "pleased", "happy", "wonderful",
        "amazing", "perfect", "love", "loved", "appreciate", "appreciated",
        "joy", "peace", "peaceful", "calm", "relaxed", "centered", "balanced",
        "healing", "progress", "breakthrough", "transformation", "growth",
        "clarity", "mindful", "grateful", "blessed", "renewed", "energized",
        "vibrant", "harmony", "serenity", "empowered", "restored",
        "rejuvenated", "aligned", "grounded",
    ]
)

NEGATIVE_KEYWORDS = _keywords(
    [
        "problem", "issue", "concern", "disappointed", "frustrated", "urgent",
        "complaint", "error", "wrong", "bad", "pain", "sore", "stiff", "ache",
        "hurt", "tension", "stress", "stressed", "anxiety", "worried",
        "overwhelmed", "blocked", "stuck", "exhausted", "drained", "struggling",
        "difficulty", "challenge", "setback", "uncomfortable", "restless",
        "disconnected",
    ]
)

# Checked in this order; ties in confidence keep it.
INTENT_KEYWORDS: dict[str, KeywordTable] = {
    "complaint": _keywords(
        [
            "complaint", "problem", "issue", "not working", "disappointed",
            "frustrated", "refund", "not feeling better", "worse",
            "no improvement", "not helping", "side effects",
        ]
    ),
    "inquiry": _keywords(
        [
            "question", "wondering", "could you", "would you", "how to",
            "information about", "what should i expect", "is it normal",
            "can you explain", "should i be concerned", "when will i see",
        ]
    ),
    "recommendation": _keywords(
        [
            "recommend", "suggest", "should try", "might want", "consider",
            "advice", "have you tried", "might help", "could benefit from",
        ]
    ),
    "thank_you": _keywords(
        [
            "thank you", "thanks", "grateful", "appreciate", "thankful",
            "feeling so much better", "life changing",
        ]
    ),
    "follow_up": _keywords(
        [
            "follow up", "following up", "checking in", "any update", "status",
            "progress check", "next steps", "still experiencing",
        ]
    ),
    "meeting_request": _keywords(
        [
            "meeting", "call", "schedule", "available", "calendar",
            "appointment", "session", "consultation", "class", "booking",
            "reschedule", "next session",
        ]
    ),
    "proposal": _keywords(
        [
            "proposal", "offer", "quote", "pricing", "contract", "agreement",
            "treatment plan", "program", "package", "course", "workshop",
            "retreat",
        ]
    ),
    "support_request": _keywords(
        [
            "help", "support", "assistance", "trouble", "not sure how",
            "guidance", "struggling with", "need help with", "having difficulty",
            "feeling lost", "confused about",
        ]
    ),
}

BUSINESS_CONTEXT_KEYWORDS: dict[str, KeywordTable] = {
    "sales": _keywords(
        [
            "purchase", "buy", "price", "cost", "quote", "proposal", "deal",
            "contract", "package", "program", "course", "membership",
            "subscription", "payment plan",
        ]
    ),
    "support": _keywords(
        [
            "help", "support", "issue", "problem", "error", "not working",
            "guidance", "struggling", "difficulty", "setback", "plateau",
        ]
    ),
    "partnership": _keywords(
        [
            "partner", "collaboration", "joint", "alliance", "referral",
            "recommend you to", "work together", "holistic approach",
        ]
    ),
    "feedback": _keywords(
        [
            "feedback", "review", "opinion", "thoughts", "suggestion",
            "progress", "improvement", "results", "experience", "testimonial",
        ]
    ),
    "networking": _keywords(
        [
            "connect", "network", "introduction", "referral", "community",
            "circle", "like-minded",
        ]
    ),
    "project_collaboration": _keywords(
        [
            "project", "deadline", "milestone", "timeline", "treatment plan",
            "wellness journey", "healing process", "goals",
        ]
    ),
}

URGENT_KEYWORDS = _keywords(
    ["urgent", "asap", "immediately", "emergency", "critical", "deadline", "rush"]
)
MODERATE_URGENCY_KEYWORDS = _keywords(
    ["soon", "quickly", "priority", "important", "time-sensitive"]
)

FORMAL_KEYWORDS = _keywords(["dear", "sincerely", "best regards", "thank you for your time"])
CASUAL_KEYWORDS = _keywords(["hi", "hey", "thanks", "cheers", "talk soon"])
STRAINED_KEYWORDS = _keywords(
    ["disappointed", "frustrated", "unacceptable", "complaint", "escalate"]
)

TOPIC_KEYWORDS = _keywords(
    [
        "therapy", "session", "treatment", "healing", "meditation",
        "mindfulness", "massage", "acupuncture", "yoga", "pilates", "reiki",
        "counseling", "coaching", "pain", "tension", "stress", "anxiety",
        "fatigue", "energy", "sleep", "nutrition", "exercise", "breathing",
        "posture", "peace", "calm", "balance", "transformation", "growth",
        "clarity", "holistic", "wellness", "wellbeing", "health", "chakra",
        "appointment", "booking", "schedule", "class", "workshop", "retreat",
        "program",
    ]
)

MAX_INTENTS = 5
MAX_INTENT_EXAMPLES = 3
MAX_CONTEXTS = 3
MAX_CONTEXT_INDICATORS = 5
MAX_TOPICS = 5
SUMMARY_SUBJECTS = 5
EXAMPLE_CHARS = 100

CONTEXT_VALUE_RANK = {"high": 3, "medium": 2, "low": 1}


def sentiment_trend(texts: Sequence[str]) -> str:
    if not texts:
        return "neutral"
    positive = sum(len(matched_keywords(text, POSITIVE_KEYWORDS)) for text in texts)
    negative = sum(len(matched_keywords(text, NEGATIVE_KEYWORDS)) for text in texts)

    if positive > negative * 1.5:
        return "positive"
    if negative > positive * 1.5:
        return "negative"
    if positive and negative:
        return "mixed"
    return "neutral"


def detect_intents(messages: Sequence[MessageRecord]) -> list[MessageIntent]:
    intents: list[MessageIntent] = []
    if not messages:
        return intents

    for intent_type, table in INTENT_KEYWORDS.items():
        total = 0
        examples: list[str] = []
        for message in messages:
            matches = matched_keywords(message.text, table)
            total += len(matches)
            if matches:
                examples.append(message.subject or (message.body_text or "")[:EXAMPLE_CHARS])
        if total:
            intents.append(
                MessageIntent(
                    type=intent_type,
                    confidence=min(total / len(messages), 1.0),
                    examples=examples[:MAX_INTENT_EXAMPLES],
                )
            )

    intents.sort(key=lambda intent: intent.confidence, reverse=True)
    return intents[:MAX_INTENTS]


def identify_business_context(texts: Sequence[str]) -> list[BusinessContext]:
    contexts: list[BusinessContext] = []
    for category, table in BUSINESS_CONTEXT_KEYWORDS.items():
        indicators: list[str] = []
        for text in texts:
            indicators.extend(matched_keywords(text, table))
        if not indicators:
            continue

        count = len(indicators)
        value = "high" if count > 3 else "medium" if count > 1 else "low"
        contexts.append(
            BusinessContext(
                category=category,
                indicators=list(dict.fromkeys(indicators))[:MAX_CONTEXT_INDICATORS],
                value=value,
            )
        )

    contexts.sort(key=lambda context: CONTEXT_VALUE_RANK[context.value], reverse=True)
    return contexts[:MAX_CONTEXTS]


def urgency_level(texts: Sequence[str]) -> str:
    if any(matched_keywords(text, URGENT_KEYWORDS) for text in texts):
        return "high"
    if any(matched_keywords(text, MODERATE_URGENCY_KEYWORDS) for text in texts):
        return "medium"
    return "low"


def relationship_stage(texts: Sequence[str], total_messages: int) -> str:
    """Coarse stage of the written relationship, counted over all messages."""
    if total_messages < 3:
        return "initial"

    formal = sum(len(matched_keywords(text, FORMAL_KEYWORDS)) for text in texts)
    casual = sum(len(matched_keywords(text, CASUAL_KEYWORDS)) for text in texts)
    strained = sum(len(matched_keywords(text, STRAINED_KEYWORDS)) for text in texts)

    if strained:
        return "strained"
    if casual > formal and total_messages > 10:
        return "established"
    if total_messages > 5:
        return "developing"
    return "initial"


def key_topics(texts: Sequence[str]) -> list[str]:
    counts = Counter(topic for text in texts for topic in matched_keywords(text, TOPIC_KEYWORDS))
    ranked = sorted(counts.items(), key=lambda item: (-item[1], item[0]))
    return [topic for topic, _ in ranked[:MAX_TOPICS]]


def content_summary(newest_first: Sequence[MessageRecord]) -> str:
    if not newest_first:
        return "No recent email content available"
    subjects = [
        message.subject for message in newest_first[:SUMMARY_SUBJECTS] if message.subject
    ]
    if not subjects:
        return "Recent emails without clear subjects"
    return f"Recent communication topics: {', '.join(subjects)}"


def analyze_message_content(
    ordered: Sequence[MessageRecord], now: datetime, window: timedelta
) -> MessageContentInsights:
    """
    Analyze the content of the time-sorted messages inside the recent window.

    Args:
        ordered: All messages of the contact, oldest first
        now: Reference time for the recent window
        window: Length of the recent window

    Returns:
        MessageContentInsights; the empty default when there are no messages
    """
    if not ordered:
        return MessageContentInsights()

    recent = [
        message
        for message in reversed(ordered)
        if now - message.timestamp <= window and (message.subject or message.body_text)
    ]
    texts = [message.text for message in recent]

    return MessageContentInsights(
        sentiment_trend=sentiment_trend(texts),
        primary_intents=detect_intents(recent),
        business_context=identify_business_context(texts),
        urgency_level=urgency_level(texts),
        relationship_stage=relationship_stage(texts, len(ordered)),
        key_topics=key_topics(texts),
        recent_content_summary=content_summary(recent),
    )
