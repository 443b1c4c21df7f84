import random
from datetime import UTC, datetime, timedelta

import pytest

from relationship_engine.features.contact_insights.domain.models import (
    BusinessContext,
    MessageContentInsights,
)
from relationship_engine.features.contact_insights.pipeline.patterns.content import (
    CASUAL_KEYWORDS,
    matched_keywords,
    relationship_stage,
    sentiment_trend,
    urgency_level,
)
from relationship_engine.features.contact_insights.pipeline.patterns.service import (
    EVENT_CATEGORY_PATTERNS,
    MESSAGE_CATEGORY_PATTERNS,
    PatternExtractionService,
    classify_text,
)
from tests.factories import make_event, make_message

NOW = datetime(2024, 6, 30, 12, 0, tzinfo=UTC)


@pytest.fixture
def service():
    return PatternExtractionService()


def test_empty_event_list(service):
    summary = service.analyze_event_patterns([], now=NOW)

    assert summary.total_count == 0
    assert summary.recent_count == 0
    assert summary.categories == []
    assert summary.first_timestamp is None
    assert summary.last_timestamp is None
    assert summary.relationship_days == 0
    assert summary.average_items_per_month == 0


def test_single_item_has_zero_relationship_days(service):
    summary = service.analyze_event_patterns([make_event(NOW - timedelta(days=3))], now=NOW)

    assert summary.relationship_days == 0
    assert summary.average_items_per_month == 30.0


def test_average_per_month_linear_rate(service):
    events = [make_event(NOW - timedelta(days=2)), make_event(NOW)]

    summary = service.analyze_event_patterns(events, now=NOW)

    assert summary.relationship_days == 2
    assert summary.average_items_per_month == pytest.approx(30.0)


def test_summary_is_order_independent(service):
    events = [make_event(NOW - timedelta(days=offset, hours=offset)) for offset in range(0, 90, 9)]
    messages = [make_message(NOW - timedelta(days=offset)) for offset in range(0, 60, 7)]

    shuffled_events = events[:]
    shuffled_messages = messages[:]
    random.Random(7).shuffle(shuffled_events)
    random.Random(7).shuffle(shuffled_messages)

    for analyze, original, shuffled in (
        (service.analyze_event_patterns, events, shuffled_events),
        (service.analyze_message_patterns, messages, shuffled_messages),
    ):
        a = analyze(original, now=NOW)
        b = analyze(shuffled, now=NOW)
        assert a.first_timestamp == b.first_timestamp
        assert a.last_timestamp == b.last_timestamp
        assert a.relationship_days == b.relationship_days
        assert a.average_items_per_month == b.average_items_per_month
        assert a.categories == b.categories


def test_recent_count_uses_thirty_day_window(service):
    events = [
        make_event(NOW - timedelta(days=1)),
        make_event(NOW - timedelta(days=30)),
        make_event(NOW - timedelta(days=31)),
        make_event(NOW + timedelta(days=2)),
    ]

    summary = service.analyze_event_patterns(events, now=NOW)

    assert summary.recent_count == 3


def test_naive_timestamps_are_treated_as_utc(service):
    naive = datetime(2024, 6, 29, 12, 0)

    summary = service.analyze_event_patterns([make_event(naive)], now=NOW)

    assert summary.recent_count == 1
    assert summary.first_timestamp == naive.replace(tzinfo=UTC)


def test_event_categories_prefer_specific_phrases(service):
    events = [
        make_event(NOW - timedelta(days=3), title="Deep tissue session"),
        make_event(NOW - timedelta(days=2), title="Vinyasa flow"),
        make_event(NOW - timedelta(days=1), title="Coffee catch-up"),
    ]

    summary = service.analyze_event_patterns(events, now=NOW)

    assert summary.categories == ["Massage", "Yoga", "Other"]
    assert summary.event_types == ["Class", "Other"]


def test_pre_derived_category_wins_over_text(service):
    event = make_event(
        NOW, title="Yoga class", business_category="  massage ", event_type="workshop"
    )

    summary = service.analyze_event_patterns([event], now=NOW)

    assert summary.categories == ["Massage"]
    assert summary.event_types == ["Workshop"]


def test_word_boundary_matching():
    assert classify_text("Organized by Zenith Corp", EVENT_CATEGORY_PATTERNS) == "Other"
    assert classify_text("Zen garden walk", EVENT_CATEGORY_PATTERNS) == "Meditation"


def test_message_categories_and_direction_counts(service):
    messages = [
        make_message(NOW - timedelta(days=5), subject="Can I reschedule?", thread_id="t1"),
        make_message(
            NOW - timedelta(days=4),
            subject="Re: Can I reschedule?",
            direction="outbound",
            thread_id="t1",
            labels=["SENT", "IMPORTANT"],
        ),
        make_message(NOW - timedelta(days=3), subject="Invoice for May", labels=["IMPORTANT"]),
        make_message(NOW - timedelta(days=2), subject="Hello", body="Just saying hi"),
    ]

    summary = service.analyze_message_patterns(messages, now=NOW)

    assert summary.total_count == 4
    assert summary.inbound_count == 3
    assert summary.outbound_count == 1
    assert summary.unique_threads == 1
    assert summary.categories == ["Scheduling", "Billing", "Other"]
    assert summary.common_labels == ["IMPORTANT", "SENT"]


def test_message_phrase_beats_single_word():
    text = "I can't make it, please cancel my booking"
    assert classify_text(text, MESSAGE_CATEGORY_PATTERNS) == "Cancellation"


def test_response_rate_is_outbound_over_inbound(service):
    messages = [
        make_message(NOW - timedelta(days=3)),
        make_message(NOW - timedelta(days=2)),
        make_message(NOW - timedelta(days=1), direction="outbound"),
    ]

    assert service.analyze_message_patterns(messages, now=NOW).response_rate == 0.5


def test_response_rate_without_inbound_is_zero(service):
    messages = [make_message(NOW, direction="outbound")]

    assert service.analyze_message_patterns(messages, now=NOW).response_rate == 0.0


def test_empty_messages_have_default_content_insights(service):
    summary = service.analyze_message_patterns([], now=NOW)

    assert summary.content == MessageContentInsights()
    assert summary.content.recent_content_summary == "No email content available"


def test_content_insights_over_recent_messages(service):
    messages = [
        make_message(
            NOW - timedelta(days=45), subject="Urgent refund", body="I am frustrated"
        ),
        make_message(
            NOW - timedelta(days=6),
            subject="Thank you for the session",
            body="I feel so relaxed and grateful.",
        ),
        make_message(
            NOW - timedelta(days=4),
            subject="Quick question",
            body="Could you help me schedule my next session soon?",
        ),
        make_message(
            NOW - timedelta(days=2),
            subject="Re: Quick question",
            body="Happy to help, see you Tuesday.",
            direction="outbound",
        ),
    ]

    content = service.analyze_message_patterns(messages, now=NOW).content

    assert content.sentiment_trend == "positive"
    assert content.urgency_level == "medium"
    assert content.relationship_stage == "initial"
    assert [intent.type for intent in content.primary_intents] == [
        "inquiry",
        "meeting_request",
        "thank_you",
        "support_request",
    ]
    assert content.primary_intents[0].confidence == 1.0
    assert content.primary_intents[0].examples == ["Re: Quick question", "Quick question"]
    assert content.primary_intents[2].confidence == pytest.approx(2 / 3)
    assert content.business_context == [BusinessContext("support", ["help"], "medium")]
    assert content.key_topics == ["session", "schedule"]
    assert content.recent_content_summary == (
        "Recent communication topics: Re: Quick question, Quick question, "
        "Thank you for the session"
    )


def test_messages_outside_window_do_not_feed_content(service):
    messages = [make_message(NOW - timedelta(days=40), subject="URGENT", body="problem")]

    content = service.analyze_message_patterns(messages, now=NOW).content

    assert content.urgency_level == "low"
    assert content.sentiment_trend == "neutral"
    assert content.recent_content_summary == "No recent email content available"


@pytest.mark.parametrize(
    ("texts", "expected"),
    [
        ([], "neutral"),
        (["great session but still sore"], "mixed"),
        (["problem with the pain"], "negative"),
        (["wonderful, thanks"], "positive"),
    ],
)
def test_sentiment_trend(texts, expected):
    assert sentiment_trend(texts) == expected


@pytest.mark.parametrize(
    ("texts", "total", "expected"),
    [
        (["I am disappointed"], 2, "initial"),
        (["I am disappointed"], 5, "strained"),
        (["hey there", "cheers"], 11, "established"),
        (["Dear Sam"], 8, "developing"),
        (["Dear Sam"], 4, "initial"),
    ],
)
def test_relationship_stage(texts, total, expected):
    assert relationship_stage(texts, total) == expected


def test_keywords_match_whole_words_only():
    assert matched_keywords("this and that", CASUAL_KEYWORDS) == []
    assert matched_keywords("Hi there, cheers", CASUAL_KEYWORDS) == ["hi", "cheers"]
    assert urgency_level(["Please reply ASAP"]) == "high"
