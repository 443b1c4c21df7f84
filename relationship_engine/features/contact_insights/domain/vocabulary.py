"""
Closed vocabularies for contact classification.

Every lifecycle stage and tag written to a contact record must come from
these tuples.
"""

DEFAULT_STAGE = "Prospect"

LIFECYCLE_STAGES: tuple[str, ...] = (
    "Prospect",
    "New Client",
    "Core Client",
    "Referring Client",
    "VIP Client",
    "Lost Client",
    "At Risk Client",
)

# Engagement tags emitted by heuristic analysis
CALENDAR_ACTIVE = "calendar-active"
EMAIL_ACTIVE = "email-active"
HIGH_ENGAGEMENT = "high-engagement"
MEETING_FOCUSED = "meeting-focused"
EMAIL_FOCUSED = "email-focused"

ENGAGEMENT_TAGS: tuple[str, ...] = (
    CALENDAR_ACTIVE,
    EMAIL_ACTIVE,
    HIGH_ENGAGEMENT,
    MEETING_FOCUSED,
    EMAIL_FOCUSED,
)

SERVICE_TAGS: tuple[str, ...] = (
    "Yoga",
    "Massage",
    "Meditation",
    "Pilates",
    "Reiki",
    "Acupuncture",
    "Personal Training",
    "Nutrition Coaching",
    "Life Coaching",
    "Therapy",
    "Workshops",
    "Retreats",
    "Group Classes",
    "Private Sessions",
)

DEMOGRAPHIC_TAGS: tuple[str, ...] = (
    "Senior",
    "Young Adult",
    "Professional",
    "Parent",
    "Student",
    "Beginner",
    "Intermediate",
    "Advanced",
    "VIP",
    "Local",
    "Traveler",
)

GOAL_TAGS: tuple[str, ...] = (
    "Stress Relief",
    "Weight Loss",
    "Flexibility",
    "Strength Building",
    "Pain Management",
    "Mental Health",
    "Spiritual Growth",
    "Mindfulness",
    "Athletic Performance",
    "Injury Recovery",
    "Prenatal",
    "Postnatal",
)

PATTERN_TAGS: tuple[str, ...] = (
    "Regular Attendee",
    "Weekend Warrior",
    "Early Bird",
    "Evening Preferred",
    "Seasonal Client",
    "Frequent Visitor",
    "Occasional Visitor",
    "High Spender",
    "Referral Source",
    "Social Media Active",
)

ALLOWED_TAGS: tuple[str, ...] = (
    SERVICE_TAGS + DEMOGRAPHIC_TAGS + GOAL_TAGS + PATTERN_TAGS + ENGAGEMENT_TAGS
)

_STAGE_SET = frozenset(LIFECYCLE_STAGES)
_TAG_SET = frozenset(ALLOWED_TAGS)


def is_valid_stage(value: object) -> bool:
    return isinstance(value, str) and value in _STAGE_SET


def is_allowed_tag(value: object) -> bool:
    return isinstance(value, str) and value in _TAG_SET
