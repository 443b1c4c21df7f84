from datetime import UTC, datetime, timedelta
from unittest.mock import AsyncMock

import pytest

from relationship_engine.config import settings
from relationship_engine.features.contact_insights.domain.models import (
    ContactHistory,
    ContactRecord,
)
from relationship_engine.features.contact_insights.repository.contact_repository import (
    ContactNotFoundError,
)
from tests.factories import OWNER_EMAIL, make_contact, make_event


class FakeContactStore:
    """In-memory stand-in for ContactRepository reads and writes."""

    def __init__(self, contact: ContactRecord | None):
        self.contact = contact
        self.saved: list[tuple] = []
        self.notes: list[str] = []
        self.get_contact = AsyncMock(side_effect=self._get_contact)
        self.save_insights = AsyncMock(side_effect=self._save_insights)

    async def _get_contact(self, user_id, contact_identifier):
        return self.contact

    async def _save_insights(self, user_id, contact_identifier, insights, enriched_at):
        if self.contact is None:
            raise ContactNotFoundError(user_id, contact_identifier)
        self.saved.append((user_id, contact_identifier, insights))
        if insights.note_content:
            self.notes.append(insights.note_content)
        self.contact.lifecycle_stage = insights.lifecycle_stage
        self.contact.tags = list(insights.tags)
        self.contact.confidence_score = float(str(insights.confidence_score))
        self.contact.enriched_at = enriched_at
        self.contact.updated_at = enriched_at
        return self.contact.id


@pytest.fixture(autouse=True)
def _no_openai_key(monkeypatch):
    """Keep tests on the heuristic path unless a test opts into AI mode."""
    monkeypatch.setattr(settings, "OPENAI_API_KEY", None)
    monkeypatch.setattr(settings, "INSIGHTS_AI_ENABLED", True)


@pytest.fixture
def now():
    return datetime.now(UTC)


@pytest.fixture
def recent_events(now):
    return [make_event(now - timedelta(days=day)) for day in range(1, 7)]


@pytest.fixture
def contact_store():
    return FakeContactStore(make_contact())


@pytest.fixture
def engine_fakes(monkeypatch, contact_store):
    """
    Patch every collaborator of the insight service.

    Returns a dict of the installed fakes; history defaults to empty and
    the operating user owns OWNER_EMAIL.
    """
    module = "relationship_engine.features.contact_insights.services.insight_service"
    history = {"value": ContactHistory()}

    async def _load_history(user_id, **kwargs):
        return history["value"]

    async def _is_own_email(user_id, email):
        return bool(email) and email.lower() == OWNER_EMAIL

    load_mock = AsyncMock(side_effect=_load_history)
    own_email_mock = AsyncMock(side_effect=_is_own_email)

    monkeypatch.setattr(f"{module}.ContactRepository.get_contact", contact_store.get_contact)
    monkeypatch.setattr(f"{module}.ContactRepository.save_insights", contact_store.save_insights)
    monkeypatch.setattr(f"{module}.load_contact_history", load_mock)
    monkeypatch.setattr(f"{module}.is_own_email", own_email_mock)

    def set_history(events=(), messages=()):
        history["value"] = ContactHistory(events=list(events), messages=list(messages))

    return {
        "store": contact_store,
        "load_history": load_mock,
        "is_own_email": own_email_mock,
        "set_history": set_history,
    }
