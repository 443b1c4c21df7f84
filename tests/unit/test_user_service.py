from unittest.mock import AsyncMock

import pytest

from relationship_engine.services.user_service import get_user_email, is_own_email
from tests.factories import USER_ID

MODULE = "relationship_engine.services.user_service"


@pytest.mark.asyncio
async def test_get_user_email(monkeypatch):
    fetch_mock = AsyncMock(return_value={"email": "owner@example.com"})
    monkeypatch.setattr(f"{MODULE}.fetch_one", fetch_mock)

    assert await get_user_email(USER_ID) == "owner@example.com"
    query, params = fetch_mock.await_args.args
    assert "is_active = true" in query
    assert params == (USER_ID,)


@pytest.mark.asyncio
async def test_get_user_email_missing_user(monkeypatch):
    monkeypatch.setattr(f"{MODULE}.fetch_one", AsyncMock(return_value=None))

    assert await get_user_email(USER_ID) is None


@pytest.mark.asyncio
@pytest.mark.parametrize(
    ("email", "expected"),
    [
        ("Owner@Example.com", True),
        (" owner@example.com ", True),
        ("client@example.com", False),
        (None, False),
        ("", False),
    ],
)
async def test_is_own_email_is_case_insensitive(monkeypatch, email, expected):
    monkeypatch.setattr(f"{MODULE}.get_user_email", AsyncMock(return_value="owner@example.com"))

    assert await is_own_email(USER_ID, email) is expected


@pytest.mark.asyncio
async def test_is_own_email_unknown_user(monkeypatch):
    monkeypatch.setattr(f"{MODULE}.get_user_email", AsyncMock(return_value=None))

    assert await is_own_email(USER_ID, "owner@example.com") is False
