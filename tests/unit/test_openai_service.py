from types import SimpleNamespace
from unittest.mock import AsyncMock

import httpx
import openai
import pytest

from relationship_engine.config import settings
from relationship_engine.features.contact_insights.pipeline.analysis.service import (
    ContactIntelligenceResponse,
)
from relationship_engine.services import openai_service
from relationship_engine.services.openai_service import (
    GenerationFailed,
    GenerationOk,
    OpenAIService,
    TextGenerationError,
    get_openai_service,
)
from tests.factories import USER_ID

MESSAGES = [{"role": "user", "content": "classify"}]
REQUEST = httpx.Request("POST", "https://api.openai.com/v1/chat/completions")


def _client(content=None, error: Exception | None = None):
    response = SimpleNamespace(
        choices=[SimpleNamespace(message=SimpleNamespace(content=content))],
        usage=SimpleNamespace(total_tokens=42),
    )
    create = AsyncMock(side_effect=error) if error else AsyncMock(return_value=response)
    return SimpleNamespace(chat=SimpleNamespace(completions=SimpleNamespace(create=create)))


async def _generate(client):
    service = OpenAIService(client=client)
    return await service.generate(
        USER_ID, messages=MESSAGES, response_schema=ContactIntelligenceResponse
    )


@pytest.mark.asyncio
async def test_generate_returns_validated_model():
    client = _client('{"notes": "Steady client", "stage": "Core Client", "extra": 1}')

    result = await _generate(client)

    assert isinstance(result, GenerationOk)
    assert result.data.notes == "Steady client"
    assert result.data.stage == "Core Client"
    kwargs = client.chat.completions.create.await_args.kwargs
    assert kwargs["response_format"] == {"type": "json_object"}
    assert kwargs["model"] == settings.OPENAI_MODEL
    assert kwargs["messages"] == MESSAGES


@pytest.mark.asyncio
@pytest.mark.parametrize(
    ("content", "reason"),
    [
        ("not json at all", "invalid_response"),
        ('{"tags": "Yoga"}', "invalid_response"),
        ("", "empty_response"),
        (None, "empty_response"),
    ],
)
async def test_generate_rejects_bad_content(content, reason):
    result = await _generate(_client(content))

    assert isinstance(result, GenerationFailed)
    assert result.reason == reason


@pytest.mark.asyncio
@pytest.mark.parametrize(
    ("error", "reason"),
    [
        (openai.APITimeoutError(request=REQUEST), "timeout"),
        (
            openai.RateLimitError(
                "slow down", response=httpx.Response(429, request=REQUEST), body=None
            ),
            "rate_limited",
        ),
        (openai.APIConnectionError(request=REQUEST), "api_error"),
    ],
)
async def test_generate_maps_provider_errors(error, reason):
    result = await _generate(_client(error=error))

    assert isinstance(result, GenerationFailed)
    assert result.reason == reason
    assert result.error_type == type(error).__name__


def test_missing_api_key_is_a_configuration_error(monkeypatch):
    monkeypatch.setattr(settings, "OPENAI_API_KEY", None)

    with pytest.raises(TextGenerationError):
        OpenAIService()
    assert get_openai_service() is None


def test_shared_service_is_reused(monkeypatch):
    monkeypatch.setattr(settings, "OPENAI_API_KEY", "sk-test")
    monkeypatch.setattr(openai_service, "_openai_service", None)

    first = get_openai_service()
    second = get_openai_service()

    assert first is second
    assert first is not None
