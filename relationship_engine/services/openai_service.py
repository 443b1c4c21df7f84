"""
OpenAI text-generation service.

Sends a structured prompt to the chat completions API in JSON mode and
validates the reply against a pydantic response schema. Runtime failures are
returned as GenerationFailed rather than raised; timeouts and transport
retries are handled by the OpenAI SDK client.
"""

from dataclasses import dataclass
from typing import Any, Generic, TypeVar

import openai
from openai import AsyncOpenAI
from pydantic import BaseModel, ValidationError

from relationship_engine.config import settings
from relationship_engine.infrastructure.observability.logging import get_logger, mask_id

logger = get_logger(__name__)

SchemaT = TypeVar("SchemaT", bound=BaseModel)


class TextGenerationError(Exception):
    """Raised when the text-generation service cannot be constructed."""

    def __init__(self, message: str, recoverable: bool = False):
        super().__init__(message)
        self.recoverable = recoverable


@dataclass(frozen=True)
class GenerationOk(Generic[SchemaT]):
    data: SchemaT


@dataclass(frozen=True)
class GenerationFailed:
    reason: str
    error_type: str | None = None


GenerationResult = GenerationOk | GenerationFailed


class OpenAIService:
    """Thin async wrapper over the OpenAI chat completions API."""

    def __init__(self, client: AsyncOpenAI | None = None):
        self.client = client or self._initialize_client()

    def _initialize_client(self) -> AsyncOpenAI:
        """Initialize OpenAI async client with configuration."""
        if not settings.OPENAI_API_KEY:
            raise TextGenerationError("OPENAI_API_KEY not configured in settings")

        client = AsyncOpenAI(
            api_key=settings.OPENAI_API_KEY,
            timeout=settings.OPENAI_TIMEOUT_SECONDS,
            max_retries=settings.OPENAI_MAX_RETRIES,
        )
        logger.info(
            "OpenAI client initialized",
            model=settings.OPENAI_MODEL,
            timeout=settings.OPENAI_TIMEOUT_SECONDS,
        )
        return client

    async def generate(
        self,
        user_id: str,
        *,
        messages: list[dict[str, Any]],
        response_schema: type[SchemaT],
        model: str | None = None,
        temperature: float | None = None,
        max_tokens: int | None = None,
    ) -> GenerationOk[SchemaT] | GenerationFailed:
        """
        Generate a structured result for the given chat messages.

        Args:
            user_id: Operating user, for logging only
            messages: Chat messages ({"role", "content"} dicts)
            response_schema: Pydantic model the JSON reply must satisfy
            model: Model override, defaults to settings.OPENAI_MODEL

        Returns:
            GenerationOk with the validated model, or GenerationFailed
        """
        model = model or settings.OPENAI_MODEL

        try:
            response = await self.client.chat.completions.create(
                model=model,
                messages=messages,
                temperature=settings.OPENAI_TEMPERATURE if temperature is None else temperature,
                max_tokens=max_tokens or settings.OPENAI_MAX_TOKENS,
                response_format={"type": "json_object"},
            )
        except openai.APITimeoutError as e:
            logger.warning("OpenAI request timed out", user_id=mask_id(user_id), error=str(e))
            return GenerationFailed("timeout", type(e).__name__)
        except openai.RateLimitError as e:
            logger.warning("OpenAI rate limit hit", user_id=mask_id(user_id), error=str(e))
            return GenerationFailed("rate_limited", type(e).__name__)
        except openai.APIError as e:
            logger.warning("OpenAI API error", user_id=mask_id(user_id), error=str(e))
            return GenerationFailed("api_error", type(e).__name__)

        if not response.choices or not response.choices[0].message.content:
            return GenerationFailed("empty_response")

        content = response.choices[0].message.content.strip()

        try:
            data = response_schema.model_validate_json(content)
        except ValidationError as e:
            logger.warning(
                "OpenAI response failed schema validation",
                user_id=mask_id(user_id),
                schema=response_schema.__name__,
                error_count=e.error_count(),
            )
            return GenerationFailed("invalid_response", type(e).__name__)

        logger.info(
            "OpenAI generation succeeded",
            user_id=mask_id(user_id),
            model=model,
            response_length=len(content),
            usage_tokens=response.usage.total_tokens if response.usage else 0,
        )
        return GenerationOk(data)


_openai_service: OpenAIService | None = None


def get_openai_service() -> OpenAIService | None:
    """Shared service instance, or None when no API key is configured."""
    global _openai_service
    if not settings.OPENAI_API_KEY:
        return None
    if _openai_service is None:
        _openai_service = OpenAIService()
    return _openai_service
