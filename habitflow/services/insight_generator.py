"""
OpenAI adapter for AI insight generation.

Only knows how to turn (system prompt, user prompt) into a JSON object plus
the tokens spent. Caching, validation and timeouts live in the cache service.
"""

import json
from dataclasses import dataclass
from typing import Any, Dict, Optional, Protocol

import openai
from openai import AsyncOpenAI

from habitflow.core.config import settings
from habitflow.services.logger import logger


class InsightServiceNotConfiguredError(Exception):
    """No usable API credentials; retrying will not help."""


class InsightGenerationError(Exception):
    """The generation call failed or returned nothing usable."""


class MalformedInsightOutputError(InsightGenerationError):
    """The model answered, but not with the JSON shape we asked for."""


@dataclass
class GenerationResult:
    data: Dict[str, Any]
    tokens_used: int = 0


class InsightGenerator(Protocol):
    async def generate(
        self, system_prompt: str, user_prompt: str
    ) -> GenerationResult: ...


class OpenAIInsightGenerator:
    def __init__(
        self,
        api_key: Optional[str] = None,
        model: Optional[str] = None,
        max_tokens: Optional[int] = None,
        temperature: Optional[float] = None,
        client: Optional[AsyncOpenAI] = None,
    ):
        self.api_key = api_key if api_key is not None else settings.OPENAI_API_KEY
        self.model = model or settings.INSIGHTS_MODEL
        self.max_tokens = max_tokens or settings.INSIGHTS_MAX_OUTPUT_TOKENS
        self.temperature = (
            temperature if temperature is not None else settings.INSIGHTS_TEMPERATURE
        )
        self._client = client

    @property
    def client(self) -> AsyncOpenAI:
        if self._client is None:
            if not self.api_key:
                raise InsightServiceNotConfiguredError("OPENAI_API_KEY is not set")
            self._client = AsyncOpenAI(api_key=self.api_key)
        return self._client

    async def generate(self, system_prompt: str, user_prompt: str) -> GenerationResult:
        try:
            response = await self.client.chat.completions.create(
                model=self.model,
                messages=[
                    {"role": "system", "content": system_prompt},
                    {"role": "user", "content": user_prompt},
                ],
                temperature=self.temperature,
                max_tokens=self.max_tokens,
                response_format={"type": "json_object"},
            )
        except openai.AuthenticationError as e:
            raise InsightServiceNotConfiguredError(str(e)) from e
        except openai.APIError as e:
            raise InsightGenerationError(f"OpenAI request failed: {e}") from e

        content = response.choices[0].message.content if response.choices else None
        if not content:
            raise InsightGenerationError("No response from AI")

        try:
            data = json.loads(content)
        except json.JSONDecodeError as e:
            raise MalformedInsightOutputError(
                f"Failed to parse AI response as JSON: {e}"
            ) from e

        if not isinstance(data, dict):
            raise MalformedInsightOutputError(
                f"Expected a JSON object, got {type(data).__name__}"
            )

        tokens_used = response.usage.total_tokens if response.usage else 0
        logger.debug(
            "Insight generated",
            {"model": self.model, "tokens_used": tokens_used},
        )
        return GenerationResult(data=data, tokens_used=tokens_used)


# Singleton instance
_insight_generator: Optional[OpenAIInsightGenerator] = None


def get_insight_generator() -> OpenAIInsightGenerator:
    """Get singleton instance of OpenAIInsightGenerator."""
    global _insight_generator
    if _insight_generator is None:
        _insight_generator = OpenAIInsightGenerator()
    return _insight_generator
