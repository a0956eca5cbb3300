"""Tests for the OpenAI insight generation adapter (OpenAI client mocked)."""

from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock

import httpx
import openai
import pytest

from habitflow.services.insight_generator import (
    InsightGenerationError,
    InsightServiceNotConfiguredError,
    MalformedInsightOutputError,
    OpenAIInsightGenerator,
)

OPENAI_URL = "https://api.openai.com/v1/chat/completions"


def _response(content, total_tokens=42):
    return SimpleNamespace(
        choices=[SimpleNamespace(message=SimpleNamespace(content=content))],
        usage=SimpleNamespace(total_tokens=total_tokens) if total_tokens else None,
    )


def _generator(**create_kwargs):
    client = MagicMock()
    client.chat.completions.create = AsyncMock(**create_kwargs)
    generator = OpenAIInsightGenerator(
        api_key="sk-test",
        model="gpt-4o-mini",
        max_tokens=1000,
        temperature=0.7,
        client=client,
    )
    return generator, client.chat.completions.create


@pytest.mark.asyncio
async def test_generate_returns_parsed_json_and_tokens():
    generator, create = _generator(return_value=_response('{"headline": "Nice"}'))

    result = await generator.generate("system", "user data")

    assert result.data == {"headline": "Nice"}
    assert result.tokens_used == 42

    kwargs = create.await_args.kwargs
    assert kwargs["model"] == "gpt-4o-mini"
    assert kwargs["max_tokens"] == 1000
    assert kwargs["temperature"] == 0.7
    assert kwargs["response_format"] == {"type": "json_object"}
    assert kwargs["messages"] == [
        {"role": "system", "content": "system"},
        {"role": "user", "content": "user data"},
    ]


@pytest.mark.asyncio
async def test_missing_usage_counts_zero_tokens():
    generator, _ = _generator(return_value=_response("{}", total_tokens=None))

    result = await generator.generate("system", "user")

    assert result.tokens_used == 0


@pytest.mark.asyncio
async def test_missing_api_key_is_not_configured():
    generator = OpenAIInsightGenerator(api_key="")

    with pytest.raises(InsightServiceNotConfiguredError):
        await generator.generate("system", "user")


@pytest.mark.asyncio
async def test_authentication_error_is_not_configured():
    error = openai.AuthenticationError(
        "Incorrect API key provided",
        response=httpx.Response(401, request=httpx.Request("POST", OPENAI_URL)),
        body=None,
    )
    generator, _ = _generator(side_effect=error)

    with pytest.raises(InsightServiceNotConfiguredError):
        await generator.generate("system", "user")


@pytest.mark.asyncio
async def test_transport_error_is_generation_error():
    error = openai.APIConnectionError(request=httpx.Request("POST", OPENAI_URL))
    generator, _ = _generator(side_effect=error)

    with pytest.raises(InsightGenerationError) as exc_info:
        await generator.generate("system", "user")

    assert not isinstance(exc_info.value, MalformedInsightOutputError)


@pytest.mark.asyncio
async def test_empty_content_is_generation_error():
    generator, _ = _generator(return_value=_response(None))

    with pytest.raises(InsightGenerationError, match="No response from AI"):
        await generator.generate("system", "user")


@pytest.mark.asyncio
@pytest.mark.parametrize("content", ["not json at all", "[1, 2, 3]"])
async def test_non_object_json_is_malformed(content):
    generator, _ = _generator(return_value=_response(content))

    with pytest.raises(MalformedInsightOutputError):
        await generator.generate("system", "user")
