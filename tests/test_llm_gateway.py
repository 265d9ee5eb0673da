"""Tests for the primary/fallback LLM gateway."""

from types import SimpleNamespace
from unittest.mock import AsyncMock

import pytest

from app.config import Settings
from app.core.exceptions import LLMUnavailableException
from app.services.llm import ChatCompletionProvider, LLMGateway

MESSAGES = [{"role": "system", "content": "prompt"}, {"role": "user", "content": "hi"}]


def completion_response(content):
    return SimpleNamespace(choices=[SimpleNamespace(message=SimpleNamespace(content=content))])


def fake_client(create):
    return SimpleNamespace(chat=SimpleNamespace(completions=SimpleNamespace(create=create)), close=AsyncMock())


def make_gateway(primary_create=None, fallback_create=None):
    primary = ChatCompletionProvider("groq", fake_client(primary_create) if primary_create else None, "llama")
    fallback = ChatCompletionProvider("openai", fake_client(fallback_create) if fallback_create else None, "gpt")
    return LLMGateway(primary, fallback, temperature=0.3, max_tokens=200)


@pytest.mark.asyncio
async def test_primary_serves_the_call():
    primary = AsyncMock(return_value=completion_response('{"replyText": "Hello"}'))
    fallback = AsyncMock()
    gateway = make_gateway(primary, fallback)

    completion = await gateway.complete(MESSAGES)

    assert completion.provider == "groq"
    assert completion.content == '{"replyText": "Hello"}'
    fallback.assert_not_awaited()
    kwargs = primary.await_args.kwargs
    assert kwargs["model"] == "llama"
    assert kwargs["response_format"] == {"type": "json_object"}
    assert kwargs["temperature"] == 0.3
    assert kwargs["max_tokens"] == 200


@pytest.mark.asyncio
async def test_falls_back_once_with_same_parameters():
    primary = AsyncMock(side_effect=RuntimeError("rate limited"))
    fallback = AsyncMock(return_value=completion_response('{"replyText": "Hi"}'))
    gateway = make_gateway(primary, fallback)

    completion = await gateway.complete(MESSAGES)

    assert completion.provider == "openai"
    fallback.assert_awaited_once()
    kwargs = fallback.await_args.kwargs
    assert kwargs["messages"] == MESSAGES
    assert kwargs["model"] == "gpt"
    assert kwargs["response_format"] == {"type": "json_object"}


@pytest.mark.asyncio
async def test_missing_primary_key_goes_to_fallback():
    fallback = AsyncMock(return_value=completion_response('{"replyText": "Hi"}'))
    gateway = make_gateway(None, fallback)

    completion = await gateway.complete(MESSAGES)

    assert completion.provider == "openai"


@pytest.mark.asyncio
async def test_response_without_choices_triggers_fallback():
    primary = AsyncMock(return_value=SimpleNamespace(choices=[]))
    fallback = AsyncMock(return_value=completion_response('{"replyText": "Hi"}'))
    gateway = make_gateway(primary, fallback)

    assert (await gateway.complete(MESSAGES)).provider == "openai"


@pytest.mark.asyncio
async def test_choice_without_message_triggers_fallback():
    primary = AsyncMock(return_value=SimpleNamespace(choices=[SimpleNamespace(message=None)]))
    fallback = AsyncMock(return_value=completion_response('{"replyText": "Hi"}'))
    gateway = make_gateway(primary, fallback)

    completion = await gateway.complete(MESSAGES)

    assert completion.provider == "openai"
    assert completion.content == '{"replyText": "Hi"}'
    fallback.assert_awaited_once()


@pytest.mark.asyncio
async def test_both_failing_is_unavailable():
    primary = AsyncMock(side_effect=RuntimeError("timeout"))
    fallback = AsyncMock(side_effect=RuntimeError("quota exceeded"))
    gateway = make_gateway(primary, fallback)

    with pytest.raises(LLMUnavailableException) as exc_info:
        await gateway.complete(MESSAGES)

    assert exc_info.value.status_code == 502
    assert "timeout" in exc_info.value.details["primary_error"]
    assert "quota exceeded" in exc_info.value.details["fallback_error"]
    primary.assert_awaited_once()
    fallback.assert_awaited_once()


@pytest.mark.asyncio
async def test_cleanup_closes_clients():
    gateway = make_gateway(AsyncMock(), AsyncMock())
    primary_client = gateway.primary._client
    fallback_client = gateway.fallback._client

    await gateway.cleanup()

    primary_client.close.assert_awaited_once()
    fallback_client.close.assert_awaited_once()
    assert not gateway.primary.is_configured


def test_from_settings_without_keys_is_unconfigured():
    gateway = LLMGateway.from_settings(Settings(_env_file=None, GROQ_API_KEY=None, OPENAI_API_KEY=None))
    assert not gateway.primary.is_configured
    assert not gateway.fallback.is_configured
    assert gateway.primary.model == "llama-3.1-8b-instant"
    assert gateway.fallback.model == "gpt-4o-mini"
