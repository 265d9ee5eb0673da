"""
LLM Gateway using Groq with an OpenAI fallback.
Every turn asks for a JSON object; the caller learns which provider answered.
"""

import logging
import time
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

from app.config import Settings, get_settings
from app.core.exceptions import LLMProviderException, LLMUnavailableException

logger = logging.getLogger(__name__)
settings = get_settings()


@dataclass
class LLMCompletion:
    """Response from a chat completion, tagged with the provider that produced it."""
    content: Optional[str]
    provider: str
    processing_time_ms: Optional[float] = None


class ChatCompletionProvider:
    """
    One OpenAI-compatible chat completion backend.

    Wraps any client exposing `chat.completions.create` (AsyncGroq and
    AsyncOpenAI both do). A provider without a client is "not configured"
    and fails every call.
    """

    def __init__(self, name: str, client: Any, model: str):
        self.name = name
        self.model = model
        self._client = client

    @property
    def is_configured(self) -> bool:
        return self._client is not None

    async def complete(
        self,
        messages: List[Dict[str, str]],
        temperature: float,
        max_tokens: int
    ) -> LLMCompletion:
        if not self.is_configured:
            raise LLMProviderException(self.name, "provider not configured")

        start_time = time.time()

        try:
            response = await self._client.chat.completions.create(
                model=self.model,
                messages=messages,
                temperature=temperature,
                max_tokens=max_tokens,
                response_format={"type": "json_object"}
            )
        except Exception as e:
            raise LLMProviderException(self.name, str(e)) from e

        if not getattr(response, "choices", None):
            raise LLMProviderException(self.name, "response contained no choices")

        try:
            content = response.choices[0].message.content
        except (AttributeError, IndexError, TypeError) as e:
            raise LLMProviderException(self.name, f"malformed response: {e}") from e

        return LLMCompletion(
            content=content,
            provider=self.name,
            processing_time_ms=(time.time() - start_time) * 1000
        )

    async def close(self):
        if self._client is not None and hasattr(self._client, "close"):
            await self._client.close()
        self._client = None


def create_groq_provider(config: Optional[Settings] = None) -> ChatCompletionProvider:
    """Primary provider; unconfigured when GROQ_API_KEY is missing."""
    config = config or settings
    client = None
    if config.GROQ_API_KEY:
        from groq import AsyncGroq
        client = AsyncGroq(api_key=config.GROQ_API_KEY)
    else:
        logger.warning("GROQ_API_KEY not set, primary LLM disabled")
    return ChatCompletionProvider("groq", client, config.PRIMARY_LLM_MODEL)


def create_openai_provider(config: Optional[Settings] = None) -> ChatCompletionProvider:
    """Fallback provider; unconfigured when OPENAI_API_KEY is missing."""
    config = config or settings
    client = None
    if config.OPENAI_API_KEY:
        from openai import AsyncOpenAI
        client = AsyncOpenAI(api_key=config.OPENAI_API_KEY)
    else:
        logger.warning("OPENAI_API_KEY not set, fallback LLM disabled")
    return ChatCompletionProvider("openai", client, config.FALLBACK_LLM_MODEL)


class LLMGateway:
    """
    Primary-then-fallback chat completion.

    Any primary failure (network, quota, malformed response, missing key)
    triggers exactly one fallback attempt with identical parameters. There
    are no further retries.
    """

    def __init__(
        self,
        primary: ChatCompletionProvider,
        fallback: ChatCompletionProvider,
        temperature: float = settings.LLM_TEMPERATURE,
        max_tokens: int = settings.LLM_MAX_TOKENS
    ):
        self.primary = primary
        self.fallback = fallback
        self.temperature = temperature
        self.max_tokens = max_tokens

    @classmethod
    def from_settings(cls, config: Optional[Settings] = None) -> "LLMGateway":
        config = config or settings
        return cls(
            primary=create_groq_provider(config),
            fallback=create_openai_provider(config),
            temperature=config.LLM_TEMPERATURE,
            max_tokens=config.LLM_MAX_TOKENS
        )

    async def complete(self, messages: List[Dict[str, str]]) -> LLMCompletion:
        """
        Run one chat completion.

        Raises:
            LLMUnavailableException: both providers failed
        """
        try:
            completion = await self.primary.complete(messages, self.temperature, self.max_tokens)
            logger.debug(f"LLM call served by {completion.provider} in {completion.processing_time_ms:.0f}ms")
            return completion
        except LLMProviderException as primary_error:
            logger.warning(f"Primary LLM failed, falling back to {self.fallback.name}: {primary_error.message}")

            try:
                completion = await self.fallback.complete(messages, self.temperature, self.max_tokens)
            except LLMProviderException as fallback_error:
                logger.error(f"Fallback LLM failed: {fallback_error.message}")
                raise LLMUnavailableException(primary_error.message, fallback_error.message)

            logger.info(f"LLM call served by fallback provider {completion.provider}")
            return completion

    async def cleanup(self):
        """Cleanup resources."""
        await self.primary.close()
        await self.fallback.close()
        logger.info("LLM gateway cleaned up")
