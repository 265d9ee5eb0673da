"""Tests for the TTS service, its phrase cache and the STT token service."""

import base64
import json

import httpx
import pytest

from app.core.exceptions import (
    STTNotConfiguredException,
    STTTokenException,
    TTSNotConfiguredException,
    TTSSynthesisException,
)
from app.services.stt import STTTokenService
from app.services.tts import TTSService, to_data_url
from app.services.tts.cache import TTSCache

from tests.conftest import FakeTTSService

TTS_URL = "https://tts.test/v1/text-to-speech"
TOKEN_URL = "https://stt.test/v3/token"


def mock_client(handler) -> httpx.AsyncClient:
    return httpx.AsyncClient(transport=httpx.MockTransport(handler))


class TestTTSService:
    @pytest.mark.asyncio
    async def test_synthesize_returns_data_url(self):
        seen = {}

        def handler(request: httpx.Request):
            seen["url"] = str(request.url)
            seen["key"] = request.headers["xi-api-key"]
            seen["body"] = json.loads(request.content)
            return httpx.Response(200, content=b"ID3-audio")

        service = TTSService(api_key="key", api_url=TTS_URL, voice_id="voice-1", client=mock_client(handler))
        result = await service.synthesize("Hello there")

        assert result.audio_url == "data:audio/mpeg;base64," + base64.b64encode(b"ID3-audio").decode()
        assert result.size_bytes == 9
        assert seen["url"] == f"{TTS_URL}/voice-1"
        assert seen["key"] == "key"
        assert seen["body"]["text"] == "Hello there"
        assert seen["body"]["voice_settings"] == {"stability": 0.5, "similarity_boost": 0.5}
        await service.cleanup()

    @pytest.mark.asyncio
    async def test_voice_override(self):
        urls = []

        def handler(request):
            urls.append(str(request.url))
            return httpx.Response(200, content=b"x")

        service = TTSService(api_key="key", api_url=TTS_URL, client=mock_client(handler))
        await service.synthesize("Hi", voice_id="other")
        assert urls == [f"{TTS_URL}/other"]

    @pytest.mark.asyncio
    async def test_provider_error(self):
        service = TTSService(
            api_key="bad",
            api_url=TTS_URL,
            client=mock_client(lambda request: httpx.Response(401, json={"detail": "invalid key"}))
        )
        with pytest.raises(TTSSynthesisException) as exc_info:
            await service.synthesize("Hi")
        assert exc_info.value.details["provider_status"] == 401

    @pytest.mark.asyncio
    async def test_unconfigured(self):
        service = TTSService(api_key=None)
        assert not service.is_configured
        with pytest.raises(TTSNotConfiguredException) as exc_info:
            await service.synthesize("Hi")
        assert exc_info.value.status_code == 503

    def test_to_data_url(self):
        assert to_data_url(b"abc") == "data:audio/mpeg;base64,YWJj"


class TestTTSCache:
    @pytest.mark.asyncio
    async def test_warm_synthesizes_every_phrase(self):
        service = FakeTTSService(failing={"Two"})
        cache = TTSCache(service, ["One", "Two", "Three", "One"], warm_concurrency=2)

        report = await cache.warm()

        assert report.succeeded == 2
        assert report.failed == 1
        assert len(cache) == 2
        assert sorted(service.calls) == ["One", "Three", "Two"]

    @pytest.mark.asyncio
    async def test_warm_skipped_without_provider(self):
        service = FakeTTSService(configured=False)
        report = await TTSCache(service, ["One"]).warm()
        assert report.succeeded == 0
        assert service.calls == []

    @pytest.mark.asyncio
    async def test_hit_does_not_call_provider(self):
        service = FakeTTSService()
        cache = TTSCache(service, ["Great!"])
        await cache.warm()

        first = await cache.speak("Great!")
        second = await cache.speak("Great!")

        assert first == second
        assert service.calls == ["Great!"]
        assert cache.get("Great!").hits == 2
        assert cache.stats()["hits"] == 2

    @pytest.mark.asyncio
    async def test_second_speak_of_unwarmed_phrase_is_a_hit(self):
        service = FakeTTSService()
        cache = TTSCache(service, [])

        first = await cache.speak("See you then!")
        second = await cache.speak("See you then!")

        assert first == second
        assert service.calls == ["See you then!"]
        assert cache.get("See you then!").hits == 1
        assert cache.stats()["hits"] == 1

    @pytest.mark.asyncio
    async def test_short_misses_are_cached(self):
        service = FakeTTSService()
        cache = TTSCache(service, [], max_text_length=20)

        await cache.speak("Short reply")
        await cache.speak("Short reply")
        await cache.speak("This reply is far too long to cache")

        assert service.calls == ["Short reply", "This reply is far too long to cache"]
        assert cache.get("This reply is far too long to cache") is None
        assert cache.stats()["misses"] == 2

    @pytest.mark.asyncio
    async def test_failure_returns_no_audio(self):
        cache = TTSCache(FakeTTSService(failing={"Hi"}), [])
        assert await cache.speak("Hi") is None
        assert cache.stats()["failures"] == 1

    @pytest.mark.asyncio
    async def test_unconfigured_or_empty_returns_no_audio(self):
        service = FakeTTSService(configured=False)
        cache = TTSCache(service, [])
        assert await cache.speak("Hi") is None
        assert await TTSCache(FakeTTSService(), []).speak("") is None
        assert service.calls == []


class TestSTTTokenService:
    @pytest.mark.asyncio
    async def test_create_token(self):
        seen = {}

        def handler(request: httpx.Request):
            seen["ttl"] = request.url.params["expires_in_seconds"]
            seen["auth"] = request.headers["Authorization"]
            return httpx.Response(200, json={"token": "temp-token"})

        service = STTTokenService(api_key="aai-key", token_url=TOKEN_URL, client=mock_client(handler))
        token = await service.create_token()

        assert token.token == "temp-token"
        assert token.expires_in_seconds == 600
        assert seen == {"ttl": "600", "auth": "aai-key"}

    def test_ttl_is_capped(self):
        service = STTTokenService(api_key="k", token_url=TOKEN_URL, ttl_seconds=3600)
        assert service._ttl_seconds == 600

    @pytest.mark.asyncio
    async def test_provider_error(self):
        service = STTTokenService(
            api_key="k",
            token_url=TOKEN_URL,
            client=mock_client(lambda request: httpx.Response(403, json={"error": "forbidden"}))
        )
        with pytest.raises(STTTokenException) as exc_info:
            await service.create_token()
        assert exc_info.value.details["provider_status"] == 403

    @pytest.mark.asyncio
    async def test_malformed_response(self):
        service = STTTokenService(
            api_key="k",
            token_url=TOKEN_URL,
            client=mock_client(lambda request: httpx.Response(200, json={"unexpected": True}))
        )
        with pytest.raises(STTTokenException):
            await service.create_token()

    @pytest.mark.asyncio
    async def test_unconfigured(self):
        with pytest.raises(STTNotConfiguredException):
            await STTTokenService(api_key=None).create_token()
