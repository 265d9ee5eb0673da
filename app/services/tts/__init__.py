"""
Text-to-Speech Service using ElevenLabs.
Synthesizes replies into playable `data:audio/mpeg;base64,...` URLs.
"""

import base64
import logging
import time
from dataclasses import dataclass
from typing import Optional

import httpx

from app.config import Settings, get_settings
from app.core.exceptions import (
    TTSNotConfiguredException,
    TTSSynthesisException
)

logger = logging.getLogger(__name__)
settings = get_settings()


@dataclass
class TTSResult:
    """Result from text-to-speech synthesis."""
    audio_url: str
    voice_id: str
    size_bytes: int
    processing_time_ms: Optional[float] = None


def to_data_url(audio: bytes, mime_type: str = "audio/mpeg") -> str:
    return f"data:{mime_type};base64,{base64.b64encode(audio).decode('ascii')}"


class TTSService:
    """
    Text-to-Speech service backed by the ElevenLabs REST API.

    Holds one pooled httpx client for the process lifetime. Without an API
    key the service stays unconfigured and every call raises
    TTSNotConfiguredException.
    """

    def __init__(
        self,
        api_key: Optional[str] = None,
        api_url: str = settings.TTS_API_URL,
        voice_id: str = settings.TTS_VOICE_ID,
        model_id: str = settings.TTS_MODEL_ID,
        stability: float = settings.TTS_STABILITY,
        similarity_boost: float = settings.TTS_SIMILARITY_BOOST,
        client: Optional[httpx.AsyncClient] = None
    ):
        self._api_key = api_key
        self._api_url = api_url.rstrip("/")
        self._voice_id = voice_id
        self._model_id = model_id
        self._voice_settings = {
            "stability": stability,
            "similarity_boost": similarity_boost,
        }
        self._client = client

    @classmethod
    def from_settings(cls, config: Optional[Settings] = None) -> "TTSService":
        config = config or settings
        return cls(
            api_key=config.ELEVENLABS_API_KEY,
            api_url=config.TTS_API_URL,
            voice_id=config.TTS_VOICE_ID,
            model_id=config.TTS_MODEL_ID,
            stability=config.TTS_STABILITY,
            similarity_boost=config.TTS_SIMILARITY_BOOST,
        )

    @property
    def is_configured(self) -> bool:
        return bool(self._api_key)

    async def initialize(self):
        """Create the HTTP client."""
        if not self.is_configured:
            logger.warning("ELEVENLABS_API_KEY not set, TTS disabled")
            return
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=httpx.Timeout(30.0))
        logger.info(f"TTS service initialized with model: {self._model_id}")

    async def synthesize(self, text: str, voice_id: Optional[str] = None) -> TTSResult:
        """
        Synthesize speech from text.

        Args:
            text: Text to speak
            voice_id: Voice override, defaults to the configured voice

        Returns:
            TTSResult with a base64 data URL

        Raises:
            TTSNotConfiguredException: no API key
            TTSSynthesisException: the provider call failed
        """
        if not self.is_configured:
            raise TTSNotConfiguredException()
        if self._client is None:
            await self.initialize()

        voice = voice_id or self._voice_id
        start_time = time.time()

        try:
            response = await self._client.post(
                f"{self._api_url}/{voice}",
                headers={
                    "Accept": "audio/mpeg",
                    "Content-Type": "application/json",
                    "xi-api-key": self._api_key,
                },
                json={
                    "text": text,
                    "model_id": self._model_id,
                    "voice_settings": self._voice_settings,
                },
            )
        except httpx.HTTPError as e:
            raise TTSSynthesisException(str(e)) from e

        if response.status_code != 200:
            raise TTSSynthesisException(
                f"provider returned {response.status_code}",
                provider_status=response.status_code
            )

        audio = response.content
        return TTSResult(
            audio_url=to_data_url(audio),
            voice_id=voice,
            size_bytes=len(audio),
            processing_time_ms=(time.time() - start_time) * 1000
        )

    async def cleanup(self):
        """Cleanup resources."""
        if self._client is not None:
            await self._client.aclose()
            self._client = None
        logger.info("TTS service cleaned up")
