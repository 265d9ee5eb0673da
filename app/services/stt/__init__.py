"""
Speech-to-Text token service for AssemblyAI streaming.
The browser streams audio straight to AssemblyAI; the server only mints
short-lived tokens so the API key never leaves the backend.
"""

import logging
from dataclasses import dataclass
from typing import Optional

import httpx

from app.config import Settings, get_settings
from app.core.exceptions import STTNotConfiguredException, STTTokenException

logger = logging.getLogger(__name__)
settings = get_settings()

# AssemblyAI refuses streaming tokens that live longer than this.
MAX_TOKEN_TTL_SECONDS = 600


@dataclass
class STTToken:
    """Temporary streaming token."""
    token: str
    expires_in_seconds: int


class STTTokenService:
    """Mints temporary AssemblyAI streaming tokens."""

    def __init__(
        self,
        api_key: Optional[str] = None,
        token_url: str = settings.STT_TOKEN_URL,
        ttl_seconds: int = settings.STT_TOKEN_TTL_SECONDS,
        client: Optional[httpx.AsyncClient] = None
    ):
        self._api_key = api_key
        self._token_url = token_url
        self._ttl_seconds = min(ttl_seconds, MAX_TOKEN_TTL_SECONDS)
        self._client = client

    @classmethod
    def from_settings(cls, config: Optional[Settings] = None) -> "STTTokenService":
        config = config or settings
        return cls(
            api_key=config.ASSEMBLYAI_API_KEY,
            token_url=config.STT_TOKEN_URL,
            ttl_seconds=config.STT_TOKEN_TTL_SECONDS,
        )

    @property
    def is_configured(self) -> bool:
        return bool(self._api_key)

    async def initialize(self):
        if not self.is_configured:
            logger.warning("ASSEMBLYAI_API_KEY not set, streaming tokens disabled")
            return
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=httpx.Timeout(10.0))

    async def create_token(self) -> STTToken:
        """
        Request a temporary streaming token.

        Raises:
            STTNotConfiguredException: no API key
            STTTokenException: the provider call failed
        """
        if not self.is_configured:
            raise STTNotConfiguredException()
        if self._client is None:
            await self.initialize()

        try:
            response = await self._client.get(
                self._token_url,
                params={"expires_in_seconds": self._ttl_seconds},
                headers={"Authorization": self._api_key},
            )
        except httpx.HTTPError as e:
            raise STTTokenException(str(e)) from e

        if response.status_code != 200:
            raise STTTokenException(
                f"provider returned {response.status_code}",
                provider_status=response.status_code
            )

        try:
            token = response.json()["token"]
        except (ValueError, KeyError) as e:
            raise STTTokenException(f"malformed token response: {e}") from e

        logger.info(f"Issued streaming token valid for {self._ttl_seconds}s")
        return STTToken(token=token, expires_in_seconds=self._ttl_seconds)

    async def cleanup(self):
        """Cleanup resources."""
        if self._client is not None:
            await self._client.aclose()
            self._client = None
        logger.info("STT token service cleaned up")
