"""
TTS phrase cache.
Pre-synthesized audio for the agent's recurring lines, plus on-demand
caching of short replies.
"""

import asyncio
import logging
import time
from dataclasses import dataclass, field
from datetime import datetime
from typing import Dict, List, Optional, Sequence

from app.config import get_settings
from app.core.exceptions import TTSException
from app.services.tts import TTSService

logger = logging.getLogger(__name__)
settings = get_settings()


@dataclass
class TTSCacheEntry:
    """Cached audio for one exact text."""
    text: str
    audio_url: str
    generated_at: datetime = field(default_factory=datetime.now)
    hits: int = 0


@dataclass
class WarmupReport:
    """Outcome of a warm-up run."""
    succeeded: int = 0
    failed: int = 0
    duration_ms: float = 0.0


class TTSCache:
    """
    Exact-text cache in front of the TTS service.

    `speak` never raises: a failed or unconfigured synthesis returns None
    and the turn continues without audio.
    """

    def __init__(
        self,
        service: TTSService,
        phrases: Sequence[str] = (),
        max_text_length: int = settings.TTS_CACHE_MAX_TEXT_LENGTH,
        warm_concurrency: int = settings.TTS_WARM_CONCURRENCY
    ):
        self._service = service
        self._phrases = list(dict.fromkeys(phrases))
        self._max_text_length = max_text_length
        self._warm_concurrency = warm_concurrency
        self._entries: Dict[str, TTSCacheEntry] = {}
        self._misses = 0
        self._failures = 0

    @property
    def phrases(self) -> List[str]:
        return list(self._phrases)

    def get(self, text: str) -> Optional[TTSCacheEntry]:
        return self._entries.get(text)

    def __len__(self) -> int:
        return len(self._entries)

    async def warm(self) -> WarmupReport:
        """Synthesize every canned phrase with bounded parallelism."""
        report = WarmupReport()

        if not self._service.is_configured:
            logger.warning("TTS provider not configured, skipping cache warm-up")
            return report

        start_time = time.time()
        semaphore = asyncio.Semaphore(self._warm_concurrency)

        async def warm_phrase(phrase: str) -> bool:
            async with semaphore:
                try:
                    result = await self._service.synthesize(phrase)
                except TTSException as e:
                    logger.warning(f"Warm-up failed for phrase '{phrase[:40]}': {e.message}")
                    return False
                self._entries[phrase] = TTSCacheEntry(text=phrase, audio_url=result.audio_url)
                return True

        results = await asyncio.gather(*(warm_phrase(p) for p in self._phrases))

        report.succeeded = sum(1 for ok in results if ok)
        report.failed = len(results) - report.succeeded
        report.duration_ms = (time.time() - start_time) * 1000

        logger.info(
            f"TTS cache warmed: {report.succeeded}/{len(self._phrases)} phrases "
            f"in {report.duration_ms:.0f}ms"
        )
        return report

    async def speak(self, text: str) -> Optional[str]:
        """Return an audio URL for text, synthesizing on a miss."""
        if not text or not self._service.is_configured:
            return None

        entry = self._entries.get(text)
        if entry is not None:
            entry.hits += 1
            logger.debug(f"TTS cache hit ({entry.hits} hits): '{text[:50]}'")
            return entry.audio_url

        self._misses += 1
        logger.debug(f"TTS cache miss: '{text[:50]}'")

        try:
            result = await self._service.synthesize(text)
        except TTSException as e:
            self._failures += 1
            logger.warning(f"TTS synthesis failed, continuing without audio: {e.message}")
            return None

        if len(text) < self._max_text_length:
            self._entries[text] = TTSCacheEntry(text=text, audio_url=result.audio_url)

        return result.audio_url

    def stats(self) -> Dict[str, int]:
        return {
            "entries": len(self._entries),
            "hits": sum(entry.hits for entry in self._entries.values()),
            "misses": self._misses,
            "failures": self._failures,
        }
