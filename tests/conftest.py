"""Shared test fixtures and fakes."""

import asyncio
import json
from datetime import date, datetime
from types import SimpleNamespace
from typing import Any, Dict, List, Optional

import pytest

from app.core import prompts
from app.core.exceptions import LLMUnavailableException, TTSSynthesisException
from app.core.orchestrator import DialogueOrchestrator
from app.core.session import SessionManager
from app.db.database import close_db, init_db
from app.nlu.heuristic import HeuristicExtractor
from app.services.calendar import SlotCalendar
from app.services.llm import LLMCompletion
from app.services.tts import TTSResult, to_data_url

NOW = datetime(2026, 3, 10, 15, 0)
BOOKING_DAY = date(2026, 3, 11)


class FakeClock:
    """Settable clock for session and booking tests."""

    def __init__(self, now: datetime = NOW):
        self.current = now

    def __call__(self) -> datetime:
        return self.current


def model_reply(reply_text: str, ask_for: Optional[str] = None, ready_to_book: bool = False) -> str:
    """JSON reply in the shape the system prompt asks for."""
    return json.dumps({"replyText": reply_text, "askFor": ask_for, "readyToBook": ready_to_book})


class FakeGateway:
    """LLM gateway that answers from a script and records what it was sent."""

    def __init__(self, replies: Optional[List[str]] = None, provider: str = "groq"):
        self.replies = list(replies or [])
        self.provider = provider
        self.calls: List[List[Dict[str, str]]] = []
        self.error: Optional[Exception] = None

    def queue(self, *replies: str):
        self.replies.extend(replies)

    async def complete(self, messages):
        self.calls.append([dict(m) for m in messages])
        if self.error is not None:
            raise self.error
        return LLMCompletion(content=self.replies.pop(0), provider=self.provider)


class BlockingGateway(FakeGateway):
    """Gateway that holds each call until released."""

    def __init__(self, replies: Optional[List[str]] = None):
        super().__init__(replies)
        self.entered = asyncio.Event()
        self.release = asyncio.Event()

    async def complete(self, messages):
        self.entered.set()
        await self.release.wait()
        return await super().complete(messages)


def unavailable_error() -> LLMUnavailableException:
    return LLMUnavailableException("groq timed out", "openai rate limited")


class FakeTTSService:
    """Stands in for TTSService; phrases in `failing` raise."""

    def __init__(self, configured: bool = True, failing: Optional[set] = None):
        self.is_configured = configured
        self.failing = failing or set()
        self.calls: List[str] = []

    async def synthesize(self, text: str, voice_id: Optional[str] = None) -> TTSResult:
        self.calls.append(text)
        if text in self.failing:
            raise TTSSynthesisException("provider returned 500", provider_status=500)
        audio = text.encode("utf-8")
        return TTSResult(
            audio_url=to_data_url(audio),
            voice_id=voice_id or "voice",
            size_bytes=len(audio)
        )


class FakeBookingRepository:
    """In-memory stand-in for BookingRepository."""

    def __init__(self, meeting_times: Optional[List[datetime]] = None):
        self.bookings: List[Any] = [
            SimpleNamespace(id=f"existing-{i}", name="Someone", email="someone@example.com", meeting_time=t)
            for i, t in enumerate(meeting_times or [])
        ]

    async def create(self, name: str, email: str, meeting_time: datetime):
        booking = SimpleNamespace(
            id=f"booking-{len(self.bookings) + 1}",
            name=name,
            email=email,
            meeting_time=meeting_time
        )
        self.bookings.append(booking)
        return booking

    async def get_by_day(self, day: date):
        return [b for b in self.bookings if b.meeting_time.date() == day]


class FailingBookingRepository(FakeBookingRepository):
    async def get_by_day(self, day: date):
        raise RuntimeError("database is locked")


def first_slot(slots):
    return slots[0]


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def extractor():
    return HeuristicExtractor()


@pytest.fixture
def session_manager(clock):
    return SessionManager(prompts.build_system_prompt("Alex"), clock=clock, idle_timeout_minutes=0)


@pytest.fixture
def gateway():
    return FakeGateway()


@pytest.fixture
def booking_repository():
    return FakeBookingRepository()


@pytest.fixture
def calendar(booking_repository):
    return SlotCalendar(booking_repository, day_start_hour=9, day_end_hour=18, interval_minutes=30)


@pytest.fixture
def orchestrator(session_manager, gateway, calendar, extractor):
    return DialogueOrchestrator(
        sessions=session_manager,
        llm=gateway,
        calendar=calendar,
        extractor=extractor,
        booking_day_offset=1,
        choose_slot=first_slot
    )


@pytest.fixture
async def database():
    """Fresh in-memory SQLite database per test."""
    await init_db("sqlite+aiosqlite:///:memory:")
    yield
    await close_db()
