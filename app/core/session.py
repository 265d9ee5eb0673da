"""
Session Management for the Voice Booking Agent.
Holds each conversation's history and collected booking fields.
"""

import asyncio
from contextlib import asynccontextmanager
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import AsyncIterator, Callable, Optional, Dict, Any, List
import logging

from app.config import get_settings
from app.core.exceptions import SessionBusyException
from app.core.state import DialogueState, resolve_state

logger = logging.getLogger(__name__)
settings = get_settings()

Clock = Callable[[], datetime]


@dataclass
class ChatMessage:
    """Single role-tagged message in a conversation."""
    role: str  # "system", "user", "assistant"
    content: str

    def to_llm_message(self) -> Dict[str, str]:
        return {"role": self.role, "content": self.content}


@dataclass
class CollectedData:
    """
    Booking fields gathered so far.

    `last_suggested_slot` is the slot currently on offer and never appears
    in `rejected_slots`.
    """
    name: Optional[str] = None
    email: Optional[str] = None
    meeting_preference: Optional[str] = None
    user_preferred_time: Optional[str] = None
    rejected_slots: List[str] = field(default_factory=list)
    last_suggested_slot: Optional[str] = None

    def reject_slot(self, slot: str):
        if slot not in self.rejected_slots:
            self.rejected_slots.append(slot)
        if self.last_suggested_slot == slot:
            self.last_suggested_slot = None

    def suggest_slot(self, slot: Optional[str]):
        if slot is not None and slot in self.rejected_slots:
            raise ValueError(f"Slot '{slot}' was already rejected")
        self.last_suggested_slot = slot

    def to_dict(self) -> Dict[str, Any]:
        """Wire form (camelCase) for transports."""
        return {
            "name": self.name,
            "email": self.email,
            "meetingPreference": self.meeting_preference,
            "userPreferredTime": self.user_preferred_time,
            "rejectedSlots": list(self.rejected_slots),
            "lastSuggestedSlot": self.last_suggested_slot
        }


@dataclass
class Session:
    """
    Booking conversation.
    `messages[0]` is always the system instruction; history is append-only.
    """
    session_id: str
    messages: List[ChatMessage]
    created_at: datetime
    last_updated: datetime
    collected: CollectedData = field(default_factory=CollectedData)

    # Set by the transport once the booking side effect succeeded
    booked: bool = False
    booking_url: Optional[str] = None

    @property
    def state(self) -> DialogueState:
        return resolve_state(self.collected, self.booked)

    @property
    def turn_count(self) -> int:
        return sum(1 for m in self.messages if m.role == "user")

    def add_message(self, role: str, content: str, now: datetime):
        self.messages.append(ChatMessage(role=role, content=content))
        self.last_updated = now

    def get_llm_messages(self) -> List[Dict[str, str]]:
        return [message.to_llm_message() for message in self.messages]

    def is_expired(self, now: datetime, timeout: timedelta) -> bool:
        """Check if session has expired due to inactivity."""
        return now - self.last_updated > timeout

    def to_dict(self) -> Dict[str, Any]:
        return {
            "sessionId": self.session_id,
            "collectedData": self.collected.to_dict()
        }


class SessionManager:
    """
    In-memory session registry.

    Sessions are created on first lookup. One turn per session may run at a
    time; `turn()` rejects a second concurrent turn with
    SessionBusyException. With a positive idle timeout a background task
    reaps sessions that have been idle too long.
    """

    def __init__(
        self,
        system_prompt: str,
        clock: Clock = datetime.now,
        idle_timeout_minutes: int = settings.SESSION_IDLE_TIMEOUT_MINUTES,
        sweep_interval_seconds: int = settings.SESSION_SWEEP_INTERVAL_SECONDS
    ):
        self._system_prompt = system_prompt
        self._clock = clock
        self._idle_timeout = (
            timedelta(minutes=idle_timeout_minutes) if idle_timeout_minutes > 0 else None
        )
        self._sweep_interval = sweep_interval_seconds
        self._sessions: Dict[str, Session] = {}
        self._turn_locks: Dict[str, asyncio.Lock] = {}
        self._cleanup_task: Optional[asyncio.Task] = None

    @property
    def reaping_enabled(self) -> bool:
        return self._idle_timeout is not None

    def now(self) -> datetime:
        return self._clock()

    async def start(self):
        """Start the session manager and, if enabled, the cleanup task."""
        if self.reaping_enabled:
            self._cleanup_task = asyncio.create_task(self._cleanup_loop())
        logger.info(f"Session manager started (idle reaping {'on' if self.reaping_enabled else 'off'})")

    async def stop(self):
        """Stop the session manager."""
        if self._cleanup_task:
            self._cleanup_task.cancel()
            try:
                await self._cleanup_task
            except asyncio.CancelledError:
                pass
            self._cleanup_task = None
        logger.info("Session manager stopped")

    def get(self, session_id: str) -> Optional[Session]:
        return self._sessions.get(session_id)

    def get_or_create(self, session_id: str) -> Session:
        """Get existing session or create a fresh one with the system prompt."""
        session = self._sessions.get(session_id)
        if session is None:
            now = self._clock()
            session = Session(
                session_id=session_id,
                messages=[ChatMessage(role="system", content=self._system_prompt)],
                created_at=now,
                last_updated=now
            )
            self._sessions[session_id] = session
            logger.info(f"Created new session: {session_id}")
        return session

    def find_by_contact(self, name: str, email: str) -> Optional[Session]:
        """Session whose name and email match and which has a meeting time."""
        for session in self._sessions.values():
            collected = session.collected
            if (
                collected.name == name
                and collected.email == email
                and collected.meeting_preference
            ):
                return session
        return None

    def count(self) -> int:
        return len(self._sessions)

    def is_busy(self, session_id: str) -> bool:
        lock = self._turn_locks.get(session_id)
        return lock is not None and lock.locked()

    @asynccontextmanager
    async def turn(self, session_id: str) -> AsyncIterator[Session]:
        """
        Run one turn against a session.

        Raises:
            SessionBusyException: another turn of this session is in flight
        """
        lock = self._turn_locks.setdefault(session_id, asyncio.Lock())
        if lock.locked():
            raise SessionBusyException(session_id)

        async with lock:
            yield self.get_or_create(session_id)

    def sweep(self) -> int:
        """Remove sessions idle past the timeout; returns how many were removed."""
        if not self.reaping_enabled:
            return 0

        now = self._clock()
        expired = [
            sid for sid, session in self._sessions.items()
            if session.is_expired(now, self._idle_timeout) and not self.is_busy(sid)
        ]
        for sid in expired:
            del self._sessions[sid]
            self._turn_locks.pop(sid, None)

        if expired:
            logger.info(f"Cleaned up {len(expired)} idle sessions")
        return len(expired)

    async def _cleanup_loop(self):
        """Periodically clean up idle sessions."""
        while True:
            try:
                await asyncio.sleep(self._sweep_interval)
                self.sweep()
            except asyncio.CancelledError:
                break
            except Exception as e:
                logger.error(f"Error in session cleanup: {e}")
