"""
Booking Service.
Persists an agreed meeting and builds the scheduling link the visitor opens.
"""

import logging
from dataclasses import dataclass
from datetime import datetime, time, timedelta
from typing import Callable, Optional, Set
from urllib.parse import quote, urlencode

from sqlalchemy.exc import SQLAlchemyError

from app.config import Settings, get_settings
from app.core.exceptions import (
    BookingConfigurationException,
    BookingPersistenceException
)
from app.core.session import Session, SessionManager
from app.db.repositories.bookings import BookingRepository
from app.logging.agent_logger import AgentLogger
from app.services.calendar import format_slot_label, slot_label_to_time

logger = logging.getLogger(__name__)
settings = get_settings()


@dataclass
class BookingConfirmation:
    """A stored booking and its scheduling link."""
    booking_id: str
    calendly_url: str
    meeting_time: datetime


def build_calendly_url(base_link: str, name: str, email: str, meeting_time: datetime) -> str:
    """Append name, email and the slot label (`3:00 PM`) as percent-encoded query parameters."""
    query = urlencode(
        {"name": name, "email": email, "time": format_slot_label(meeting_time.hour, meeting_time.minute)},
        quote_via=quote
    )
    separator = "&" if "?" in base_link else "?"
    return f"{base_link}{separator}{query}"


def _parse_fallback_time(value: str) -> time:
    hour, minute = value.split(":")
    return time(int(hour), int(minute))


class BookingService:
    """
    Books meetings for visitors.

    Resolves the meeting time from an explicit label or, failing that, from a
    session with the same name and email. Not retried on failure.
    """

    def __init__(
        self,
        repository: BookingRepository,
        sessions: SessionManager,
        calendly_base_link: Optional[str] = None,
        day_offset: int = settings.BOOKING_DAY_OFFSET,
        fallback_time: str = settings.BOOKING_FALLBACK_TIME,
        clock: Optional[Callable[[], datetime]] = None,
        agent_logger: Optional[AgentLogger] = None
    ):
        self._repository = repository
        self._sessions = sessions
        self._base_link = calendly_base_link
        self._day_offset = day_offset
        self._fallback_time = _parse_fallback_time(fallback_time)
        self._clock = clock or sessions.now
        self._agent_logger = agent_logger
        self._in_flight: Set[str] = set()

    @classmethod
    def from_settings(
        cls,
        repository: BookingRepository,
        sessions: SessionManager,
        config: Optional[Settings] = None,
        agent_logger: Optional[AgentLogger] = None
    ) -> "BookingService":
        config = config or settings
        return cls(
            repository,
            sessions,
            calendly_base_link=config.CALENDLY_BASE_LINK,
            day_offset=config.BOOKING_DAY_OFFSET,
            fallback_time=config.BOOKING_FALLBACK_TIME,
            agent_logger=agent_logger
        )

    @property
    def is_configured(self) -> bool:
        return bool(self._base_link)

    def resolve_meeting_time(self, label: Optional[str]) -> datetime:
        """Slot label on the booking day; unparseable labels use the fallback time."""
        day = (self._clock() + timedelta(days=self._day_offset)).date()
        slot_time = slot_label_to_time(label)
        if slot_time is None:
            logger.info(f"No usable meeting time ({label!r}), using fallback {self._fallback_time:%H:%M}")
            slot_time = self._fallback_time
        return datetime.combine(day, slot_time)

    async def book(
        self,
        name: str,
        email: str,
        meeting_time: Optional[str] = None,
        session_id: Optional[str] = None
    ) -> BookingConfirmation:
        """
        Store a booking and return its scheduling link.

        Raises:
            BookingConfigurationException: no scheduling link configured
            BookingPersistenceException: the record could not be stored
        """
        if not self.is_configured:
            raise BookingConfigurationException()

        label = meeting_time
        if not label:
            session = self._sessions.find_by_contact(name, email)
            if session is not None:
                label = session.collected.meeting_preference
                session_id = session_id or session.session_id

        when = self.resolve_meeting_time(label)

        try:
            booking = await self._repository.create(name=name, email=email, meeting_time=when)
        except SQLAlchemyError as e:
            logger.error(f"Failed to persist booking: {e}")
            if self._agent_logger:
                await self._agent_logger.log_booking(session_id, when, "failed", str(e))
            raise BookingPersistenceException(str(e)) from e

        url = build_calendly_url(self._base_link, name, email, when)
        logger.info(f"Booking {booking.id} confirmed for {when:%Y-%m-%d %H:%M}")

        if self._agent_logger:
            await self._agent_logger.log_booking(session_id, when, "confirmed")

        return BookingConfirmation(booking_id=booking.id, calendly_url=url, meeting_time=when)

    async def complete_session_booking(self, session: Session) -> Optional[BookingConfirmation]:
        """
        Book for a session that is ready, at most once.

        Returns None when the session is already booked, is being booked, or
        lacks a name or email.
        """
        collected = session.collected
        if session.booked or not collected.name or not collected.email:
            return None
        if session.session_id in self._in_flight:
            return None

        self._in_flight.add(session.session_id)
        try:
            confirmation = await self.book(
                collected.name,
                collected.email,
                collected.meeting_preference,
                session_id=session.session_id
            )
        finally:
            self._in_flight.discard(session.session_id)

        session.booked = True
        session.booking_url = confirmation.calendly_url
        return confirmation
