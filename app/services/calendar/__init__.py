"""
Slot Calendar.
Lists the bookable half-hour slots of a day, minus those already booked.
"""

import logging
import re
from datetime import date, time
from typing import List, Optional, Set, Tuple

from app.config import Settings, get_settings
from app.db.repositories.bookings import BookingRepository

logger = logging.getLogger(__name__)
settings = get_settings()

_SLOT_LABEL = re.compile(r"(\d{1,2}):(\d{2})\s?(AM|PM)", re.IGNORECASE)


def format_slot_label(hour: int, minute: int) -> str:
    """Format a 24-hour time as `H:MM AM/PM` (13:30 -> "1:30 PM")."""
    period = "AM" if hour < 12 else "PM"
    display_hour = hour % 12 or 12
    return f"{display_hour}:{minute:02d} {period}"


def slot_label_to_time(label: Optional[str]) -> Optional[time]:
    """Parse `H:MM AM/PM` into a 24-hour time; None when the label does not parse."""
    if not label:
        return None
    match = _SLOT_LABEL.search(label)
    if not match:
        return None

    hour = int(match.group(1))
    minute = int(match.group(2))
    period = match.group(3).upper()
    if not 1 <= hour <= 12 or minute > 59:
        return None

    if period == "PM" and hour != 12:
        hour += 12
    elif period == "AM" and hour == 12:
        hour = 0
    return time(hour, minute)


class SlotCalendar:
    """Half-hour availability grid for a single day."""

    def __init__(
        self,
        repository: BookingRepository,
        day_start_hour: int = settings.SLOT_DAY_START_HOUR,
        day_end_hour: int = settings.SLOT_DAY_END_HOUR,
        interval_minutes: int = settings.SLOT_INTERVAL_MINUTES
    ):
        if day_end_hour <= day_start_hour:
            raise ValueError("day_end_hour must be after day_start_hour")
        self._repository = repository
        self._day_start_hour = day_start_hour
        self._day_end_hour = day_end_hour
        self._interval_minutes = interval_minutes

    @classmethod
    def from_settings(cls, repository: BookingRepository, config: Optional[Settings] = None) -> "SlotCalendar":
        config = config or settings
        return cls(
            repository,
            day_start_hour=config.SLOT_DAY_START_HOUR,
            day_end_hour=config.SLOT_DAY_END_HOUR,
            interval_minutes=config.SLOT_INTERVAL_MINUTES,
        )

    def all_slots(self) -> List[Tuple[int, int]]:
        """Every (hour, minute) start in [day_start, day_end)."""
        slots = []
        minutes = self._day_start_hour * 60
        end = self._day_end_hour * 60
        while minutes < end:
            slots.append(divmod(minutes, 60))
            minutes += self._interval_minutes
        return slots

    async def available_slots(self, day: date) -> List[str]:
        """
        Slot labels still open on `day`, in chronological order.

        A booking blocks only the slot whose start matches it exactly. When
        the booking store cannot be read, the whole day is reported open.
        """
        booked: Set[Tuple[int, int]] = set()
        try:
            for booking in await self._repository.get_by_day(day):
                booked.add((booking.meeting_time.hour, booking.meeting_time.minute))
        except Exception as e:
            logger.warning(f"Could not read bookings for {day}, treating day as open: {e}")
            booked = set()

        return [
            format_slot_label(hour, minute)
            for hour, minute in self.all_slots()
            if (hour, minute) not in booked
        ]
