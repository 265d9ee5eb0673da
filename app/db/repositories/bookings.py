"""
Booking Repository.
Data access layer for booking records.
"""

import logging
from datetime import date, datetime, time, timedelta
from typing import List, Optional

from sqlalchemy import select

from app.db.database import get_db
from app.db.models import Booking

logger = logging.getLogger(__name__)


class BookingRepository:
    """Repository for booking data operations."""

    async def create(self, name: str, email: str, meeting_time: datetime) -> Booking:
        """Create a new booking."""
        async with get_db() as db:
            booking = Booking(name=name, email=email, meeting_time=meeting_time)
            db.add(booking)
            await db.flush()
            logger.info(f"Booking {booking.id} stored for {meeting_time:%Y-%m-%d %H:%M}")
            return booking

    async def get_by_id(self, booking_id: str) -> Optional[Booking]:
        """Get a booking by ID."""
        async with get_db() as db:
            result = await db.execute(select(Booking).where(Booking.id == booking_id))
            return result.scalar_one_or_none()

    async def get_by_day(self, day: date) -> List[Booking]:
        """Get bookings whose meeting falls on the given local day."""
        start = datetime.combine(day, time.min)
        end = start + timedelta(days=1)
        async with get_db() as db:
            stmt = (
                select(Booking)
                .where(Booking.meeting_time >= start)
                .where(Booking.meeting_time < end)
                .order_by(Booking.meeting_time)
            )
            result = await db.execute(stmt)
            return list(result.scalars().all())

    async def get_recent(self, limit: int = 20) -> List[Booking]:
        """Get recently made bookings."""
        async with get_db() as db:
            stmt = (
                select(Booking)
                .order_by(Booking.booking_time.desc())
                .limit(limit)
            )
            result = await db.execute(stmt)
            return list(result.scalars().all())
