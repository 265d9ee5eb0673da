"""
Database Initialization Script.
Creates the bookings table and lists what is already booked for tomorrow.
"""

import asyncio
import sys
from datetime import datetime, timedelta
from pathlib import Path

# Add parent to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from app.config import get_settings
from app.db.database import init_db, close_db
from app.db.repositories.bookings import BookingRepository


async def main():
    """Initialize the database."""
    settings = get_settings()
    print("🗄️  Initializing database...")

    await init_db()

    print("✅ Database initialized successfully!")
    print(f"📁 Database URL: {settings.DATABASE_URL}")

    day = (datetime.now() + timedelta(days=settings.BOOKING_DAY_OFFSET)).date()
    bookings = await BookingRepository().get_by_day(day)
    print(f"📅 {len(bookings)} booking(s) on {day}")
    for booking in bookings:
        print(f"   {booking.meeting_time:%H:%M}  {booking.name} <{booking.email}>")

    await close_db()


if __name__ == "__main__":
    asyncio.run(main())
