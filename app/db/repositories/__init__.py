"""Database repositories initialization."""

from app.db.repositories.bookings import BookingRepository

__all__ = [
    "BookingRepository"
]
