"""Database module initialization."""

from app.db.database import init_db, close_db, get_db
from app.db.models import Booking

__all__ = [
    "init_db",
    "close_db",
    "get_db",
    "Booking"
]
