"""
SQLAlchemy Database Models.
Defines the booking record written when a visitor confirms a meeting.
"""

import uuid
from datetime import datetime
from sqlalchemy import Column, String, DateTime

from app.db.database import Base


def _new_booking_id() -> str:
    return str(uuid.uuid4())


class Booking(Base):
    """Meeting booked through the voice agent."""
    __tablename__ = "bookings"

    id = Column(String(36), primary_key=True, default=_new_booking_id)
    name = Column(String(255), nullable=False)
    email = Column(String(255), nullable=False, index=True)

    # Naive local time of the meeting
    meeting_time = Column(DateTime, nullable=False, index=True)
    booking_time = Column(DateTime, nullable=False, default=datetime.now)

    def __repr__(self):
        return f"<Booking {self.id}: {self.meeting_time:%Y-%m-%d %H:%M}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "email": self.email,
            "meetingTime": self.meeting_time.isoformat() if self.meeting_time else None,
            "bookingTime": self.booking_time.isoformat() if self.booking_time else None,
        }
