import uuid
from datetime import datetime, timezone
from sqlalchemy import DateTime
from sqlalchemy.orm import Mapped, mapped_column


def new_id() -> str:
    return str(uuid.uuid4())


class TimestampMixin:
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        nullable=False
    )

    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
        nullable=False
    )


from .Movie import Movie
from .Company import Company, CompanySeatType
from .Schedule import EventSchedule, ScheduleSeatType
from .Seat import EventSeat
from .booking import Booking, BookingStatus
from .booking_seat import BookingSeat

__all__ = [
    "Movie", "Company", "CompanySeatType", "EventSchedule", "ScheduleSeatType",
    "EventSeat", "Booking", "BookingStatus", "BookingSeat", "TimestampMixin", "new_id",
]
