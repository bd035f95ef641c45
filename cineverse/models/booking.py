from decimal import Decimal
from enum import Enum
from typing import List
from sqlalchemy import Enum as SAEnum, ForeignKey, Numeric, String
from sqlalchemy.orm import Mapped, mapped_column, relationship
from cineverse.db.base import Base
from cineverse.models import TimestampMixin, new_id


class BookingStatus(str, Enum):
    PENDING = "pending"
    CONFIRMED = "confirmed"
    CANCELLED = "cancelled"


class Booking(Base, TimestampMixin):
    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    user_id: Mapped[str] = mapped_column(String(64), index=True, nullable=False)
    vendor_id: Mapped[str] = mapped_column(String(64), index=True, nullable=False)
    status: Mapped[BookingStatus] = mapped_column(
        SAEnum(BookingStatus, name="booking_status_enum"), nullable=False, default=BookingStatus.PENDING)
    schedule_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("eventschedule.id"), index=True, nullable=False)
    company_id: Mapped[str] = mapped_column(String(36), ForeignKey("company.id"), nullable=False)
    movie_id: Mapped[str] = mapped_column(String(36), ForeignKey("movie.id"), nullable=False)
    total_price: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)
    seats: Mapped[List["BookingSeat"]] = relationship(
        cascade="all, delete-orphan",
        lazy="selectin")

    @property
    def seat_ids(self) -> list[str]:
        return [booking_seat.seat_id for booking_seat in self.seats]
