from cineverse.db.base import Base
from cineverse.models import new_id
from sqlalchemy import ForeignKey, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column


class BookingSeat(Base):
    __table_args__ = (
        UniqueConstraint("booking_id", "seat_id", name="uix_booking_seat_unique"),
    )
    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    booking_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("booking.id", ondelete="CASCADE"), index=True, nullable=False)
    seat_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("eventseat.id"), index=True, nullable=False)
