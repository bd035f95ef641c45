from decimal import Decimal
from sqlalchemy import Boolean, ForeignKey, Integer, Numeric, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column
from cineverse.db.base import Base
from cineverse.models import TimestampMixin, new_id


class EventSeat(Base, TimestampMixin):
    __table_args__ = (
        UniqueConstraint("schedule_id", "seat_name", "row", "seat_no", name="uix_event_seat_unique"),
    )
    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    schedule_id: Mapped[str] = mapped_column(String(36), ForeignKey(
        "eventschedule.id", ondelete="CASCADE"), index=True, nullable=False)
    seat_name: Mapped[str] = mapped_column(String(100), nullable=False)
    row: Mapped[str] = mapped_column(String(8), nullable=False)
    seat_no: Mapped[int] = mapped_column(Integer, nullable=False)
    # index in generation order, the natural display order of the map
    position: Mapped[int] = mapped_column(Integer, nullable=False)
    booked: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    # resolved from the seat type when the map was generated, never recomputed
    price: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)
