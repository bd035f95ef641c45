import datetime as dt
from decimal import Decimal
from typing import Optional
from sqlalchemy import Date, ForeignKey, Integer, Numeric, String, Time, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship
from cineverse.db.base import Base
from cineverse.models import TimestampMixin, new_id


class EventSchedule(Base, TimestampMixin):
    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    user_id: Mapped[str] = mapped_column(String(64), index=True, nullable=False)
    company_id: Mapped[str] = mapped_column(String(36), ForeignKey("company.id"), index=True, nullable=False)
    movie_id: Mapped[str] = mapped_column(String(36), ForeignKey("movie.id"), index=True, nullable=False)
    date: Mapped[dt.date] = mapped_column(Date, nullable=False)
    time: Mapped[Optional[dt.time]] = mapped_column(Time, nullable=True)
    seat_types: Mapped[list["ScheduleSeatType"]] = relationship(
        cascade="all, delete-orphan",
        order_by="ScheduleSeatType.position",
        lazy="selectin")


class ScheduleSeatType(Base):
    __table_args__ = (
        UniqueConstraint("schedule_id", "name", name="uix_schedule_seat_type_name"),
    )
    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    schedule_id: Mapped[str] = mapped_column(String(36), ForeignKey("eventschedule.id", ondelete="CASCADE"), index=True, nullable=False)
    position: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    price: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)
    capacity: Mapped[int] = mapped_column(Integer, nullable=False)
    color: Mapped[str] = mapped_column(String(32), nullable=False, default="")
