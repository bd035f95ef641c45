from decimal import Decimal
from typing import Optional
from sqlalchemy import ForeignKey, Integer, Numeric, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship
from cineverse.db.base import Base
from cineverse.models import TimestampMixin, new_id


class Company(Base, TimestampMixin):
    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    user_id: Mapped[str] = mapped_column(String(64), index=True, nullable=False)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    seats: Mapped[list["CompanySeatType"]] = relationship(
        cascade="all, delete-orphan",
        order_by="CompanySeatType.position",
        lazy="selectin")


class CompanySeatType(Base):
    """Seat-type template of a theater. Schedules copy it, they never point at it."""
    __table_args__ = (
        UniqueConstraint("company_id", "name", name="uix_company_seat_type_name"),
    )
    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    company_id: Mapped[str] = mapped_column(String(36), ForeignKey("company.id", ondelete="CASCADE"), index=True, nullable=False)
    position: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    capacity: Mapped[int] = mapped_column(Integer, nullable=False)
    color: Mapped[str] = mapped_column(String(32), nullable=False, default="")
    default_price: Mapped[Optional[Decimal]] = mapped_column(Numeric(10, 2), nullable=True)
