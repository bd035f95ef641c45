from typing import Optional
from sqlalchemy import JSON, Float, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column
from cineverse.db.base import Base
from cineverse.models import TimestampMixin, new_id


class Movie(Base, TimestampMixin):
    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False, default="")
    # display priority follows list order
    genre: Mapped[list[str]] = mapped_column(JSON, nullable=False, default=list)
    duration: Mapped[int] = mapped_column(Integer, nullable=False)
    image: Mapped[str] = mapped_column(String(1024), nullable=False, default="")
    user_id: Mapped[str] = mapped_column(String(64), index=True, nullable=False)
    rating: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
