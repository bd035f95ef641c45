import datetime as dt
from decimal import Decimal
from typing import Optional
from pydantic import BaseModel


class SeatTypeIn(BaseModel):
    """Priced seat type of a schedule. Capacity and color default to the theater template."""
    name: str
    price: Decimal
    capacity: Optional[int] = None
    color: Optional[str] = None


class SeatType(BaseModel):
    name: str
    price: Decimal
    capacity: int
    color: str = ""

    class Config:
        from_attributes = True


class ScheduleCreate(BaseModel):
    company_id: str
    movie_id: str
    date: dt.date
    time: Optional[dt.time] = None
    # None copies the whole theater template at its default prices
    seat_types: Optional[list[SeatTypeIn]] = None


class ScheduleUpdate(BaseModel):
    date: Optional[dt.date] = None
    time: Optional[dt.time] = None
    seat_types: Optional[list[SeatTypeIn]] = None


class ScheduleResponse(BaseModel):
    id: str
    user_id: str
    company_id: str
    movie_id: str
    date: dt.date
    time: Optional[dt.time] = None
    seat_types: list[SeatType]
    created_at: Optional[dt.datetime] = None
    updated_at: Optional[dt.datetime] = None

    class Config:
        from_attributes = True  # orm_mode
