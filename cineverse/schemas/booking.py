from datetime import datetime
from decimal import Decimal
from typing import Optional
from pydantic import BaseModel

from cineverse.models.booking import BookingStatus


class BookingCreate(BaseModel):
    schedule_id: str
    seat_ids: list[str]


class BookingResponse(BaseModel):
    id: str
    user_id: str
    vendor_id: str
    schedule_id: str
    company_id: str
    movie_id: str
    seat_ids: list[str]
    total_price: Decimal
    status: BookingStatus
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True
