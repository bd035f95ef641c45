from decimal import Decimal
from pydantic import BaseModel


class EventSeatBase(BaseModel):
    schedule_id: str
    seat_name: str
    row: str
    seat_no: int
    booked: bool
    price: Decimal


class EventSeatResponse(EventSeatBase):
    id: str

    class Config:
        from_attributes = True
