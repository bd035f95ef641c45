from decimal import Decimal
from typing import Optional
from pydantic import BaseModel, computed_field


class SelectedSeat(BaseModel):
    id: str
    schedule_id: str
    seat_name: str
    row: str
    seat_no: int
    price: Decimal

    class Config:
        from_attributes = True


class SeatSelection(BaseModel):
    """
    Caller-local draft of seats a user is considering. It holds seats of a
    single schedule and never the same seat twice. Booked seats never enter
    it. The draft is disposable: the booking engine revalidates every seat.
    """
    schedule_id: Optional[str] = None
    seats: list[SelectedSeat] = []

    @computed_field
    @property
    def seat_ids(self) -> list[str]:
        return [seat.id for seat in self.seats]

    @computed_field
    @property
    def total_price(self) -> Decimal:
        return sum((seat.price for seat in self.seats), Decimal("0"))

    def contains(self, seat_id: str) -> bool:
        return any(seat.id == seat_id for seat in self.seats)

    def select_schedule(self, schedule_id: Optional[str]) -> "SeatSelection":
        if schedule_id != self.schedule_id:
            self.schedule_id = schedule_id
            self.seats = []
        return self

    def toggle(self, seat) -> "SeatSelection":
        if seat.booked:
            return self
        self.select_schedule(seat.schedule_id)
        if self.contains(seat.id):
            self.seats = [s for s in self.seats if s.id != seat.id]
        else:
            self.seats = [*self.seats, SelectedSeat.model_validate(seat, from_attributes=True)]
        return self

    def clear(self) -> "SeatSelection":
        self.seats = []
        return self


class ToggleSeatRequest(BaseModel):
    seat_id: str


class SelectScheduleRequest(BaseModel):
    schedule_id: Optional[str] = None
