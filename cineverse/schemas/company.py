from decimal import Decimal
from typing import Optional
from pydantic import BaseModel


class SeatTypeConfig(BaseModel):
    name: str
    capacity: int
    color: str = ""
    default_price: Optional[Decimal] = None

    class Config:
        from_attributes = True


class CompanyBase(BaseModel):
    name: str
    seats: list[SeatTypeConfig]


class CompanyCreate(CompanyBase):
    pass


class CompanyUpdate(CompanyBase):
    name: Optional[str] = None
    seats: Optional[list[SeatTypeConfig]] = None


class CompanyResponse(CompanyBase):
    id: str
    user_id: str

    class Config:
        from_attributes = True
