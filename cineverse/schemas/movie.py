from datetime import datetime
from typing import Optional
from pydantic import BaseModel


class MovieBase(BaseModel):
    name: str
    description: str = ""
    genre: list[str] = []
    duration: int
    image: str = ""
    rating: Optional[float] = None


class MovieCreate(MovieBase):
    pass


class MovieUpdate(MovieBase):
    name: Optional[str] = None
    description: Optional[str] = None
    genre: Optional[list[str]] = None
    duration: Optional[int] = None
    image: Optional[str] = None
    rating: Optional[float] = None


class MovieResponse(MovieBase):
    id: str
    user_id: str
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True  # orm_mode
