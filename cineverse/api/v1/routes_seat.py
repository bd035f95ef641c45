from fastapi import APIRouter, Depends
from redis.asyncio import Redis
from sqlalchemy.ext.asyncio import AsyncSession

from cineverse.core.auth import Actor, get_actor
from cineverse.crud.seat import crud_seat
from cineverse.db.session import getDB_session
from cineverse.redis import get_redis
from cineverse.schemas.seat import EventSeatResponse
from cineverse.schemas.selection import SeatSelection, SelectScheduleRequest, ToggleSeatRequest
from cineverse.services.selection import selection_store

router = APIRouter()


@router.get("/seat/{seat_id}", response_model=EventSeatResponse)
async def get_seat(seat_id: str, db: AsyncSession = Depends(getDB_session)):
    return await crud_seat.get_seat(db, seat_id)


@router.get("/selection", response_model=SeatSelection)
async def get_selection(
        actor: Actor = Depends(get_actor),
        redis: Redis = Depends(get_redis)):
    return await selection_store.get(redis, actor.user_id)


@router.post("/selection/toggle", response_model=SeatSelection)
async def toggle_seat(
        data: ToggleSeatRequest,
        actor: Actor = Depends(get_actor),
        db: AsyncSession = Depends(getDB_session),
        redis: Redis = Depends(get_redis)):
    # the seat's booked flag is read fresh so booked seats never enter a draft
    seat = await crud_seat.get_seat(db, data.seat_id)
    return await selection_store.toggle_selection(redis, actor.user_id, seat)


@router.put("/selection/schedule", response_model=SeatSelection)
async def select_schedule(
        data: SelectScheduleRequest,
        actor: Actor = Depends(get_actor),
        redis: Redis = Depends(get_redis)):
    return await selection_store.select_schedule(redis, actor.user_id, data.schedule_id)


@router.delete("/selection", response_model=SeatSelection)
async def clear_selection(
        actor: Actor = Depends(get_actor),
        redis: Redis = Depends(get_redis)):
    return await selection_store.clear_selection(redis, actor.user_id)
