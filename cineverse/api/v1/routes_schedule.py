import datetime as dt
from typing import Optional
from fastapi import APIRouter, Depends
from redis.asyncio import Redis
from sqlalchemy.ext.asyncio import AsyncSession

from cineverse.core.auth import Actor, Role, require_roles
from cineverse.crud.schedule import crud_schedule
from cineverse.crud.seat import crud_seat
from cineverse.db.session import getDB_session
from cineverse.redis import get_redis
from cineverse.schemas.schedule import ScheduleCreate, ScheduleResponse, ScheduleUpdate
from cineverse.schemas.seat import EventSeatResponse


router = APIRouter(
    prefix="/schedule"
)


@router.get("/", response_model=list[ScheduleResponse])
async def list_schedules(
        date: Optional[dt.date] = None,
        company_id: Optional[str] = None,
        movie_id: Optional[str] = None,
        user_id: Optional[str] = None,
        db: AsyncSession = Depends(getDB_session)):
    return await crud_schedule.list_schedules(db, date=date, company_id=company_id, movie_id=movie_id, user_id=user_id)


@router.get("/{schedule_id}", response_model=ScheduleResponse)
async def get_schedule(schedule_id: str, db: AsyncSession = Depends(getDB_session)):
    return await crud_schedule.get_schedule(db, schedule_id)


@router.get("/{schedule_id}/seats", response_model=list[EventSeatResponse])
async def get_schedule_seats(
        schedule_id: str,
        booked: Optional[bool] = None,
        row: Optional[str] = None,
        seat_name: Optional[str] = None,
        db: AsyncSession = Depends(getDB_session)):
    return await crud_seat.seats_for_schedule(db, schedule_id, booked=booked, row=row, seat_name=seat_name)


@router.get("/{schedule_id}/seat-layout")
async def get_schedule_seat_layout(
        schedule_id: str,
        db: AsyncSession = Depends(getDB_session),
        redis: Redis = Depends(get_redis)):
    return await crud_seat.seat_layout(db, redis, schedule_id)


@router.post("/", response_model=ScheduleResponse, status_code=201)
async def create_schedule(
        schedule: ScheduleCreate,
        actor: Actor = Depends(require_roles(Role.VENDOR, Role.ADMIN)),
        db: AsyncSession = Depends(getDB_session)):
    return await crud_schedule.create_schedule(
        db,
        owner_id=actor.user_id,
        company_id=schedule.company_id,
        movie_id=schedule.movie_id,
        date=schedule.date,
        seat_types=schedule.seat_types,
        time=schedule.time,
        as_admin=actor.is_admin)


@router.put("/{schedule_id}", response_model=ScheduleResponse)
async def update_schedule(
        schedule_id: str,
        schedule: ScheduleUpdate,
        actor: Actor = Depends(require_roles(Role.VENDOR, Role.ADMIN)),
        db: AsyncSession = Depends(getDB_session)):
    return await crud_schedule.update_schedule(db, actor, schedule_id, schedule)


@router.delete("/{schedule_id}", status_code=204)
async def delete_schedule(
        schedule_id: str,
        actor: Actor = Depends(require_roles(Role.VENDOR, Role.ADMIN)),
        db: AsyncSession = Depends(getDB_session)):
    await crud_schedule.delete_schedule(db, actor, schedule_id)
