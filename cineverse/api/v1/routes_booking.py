from typing import Optional
from fastapi import APIRouter, Depends, Request
from redis.asyncio import Redis
from sqlalchemy.ext.asyncio import AsyncSession

from cineverse.core.auth import Actor, Role, ensure_owner, get_actor, require_roles
from cineverse.core.idempotency import check_idempotency, save_idempotency
from cineverse.crud.booking import crud_booking
from cineverse.db.session import getDB_session
from cineverse.models.booking import BookingStatus
from cineverse.redis import get_redis
from cineverse.schemas.booking import BookingCreate, BookingResponse

router = APIRouter(
    prefix="/booking"
)


@router.post("/", response_model=BookingResponse, status_code=201)
async def commit_booking(
        data: BookingCreate,
        request: Request,
        actor: Actor = Depends(get_actor),
        db: AsyncSession = Depends(getDB_session),
        redis: Redis = Depends(get_redis)):
    idem_key, cached, is_repeat = await check_idempotency(request, redis, actor.user_id)
    if is_repeat:
        return cached
    booking = await crud_booking.commit_booking(db, redis, actor.user_id, data.schedule_id, data.seat_ids)
    response = BookingResponse.model_validate(booking)
    await save_idempotency(redis, idem_key, response.model_dump(mode="json"))
    return response


@router.post("/checkout", response_model=BookingResponse, status_code=201)
async def checkout(
        request: Request,
        actor: Actor = Depends(get_actor),
        db: AsyncSession = Depends(getDB_session),
        redis: Redis = Depends(get_redis)):
    idem_key, cached, is_repeat = await check_idempotency(request, redis, actor.user_id)
    if is_repeat:
        return cached
    booking = await crud_booking.checkout(db, redis, actor.user_id)
    response = BookingResponse.model_validate(booking)
    await save_idempotency(redis, idem_key, response.model_dump(mode="json"))
    return response


@router.get("/mine", response_model=list[BookingResponse])
async def my_bookings(
        actor: Actor = Depends(get_actor),
        db: AsyncSession = Depends(getDB_session)):
    return await crud_booking.list_bookings_for_user(db, actor.user_id)


@router.get("/", response_model=list[BookingResponse])
async def list_bookings(
        schedule_id: Optional[str] = None,
        status: Optional[BookingStatus] = None,
        actor: Actor = Depends(require_roles(Role.VENDOR, Role.ADMIN)),
        db: AsyncSession = Depends(getDB_session)):
    # vendors only see bookings on their own schedules
    vendor_id = None if actor.is_admin else actor.user_id
    return await crud_booking.list_bookings(db, schedule_id=schedule_id, status=status, vendor_id=vendor_id)


@router.get("/{booking_id}", response_model=BookingResponse)
async def get_booking(
        booking_id: str,
        actor: Actor = Depends(get_actor),
        db: AsyncSession = Depends(getDB_session)):
    booking = await crud_booking.get_booking(db, booking_id)
    if actor.user_id != booking.vendor_id:
        ensure_owner(actor, booking.user_id, "Booking")
    return booking


@router.post("/{booking_id}/cancel", response_model=BookingResponse)
async def cancel_booking(
        booking_id: str,
        actor: Actor = Depends(get_actor),
        db: AsyncSession = Depends(getDB_session),
        redis: Redis = Depends(get_redis)):
    return await crud_booking.cancel_booking(db, redis, actor, booking_id)
