import asyncio
import logging
from decimal import Decimal
from typing import Iterable, Optional
from redis.asyncio import Redis
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.sql import select, update

from cineverse.core.auth import Actor, ensure_owner
from cineverse.core.config import settings
from cineverse.core.exceptions import STORE_ERRORS, NotFoundError, SeatConflictError, ValidationError, store_guard
from cineverse.crud.seat import crud_seat
from cineverse.models import new_id
from cineverse.models.Schedule import EventSchedule
from cineverse.models.Seat import EventSeat
from cineverse.models.booking import Booking, BookingStatus
from cineverse.models.booking_seat import BookingSeat
from cineverse.services.seat_hold import seat_hold_service
from cineverse.services.selection import selection_store


class CRDBooking:
    # .1 resolve the schedule and the seats. always db is source of truth.
    # .2 a seat already booked is a conflict, nothing is held for it.
    # .3 hold the seats in redis, all or nothing. wait while another commit holds them.
    # .4 flip booked=false -> true in one conditional update.
    # .5 if fewer rows flipped than requested, raise and roll back.
    # .6 create the confirmed booking priced from the stored seat prices.
    # .7 commit, release the holds, clear the caller's selection.

    async def _resolve(self, db: AsyncSession, schedule_id: str, seat_ids: list[str]):
        schedule = await db.get(EventSchedule, schedule_id, populate_existing=True)
        if schedule is None:
            raise NotFoundError("Schedule", schedule_id)

        result = await db.execute(
            select(EventSeat.id, EventSeat.price, EventSeat.booked)
            .where(EventSeat.schedule_id == schedule_id)
            .where(EventSeat.id.in_(seat_ids)))
        rows = result.all()
        found = {row.id for row in rows}
        for seat_id in seat_ids:
            if seat_id not in found:
                raise NotFoundError("Seat", seat_id)
        return schedule, rows

    async def _hold(self, redis: Redis, schedule_id: str, seat_ids: list[str], user_id: str) -> Optional[str]:
        """
        Hold the seats, waiting while another commit holds some of them.
        Returns None when they are still held after SEAT_HOLD_WAIT_SECONDS;
        the conditional update alone decides then.
        """
        loop = asyncio.get_running_loop()
        deadline = loop.time() + settings.SEAT_HOLD_WAIT_SECONDS
        while True:
            token, held = await seat_hold_service.acquire(redis, schedule_id, seat_ids)
            if token is not None:
                return token
            if loop.time() >= deadline:
                logging.info(f"seats {held} of schedule {schedule_id} still held, {user_id} commits without a hold")
                return None
            await asyncio.sleep(settings.SEAT_HOLD_RETRY_SECONDS)

    @store_guard
    async def commit_booking(self, db: AsyncSession, redis: Redis, user_id: str, schedule_id: str, seat_ids: Iterable[str]) -> Booking:
        seat_ids = list(dict.fromkeys(seat_ids or []))
        if not seat_ids:
            raise ValidationError("Select at least one seat to book")

        async with db.begin():
            _, rows = await self._resolve(db, schedule_id, seat_ids)
        taken = [row.id for row in rows if row.booked]
        if taken:
            raise SeatConflictError(taken)

        token = await self._hold(redis, schedule_id, seat_ids, user_id)
        try:
            async with db.begin():
                schedule, rows = await self._resolve(db, schedule_id, seat_ids)

                # compare-and-set: only seats that are still free flip
                flipped = await db.execute(
                    update(EventSeat)
                    .where(EventSeat.schedule_id == schedule_id)
                    .where(EventSeat.id.in_(seat_ids))
                    .where(EventSeat.booked.is_(False))
                    .values(booked=True)
                    .execution_options(synchronize_session=False))
                if flipped.rowcount != len(seat_ids):
                    taken = await db.scalars(
                        select(EventSeat.id)
                        .where(EventSeat.id.in_(seat_ids))
                        .where(EventSeat.booked.is_(True)))
                    raise SeatConflictError(list(taken) or seat_ids)

                booking = Booking(
                    id=new_id(),
                    user_id=user_id,
                    vendor_id=schedule.user_id,
                    schedule_id=schedule.id,
                    company_id=schedule.company_id,
                    movie_id=schedule.movie_id,
                    total_price=sum((row.price for row in rows), Decimal("0")),
                    status=BookingStatus.CONFIRMED,
                    seats=[BookingSeat(seat_id=seat_id) for seat_id in seat_ids],
                )
                db.add(booking)
        finally:
            if token is not None:
                await self._release(redis, schedule_id, seat_ids, token)

        logging.info(f"booking {booking.id} confirmed for {user_id}: {len(seat_ids)} seats on schedule {schedule_id}")
        await self._after_change(redis, schedule_id, user_id)
        return booking

    @store_guard
    async def checkout(self, db: AsyncSession, redis: Redis, user_id: str) -> Booking:
        """Commit the caller's stored selection draft."""
        selection = await selection_store.get(redis, user_id)
        if not selection.seats or selection.schedule_id is None:
            raise ValidationError("Selection is empty")
        return await self.commit_booking(db, redis, user_id, selection.schedule_id, selection.seat_ids)

    @store_guard
    async def get_booking(self, db: AsyncSession, booking_id: str) -> Booking:
        async with db.begin():
            booking = await db.get(Booking, booking_id, populate_existing=True)
        if booking is None:
            raise NotFoundError("Booking", booking_id)
        return booking

    @store_guard
    async def list_bookings_for_user(self, db: AsyncSession, user_id: str) -> list[Booking]:
        async with db.begin():
            result = await db.execute(
                select(Booking)
                .where(Booking.user_id == user_id)
                .order_by(Booking.created_at)
                .execution_options(populate_existing=True))
            return list(result.scalars().all())

    @store_guard
    async def list_bookings(
            self,
            db: AsyncSession,
            schedule_id: Optional[str] = None,
            status: Optional[BookingStatus] = None,
            vendor_id: Optional[str] = None) -> list[Booking]:
        stmt = select(Booking)
        if schedule_id is not None:
            stmt = stmt.where(Booking.schedule_id == schedule_id)
        if status is not None:
            stmt = stmt.where(Booking.status == status)
        if vendor_id is not None:
            stmt = stmt.where(Booking.vendor_id == vendor_id)
        async with db.begin():
            result = await db.execute(stmt.order_by(Booking.created_at).execution_options(populate_existing=True))
            return list(result.scalars().all())

    @store_guard
    async def cancel_booking(self, db: AsyncSession, redis: Redis, actor: Actor, booking_id: str) -> Booking:
        """confirmed -> cancelled, handing the seats back to the schedule."""
        async with db.begin():
            result = await db.execute(
                select(Booking)
                .where(Booking.id == booking_id)
                .with_for_update()  # pesimistic locking
                .execution_options(populate_existing=True))
            booking = result.scalar_one_or_none()
            if booking is None:
                raise NotFoundError("Booking", booking_id)
            ensure_owner(actor, booking.user_id, "Booking")
            if booking.status != BookingStatus.CONFIRMED:
                raise ValidationError(f"Cannot cancel booking with status {booking.status.value}")

            await db.execute(
                update(EventSeat)
                .where(EventSeat.id.in_(booking.seat_ids))
                .values(booked=False)
                .execution_options(synchronize_session=False))
            booking.status = BookingStatus.CANCELLED

        logging.info(f"booking {booking_id} cancelled by {actor.user_id}")
        await crud_seat.invalidate_layout(redis, booking.schedule_id)
        return booking

    async def _release(self, redis: Redis, schedule_id: str, seat_ids: list[str], token: str) -> None:
        # holds expire on their own, a failed release only delays that
        try:
            await seat_hold_service.release(redis, schedule_id, seat_ids, token)
        except STORE_ERRORS as e:
            logging.warning(f"could not release holds on schedule {schedule_id}: {e}")

    async def _after_change(self, redis: Redis, schedule_id: str, user_id: str) -> None:
        try:
            await selection_store.clear_selection(redis, user_id)
        except STORE_ERRORS as e:
            logging.warning(f"could not clear selection of {user_id}: {e}")
        await crud_seat.invalidate_layout(redis, schedule_id)


crud_booking = CRDBooking()
