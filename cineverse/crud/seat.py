import json
import logging
from collections import defaultdict
from typing import Optional
from redis.asyncio import Redis
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.sql import select

from cineverse.core.config import settings
from cineverse.core.exceptions import STORE_ERRORS, NotFoundError, store_guard
from cineverse.models.Schedule import EventSchedule
from cineverse.models.Seat import EventSeat


def seat_layout_version_key(schedule_id: str) -> str:
    return f"seat_layout_version:schedule:{schedule_id}"


def seat_layout_key(schedule_id: str, version: int) -> str:
    return f"seat_layout:schedule:{schedule_id}:v{version}"


class CRUDSeat:
    @store_guard
    async def seats_for_schedule(
            self,
            db: AsyncSession,
            schedule_id: str,
            booked: Optional[bool] = None,
            row: Optional[str] = None,
            seat_name: Optional[str] = None) -> list[EventSeat]:
        """Committed seat state of a schedule in seat-map order."""
        async with db.begin():
            found = await db.scalar(select(EventSchedule.id).where(EventSchedule.id == schedule_id))
            if found is None:
                raise NotFoundError("Schedule", schedule_id)
            stmt = select(EventSeat).where(EventSeat.schedule_id == schedule_id)
            if booked is not None:
                stmt = stmt.where(EventSeat.booked == booked)
            if row is not None:
                stmt = stmt.where(EventSeat.row == row)
            if seat_name is not None:
                stmt = stmt.where(EventSeat.seat_name == seat_name)
            # bookings flip flags with bulk updates, so never trust identity-map copies
            result = await db.execute(
                stmt.order_by(EventSeat.position)
                .execution_options(populate_existing=True))
            return list(result.scalars().all())

    @store_guard
    async def get_seat(self, db: AsyncSession, seat_id: str) -> EventSeat:
        async with db.begin():
            seat = await db.get(EventSeat, seat_id, populate_existing=True)
        if seat is None:
            raise NotFoundError("Seat", seat_id)
        return seat

    @store_guard
    async def seat_layout(self, db: AsyncSession, redis: Redis, schedule_id: str) -> dict:
        # short-lived cache keyed by a version that every booking change bumps.
        # a layout read before a bump is written under the old version and never served.
        version = int(await redis.get(seat_layout_version_key(schedule_id)) or 0)
        cached_layout = await redis.get(seat_layout_key(schedule_id, version))
        if cached_layout:
            return json.loads(cached_layout)

        seats = await self.seats_for_schedule(db, schedule_id)
        sections = defaultdict(lambda: {
            "seat_name": None,
            "rows": defaultdict(list)
        })
        for seat in seats:
            section = sections[seat.seat_name]
            section["seat_name"] = seat.seat_name
            section["rows"][seat.row].append({
                "id": seat.id,
                "seat_no": seat.seat_no,
                "booked": seat.booked,
                "price": float(seat.price)
            })

        layout = {
            "schedule_id": schedule_id,
            "available": sum(1 for seat in seats if not seat.booked),
            "booked": sum(1 for seat in seats if seat.booked),
            "seat_types": [
                {
                    "seat_name": section["seat_name"],
                    "rows": [{"row": row, "seats": row_seats} for row, row_seats in section["rows"].items()]
                }
                for section in sections.values()
            ]
        }
        await redis.set(seat_layout_key(schedule_id, version), json.dumps(layout), ex=settings.SEAT_LAYOUT_CACHE_SECONDS)
        return layout

    async def invalidate_layout(self, redis: Redis, schedule_id: str) -> None:
        try:
            await redis.incr(seat_layout_version_key(schedule_id))
        except STORE_ERRORS as e:
            logging.warning(f"could not drop cached layout of schedule {schedule_id}: {e}")


crud_seat = CRUDSeat()
