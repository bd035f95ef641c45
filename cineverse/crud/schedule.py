import datetime as dt
import logging
from decimal import Decimal, InvalidOperation
from typing import Iterable, Optional
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.sql import delete, exists, select

from cineverse.core.auth import Actor, ensure_owner
from cineverse.core.config import settings
from cineverse.core.exceptions import ForbiddenError, NotFoundError, ValidationError, store_guard
from cineverse.models import new_id
from cineverse.models.Company import Company
from cineverse.models.Movie import Movie
from cineverse.models.Schedule import EventSchedule, ScheduleSeatType
from cineverse.models.Seat import EventSeat
from cineverse.models.booking import Booking
from cineverse.schemas.schedule import ScheduleUpdate, SeatTypeIn
from cineverse.services.seat_map import expand_seat_types


def parse_date(value) -> dt.date:
    if isinstance(value, dt.datetime):
        return value.date()
    if isinstance(value, dt.date):
        return value
    if isinstance(value, str):
        try:
            return dt.date.fromisoformat(value.strip())
        except ValueError:
            raise ValidationError(f"{value!r} is not a valid calendar date")
    raise ValidationError("A screening date is required")


def parse_time(value) -> Optional[dt.time]:
    if value is None or value == "":
        return None
    if isinstance(value, dt.time):
        return value
    if isinstance(value, str):
        try:
            return dt.time.fromisoformat(value.strip())
        except ValueError:
            raise ValidationError(f"{value!r} is not a valid time of day")
    raise ValidationError("Invalid screening time")


def parse_price(value, seat_name: str) -> Decimal:
    try:
        price = Decimal(str(value))
    except (InvalidOperation, TypeError):
        raise ValidationError(f"Seat type {seat_name} has an invalid price")
    if not price.is_finite() or price < 0:
        raise ValidationError(f"Seat type {seat_name} needs a non-negative price")
    return price


def _as_seat_type_in(seat_type) -> SeatTypeIn:
    if isinstance(seat_type, SeatTypeIn):
        return seat_type
    if isinstance(seat_type, dict):
        return SeatTypeIn.model_validate(seat_type)
    return SeatTypeIn.model_validate(seat_type, from_attributes=True)


def price_seat_types(company: Company, seat_types: Optional[Iterable]) -> list[ScheduleSeatType]:
    """
    Build the schedule's own priced copy of the theater's seat-type template.
    None copies the whole template at its default prices.
    """
    template = {config.name: config for config in company.seats}
    if seat_types is None:
        if not company.seats:
            raise ValidationError("Theater has no seat types to schedule")
        missing = [config.name for config in company.seats if config.default_price is None]
        if missing:
            raise ValidationError(f"No price given for seat types {', '.join(missing)}")
        requested = [SeatTypeIn(name=config.name, price=config.default_price) for config in company.seats]
    else:
        requested = [_as_seat_type_in(seat_type) for seat_type in seat_types]
    if not requested:
        raise ValidationError("At least one seat type is required")

    priced = []
    seen = set()
    for position, seat_type in enumerate(requested):
        if seat_type.name in seen:
            raise ValidationError(f"Seat type {seat_type.name} is listed twice")
        seen.add(seat_type.name)
        config = template.get(seat_type.name)
        if config is None:
            raise ValidationError(f"Theater {company.name} has no seat type {seat_type.name}")
        capacity = seat_type.capacity if seat_type.capacity is not None else config.capacity
        if capacity is None or capacity <= 0:
            raise ValidationError(f"Seat type {seat_type.name} needs a positive capacity")
        priced.append(ScheduleSeatType(
            position=position,
            name=seat_type.name,
            price=parse_price(seat_type.price, seat_type.name),
            capacity=capacity,
            color=seat_type.color if seat_type.color is not None else config.color,
        ))
    return priced


class CRUDSchedule:
    def generate_seat_map(self, schedule: EventSchedule, seats_per_row: Optional[int] = None) -> list[EventSeat]:
        """
        Materialize the seats of a schedule from its seat types. Pure: nothing
        is persisted, and the same schedule always yields the same
        (seat_name, row, seat_no, price) layout. Only the seat ids are fresh.
        """
        specs = expand_seat_types(schedule.seat_types, seats_per_row or settings.SEATS_PER_ROW)
        return [
            EventSeat(
                id=new_id(),
                schedule_id=schedule.id,
                seat_name=spec.seat_name,
                row=spec.row,
                seat_no=spec.seat_no,
                position=spec.position,
                price=spec.price,
                booked=False,
            )
            for spec in specs
        ]

    @store_guard
    async def create_schedule(
            self,
            db: AsyncSession,
            owner_id: str,
            company_id: str,
            movie_id: str,
            date,
            seat_types: Optional[Iterable] = None,
            time=None,
            as_admin: bool = False) -> EventSchedule:
        screening_date = parse_date(date)
        screening_time = parse_time(time)
        if seat_types is not None:
            seat_types = list(seat_types)
            if not seat_types:
                raise ValidationError("At least one seat type is required")

        async with db.begin():
            company = await db.get(Company, company_id)
            if company is None:
                raise NotFoundError("Company", company_id)
            if not as_admin and company.user_id != owner_id:
                raise ForbiddenError("Schedules can only be created on your own theaters")
            movie = await db.get(Movie, movie_id)
            if movie is None:
                raise NotFoundError("Movie", movie_id)

            schedule = EventSchedule(
                id=new_id(),
                user_id=owner_id,
                company_id=company.id,
                movie_id=movie.id,
                date=screening_date,
                time=screening_time,
                seat_types=price_seat_types(company, seat_types),
            )
            seats = self.generate_seat_map(schedule)
            db.add(schedule)
            # the schedule row must exist before its seats reference it
            await db.flush()
            db.add_all(seats)
        logging.info(f"schedule {schedule.id} created for movie {movie_id} at {company_id} with {len(seats)} seats")
        return schedule

    @store_guard
    async def get_schedule(self, db: AsyncSession, schedule_id: str) -> EventSchedule:
        async with db.begin():
            schedule = await db.get(EventSchedule, schedule_id)
        if schedule is None:
            raise NotFoundError("Schedule", schedule_id)
        return schedule

    @store_guard
    async def list_schedules(
            self,
            db: AsyncSession,
            date=None,
            company_id: Optional[str] = None,
            movie_id: Optional[str] = None,
            user_id: Optional[str] = None) -> list[EventSchedule]:
        stmt = select(EventSchedule)
        if date is not None:
            stmt = stmt.where(EventSchedule.date == parse_date(date))
        if company_id is not None:
            stmt = stmt.where(EventSchedule.company_id == company_id)
        if movie_id is not None:
            stmt = stmt.where(EventSchedule.movie_id == movie_id)
        if user_id is not None:
            stmt = stmt.where(EventSchedule.user_id == user_id)
        async with db.begin():
            result = await db.execute(stmt.order_by(EventSchedule.date, EventSchedule.created_at))
            return list(result.scalars().all())

    async def schedules_for_movie(self, db: AsyncSession, movie_id: str) -> list[EventSchedule]:
        return await self.list_schedules(db, movie_id=movie_id)

    @store_guard
    async def update_schedule(self, db: AsyncSession, actor: Actor, schedule_id: str, data: ScheduleUpdate) -> EventSchedule:
        """
        Date, time and seat-type price/color are editable. The seat map was
        generated from the seat-type names and capacities, so those stay, and
        the prices already copied onto seats are left alone.
        """
        async with db.begin():
            schedule = await db.get(EventSchedule, schedule_id, populate_existing=True)
            if schedule is None:
                raise NotFoundError("Schedule", schedule_id)
            ensure_owner(actor, schedule.user_id, "Schedule")
            fields = data.model_fields_set
            if "date" in fields and data.date is not None:
                schedule.date = parse_date(data.date)
            if "time" in fields:
                schedule.time = parse_time(data.time)
            if data.seat_types is not None:
                current = {seat_type.name: seat_type for seat_type in schedule.seat_types}
                names = [seat_type.name for seat_type in data.seat_types]
                if sorted(names) != sorted(current):
                    raise ValidationError("Seat types of a schedule cannot be added, removed or renamed")
                for seat_type in data.seat_types:
                    existing = current[seat_type.name]
                    if seat_type.capacity is not None and seat_type.capacity != existing.capacity:
                        raise ValidationError(f"Capacity of seat type {seat_type.name} is fixed once seats exist")
                    existing.price = parse_price(seat_type.price, seat_type.name)
                    if seat_type.color is not None:
                        existing.color = seat_type.color
        return schedule

    @store_guard
    async def delete_schedule(self, db: AsyncSession, actor: Actor, schedule_id: str) -> None:
        async with db.begin():
            schedule = await db.get(EventSchedule, schedule_id)
            if schedule is None:
                raise NotFoundError("Schedule", schedule_id)
            ensure_owner(actor, schedule.user_id, "Schedule")
            booked = await db.scalar(select(exists().where(Booking.schedule_id == schedule_id)))
            if booked:
                raise ValidationError("Schedule has bookings and cannot be deleted")
            # seats belong to the schedule and go with it
            await db.execute(
                delete(EventSeat)
                .where(EventSeat.schedule_id == schedule_id)
                .execution_options(synchronize_session=False))
            await db.delete(schedule)
        logging.info(f"schedule {schedule_id} deleted by {actor.user_id}")


crud_schedule = CRUDSchedule()
