import logging
from decimal import Decimal
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.sql import exists, select
from redis.asyncio import Redis

from cineverse.core.auth import Actor, ensure_owner
from cineverse.core.exceptions import STORE_ERRORS, NotFoundError, StoreUnavailableError, ValidationError, store_guard
from cineverse.models.Company import Company, CompanySeatType
from cineverse.models.Schedule import EventSchedule
from cineverse.schemas.company import CompanyCreate, CompanyResponse, CompanyUpdate, SeatTypeConfig
from cineverse.services.catalog_cache import catalog_cache, companies_by_owner_key


def validate_seat_configs(seats: list[SeatTypeConfig]) -> None:
    if not seats:
        raise ValidationError("A theater needs at least one seat type")
    names = [seat.name for seat in seats]
    if len(set(names)) != len(names):
        raise ValidationError("Seat type names must be unique within a theater")
    for seat in seats:
        if not seat.name.strip():
            raise ValidationError("Seat type name is required")
        if seat.capacity <= 0:
            raise ValidationError(f"Seat type {seat.name} needs a positive capacity")
        if seat.default_price is not None and Decimal(seat.default_price) < 0:
            raise ValidationError(f"Seat type {seat.name} has a negative price")


def apply_seat_configs(company: Company, seats: list[SeatTypeConfig]) -> None:
    # reuse rows by name, a delete+insert of the same name trips the unique constraint
    existing = {seat.name: seat for seat in company.seats}
    updated = []
    for position, config in enumerate(seats):
        seat = existing.get(config.name) or CompanySeatType(name=config.name)
        seat.position = position
        seat.capacity = config.capacity
        seat.color = config.color
        seat.default_price = config.default_price
        updated.append(seat)
    company.seats = updated


class CRUDCompany:
    @store_guard
    async def list_companies(self, db: AsyncSession) -> list[Company]:
        async with db.begin():
            result = await db.execute(select(Company).order_by(Company.created_at))
            return list(result.scalars().all())

    async def _fetch_by_owner(self, db: AsyncSession, user_id: str) -> list[CompanyResponse]:
        async with db.begin():
            result = await db.execute(
                select(Company)
                .where(Company.user_id == user_id)
                .order_by(Company.created_at))
            return [CompanyResponse.model_validate(company) for company in result.scalars().all()]

    async def list_companies_by_owner(self, db: AsyncSession, redis: Redis, user_id: str) -> list[CompanyResponse]:
        key = companies_by_owner_key(user_id)
        try:
            companies = await self._fetch_by_owner(db, user_id)
        except STORE_ERRORS as e:
            logging.warning(f"company read for {user_id} failed, trying the cached copy: {e}")
            companies = await catalog_cache.recall(redis, key, CompanyResponse)
            if companies is None:
                raise StoreUnavailableError("Theater catalog unavailable") from e
            return companies
        await catalog_cache.remember(redis, key, companies)
        return companies

    @store_guard
    async def get_company_by_id(self, db: AsyncSession, company_id: str) -> Company:
        async with db.begin():
            company = await db.get(Company, company_id)
        if company is None:
            raise NotFoundError("Company", company_id)
        return company

    @store_guard
    async def create_company(self, db: AsyncSession, actor: Actor, data: CompanyCreate) -> Company:
        if not data.name.strip():
            raise ValidationError("Theater name is required")
        validate_seat_configs(data.seats)
        company = Company(user_id=actor.user_id, name=data.name, seats=[])
        apply_seat_configs(company, data.seats)
        async with db.begin():
            db.add(company)
        logging.info(f"company {company.id} created by {actor.user_id}")
        return company

    @store_guard
    async def update_company(self, db: AsyncSession, actor: Actor, company_id: str, data: CompanyUpdate) -> Company:
        """
        Edits the template only. Schedules already created from it keep the
        seat types, prices and capacities they were created with.
        """
        async with db.begin():
            company = await db.get(Company, company_id, populate_existing=True)
            if company is None:
                raise NotFoundError("Company", company_id)
            ensure_owner(actor, company.user_id, "Company")
            if data.name is not None:
                if not data.name.strip():
                    raise ValidationError("Theater name is required")
                company.name = data.name
            if data.seats is not None:
                validate_seat_configs(data.seats)
                apply_seat_configs(company, data.seats)
        return company

    @store_guard
    async def delete_company(self, db: AsyncSession, actor: Actor, company_id: str) -> None:
        async with db.begin():
            company = await db.get(Company, company_id)
            if company is None:
                raise NotFoundError("Company", company_id)
            ensure_owner(actor, company.user_id, "Company")
            scheduled = await db.scalar(select(exists().where(EventSchedule.company_id == company_id)))
            if scheduled:
                raise ValidationError("Theater has schedules and cannot be deleted")
            await db.delete(company)
        logging.info(f"company {company_id} deleted by {actor.user_id}")


crud_company = CRUDCompany()
