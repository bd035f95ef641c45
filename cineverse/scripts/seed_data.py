import asyncio
import datetime as dt
import logging
from decimal import Decimal

from cineverse.core.auth import Actor, Role
from cineverse.crud.company import crud_company
from cineverse.crud.movie import crud_movie
from cineverse.crud.schedule import crud_schedule
from cineverse.db.session import async_session as AsyncSessionLocal, init_db
from cineverse.schemas.company import CompanyCreate, SeatTypeConfig
from cineverse.schemas.movie import MovieCreate

ADMIN = Actor(user_id="admin-1", role=Role.ADMIN)
VENDOR = Actor(user_id="vendor-1", role=Role.VENDOR)


async def seed():
    async with AsyncSessionLocal() as session:

        # ------------------------------------------------------------------------------------
        # 1. Create the theater and its seat-type template
        # ------------------------------------------------------------------------------------
        company = await crud_company.create_company(session, VENDOR, CompanyCreate(
            name="Cineverse - Downtown",
            seats=[
                SeatTypeConfig(name="VIP", capacity=20, color="#d4af37", default_price=Decimal("25.00")),
                SeatTypeConfig(name="Standard", capacity=45, color="#4a90d9", default_price=Decimal("12.50")),
            ],
        ))

        # ------------------------------------------------------------------------------------
        # 2. Create Movies
        # ------------------------------------------------------------------------------------
        movie1 = await crud_movie.create_movie(session, ADMIN, MovieCreate(
            name="Interstellar",
            description="A group of explorers travel through a wormhole in space.",
            genre=["Sci-Fi", "Drama"],
            duration=169,
        ))
        movie2 = await crud_movie.create_movie(session, ADMIN, MovieCreate(
            name="KGF Chapter 2",
            description="Rocky rises again.",
            genre=["Action"],
            duration=168,
        ))

        # ------------------------------------------------------------------------------------
        # 3. Create Schedules (next three days), seat maps are generated with them
        # ------------------------------------------------------------------------------------
        today = dt.date.today()
        for offset in range(3):
            await crud_schedule.create_schedule(
                session, VENDOR.user_id, company.id, movie1.id,
                today + dt.timedelta(days=offset), time=dt.time(18, 30))
        await crud_schedule.create_schedule(
            session, VENDOR.user_id, company.id, movie2.id, today,
            seat_types=[{"name": "Standard", "price": "9.99"}], time=dt.time(21, 0))

        logging.info("Test data seeded successfully")


async def main():
    logging.basicConfig(level=logging.INFO)
    # Ensure tables exist (for dev only)
    await init_db()
    await seed()


if __name__ == "__main__":
    asyncio.run(main())
