from decimal import Decimal

import fakeredis
import pytest

import cineverse.models  # noqa: F401  registers every table on Base.metadata
from cineverse.core.auth import Actor, Role
from cineverse.crud.company import crud_company
from cineverse.crud.movie import crud_movie
from cineverse.crud.schedule import crud_schedule
from cineverse.crud.seat import crud_seat
from cineverse.db.base import Base
from cineverse.db.session import create_engine, create_session_factory
from cineverse.schemas.company import CompanyCreate, SeatTypeConfig
from cineverse.schemas.movie import MovieCreate

ADMIN = Actor(user_id="admin-1", role=Role.ADMIN)
VENDOR = Actor(user_id="vendor-1", role=Role.VENDOR)


@pytest.fixture
async def db_engine(tmp_path):
    """Create a database engine for the tests.

    Function-scoped to ensure it's created in the same event loop as the test.
    A file database so concurrent sessions really use separate connections.
    """
    engine = create_engine(f"sqlite+aiosqlite:///{tmp_path / 'cineverse_test.db'}")

    # create tables
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)  # Clean slate
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    await engine.dispose()


@pytest.fixture
def db_session_factory(db_engine):
    """Factory to create multiple sessions for concurrent tests."""
    return create_session_factory(db_engine)


@pytest.fixture
async def db_session(db_session_factory):
    """Create a database session for the tests."""
    async with db_session_factory() as session:
        yield session


@pytest.fixture
async def redis_client():
    """In-process redis with Lua support, one server per test."""
    redis = fakeredis.FakeAsyncRedis(server=fakeredis.FakeServer())
    try:
        yield redis
    finally:
        await redis.flushall()
        await redis.aclose()


@pytest.fixture
async def seeded_test_data(db_session_factory):
    """Seed a theater, a movie and one schedule; return the ids needed for testing.

    Cineverse has VIP (10 seats at 25.00) and Standard (25 seats at 12.50),
    so the schedule's seat map is VIP row A and Standard rows A, B and C.
    """
    async with db_session_factory() as session:
        company = await crud_company.create_company(session, VENDOR, CompanyCreate(
            name="Cineverse",
            seats=[
                SeatTypeConfig(name="VIP", capacity=10, color="gold", default_price=Decimal("25.00")),
                SeatTypeConfig(name="Standard", capacity=25, color="blue", default_price=Decimal("12.50")),
            ],
        ))
        movie = await crud_movie.create_movie(session, ADMIN, MovieCreate(
            name="Test Movie",
            description="A test movie for testing",
            genre=["Action", "Drama"],
            duration=120,
        ))
        schedule = await crud_schedule.create_schedule(
            session, VENDOR.user_id, company.id, movie.id, "2026-11-01", time="19:30")
        seats = await crud_seat.seats_for_schedule(session, schedule.id)

        yield {
            "company_id": company.id,
            "movie_id": movie.id,
            "schedule_id": schedule.id,
            "vip_seat_ids": [seat.id for seat in seats if seat.seat_name == "VIP"],
            "standard_seat_ids": [seat.id for seat in seats if seat.seat_name == "Standard"],
            "all_seat_ids": [seat.id for seat in seats],
        }
