import logging
from typing import AsyncGenerator
from sqlalchemy import event
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine

from cineverse.core.config import get_settings
from cineverse.db.base import Base


settings = get_settings()


def create_engine(database_url: str, echo: bool = False, **kwargs) -> AsyncEngine:
    """
    Build the async engine. SQLite connections open every transaction with
    BEGIN IMMEDIATE so concurrent writers queue on the database lock instead
    of failing on a lock upgrade.
    """
    if database_url.startswith("sqlite"):
        connect_args = kwargs.pop("connect_args", {})
        connect_args.setdefault("timeout", 30)
        engine = create_async_engine(database_url, echo=echo, connect_args=connect_args, **kwargs)

        @event.listens_for(engine.sync_engine, "connect")
        def do_connect(dbapi_connection, connection_record):
            # the driver must not emit its own BEGIN
            dbapi_connection.isolation_level = None

        @event.listens_for(engine.sync_engine, "begin")
        def do_begin(conn):
            conn.exec_driver_sql("BEGIN IMMEDIATE")

        return engine
    return create_async_engine(database_url, echo=echo, future=True, **kwargs)


def create_session_factory(bind: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(
        bind=bind,
        autoflush=False,
        expire_on_commit=False
    )


engine = create_engine(settings.DATABASE_URL, echo=settings.DB_ECHO)

async_session = create_session_factory(engine)


async def getDB_session() -> AsyncGenerator[AsyncSession, None]:
    """
    FastAPI dependency that provides an async DB session
    and ensures it's closed after the request.
    """
    async with async_session() as session:
        yield session


async def init_db() -> None:
    """
    Create all tables based on models.
    """
    import cineverse.models  # noqa: F401  registers every table on Base.metadata

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
        logging.info("Created all tables")
