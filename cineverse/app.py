import logging
from contextlib import asynccontextmanager
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from cineverse.api.v1 import routes_booking, routes_company, routes_health, routes_movie, routes_schedule, routes_seat
from cineverse.core.config import settings
from cineverse.core.exceptions import BookingError, SeatConflictError
from cineverse.db import session
from cineverse.redis import close_redis


@asynccontextmanager
async def lifespan(app: FastAPI):
    logging.basicConfig(level=settings.LOG_LEVEL)
    if (settings.ENV == 'development'):
        await session.init_db()
    yield
    await close_redis()


def create_app() -> FastAPI:
    app = FastAPI(
        title=settings.PROJECT_NAME,
        version=settings.PROJECT_VERSION,
        description=settings.PROJECT_DESCRIPTION,
        lifespan=lifespan
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    for module in (routes_health, routes_movie, routes_company, routes_schedule, routes_seat, routes_booking):
        app.include_router(
            module.router,
            prefix=settings.API_V1_PREFIX
        )

    @app.exception_handler(BookingError)
    async def booking_error_handler(request: Request, ex: BookingError):
        content = {"error": ex.message}
        if isinstance(ex, SeatConflictError):
            content["seat_ids"] = ex.seat_ids
        return JSONResponse(status_code=ex.status_code, content=content)

    @app.get("/")
    async def root():
        return {"message": "Cineverse booking backend is running"}

    return app


app = create_app()
