import logging
from typing import Iterable, Optional
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.sql import exists, select
from redis.asyncio import Redis

from cineverse.core.auth import Actor, ensure_owner
from cineverse.core.exceptions import STORE_ERRORS, NotFoundError, StoreUnavailableError, ValidationError, store_guard
from cineverse.models.Movie import Movie
from cineverse.models.Schedule import EventSchedule
from cineverse.models.booking import Booking
from cineverse.schemas.movie import MovieCreate, MovieResponse, MovieUpdate
from cineverse.services.catalog_cache import MOVIES_KEY, catalog_cache


def filter_by_genres(movies: list[MovieResponse], genres: Optional[Iterable[str]]) -> list[MovieResponse]:
    """Keep movies tagged with at least one of the wanted genres."""
    wanted = set(genres or [])
    if not wanted:
        return movies
    return [movie for movie in movies if wanted.intersection(movie.genre)]


def _validate_movie(movie: Movie) -> None:
    if not movie.name or not movie.name.strip():
        raise ValidationError("Movie name is required")
    if movie.duration is None or movie.duration <= 0:
        raise ValidationError("Movie duration must be a positive number of minutes")


class CRUDMovie:
    async def _fetch_movies(self, db: AsyncSession) -> list[MovieResponse]:
        async with db.begin():
            result = await db.execute(select(Movie).order_by(Movie.created_at))
            return [MovieResponse.model_validate(movie) for movie in result.scalars().all()]

    async def list_movies(self, db: AsyncSession, redis: Redis, genres: Optional[Iterable[str]] = None) -> list[MovieResponse]:
        try:
            movies = await self._fetch_movies(db)
        except STORE_ERRORS as e:
            logging.warning(f"movie catalog read failed, trying the cached copy: {e}")
            movies = await catalog_cache.recall(redis, MOVIES_KEY, MovieResponse)
            if movies is None:
                raise StoreUnavailableError("Movie catalog unavailable") from e
        else:
            await catalog_cache.remember(redis, MOVIES_KEY, movies)
        return filter_by_genres(movies, genres)

    @store_guard
    async def get_movie_by_id(self, db: AsyncSession, movie_id: str) -> Movie:
        async with db.begin():
            movie = await db.get(Movie, movie_id)
        if movie is None:
            raise NotFoundError("Movie", movie_id)
        return movie

    @store_guard
    async def create_movie(self, db: AsyncSession, actor: Actor, data: MovieCreate) -> Movie:
        movie = Movie(**data.model_dump(), user_id=actor.user_id)
        _validate_movie(movie)
        async with db.begin():
            db.add(movie)
        logging.info(f"movie {movie.id} created by {actor.user_id}")
        return movie

    @store_guard
    async def update_movie(self, db: AsyncSession, actor: Actor, movie_id: str, data: MovieUpdate) -> Movie:
        async with db.begin():
            movie = await db.get(Movie, movie_id, populate_existing=True)
            if movie is None:
                raise NotFoundError("Movie", movie_id)
            ensure_owner(actor, movie.user_id, "Movie")
            booked = await db.scalar(select(exists().where(Booking.movie_id == movie_id)))
            if booked:
                raise ValidationError("Movie has bookings and can no longer be edited")
            for field, value in data.model_dump(exclude_unset=True).items():
                if value is not None:
                    setattr(movie, field, value)
            _validate_movie(movie)
        return movie

    @store_guard
    async def delete_movie(self, db: AsyncSession, actor: Actor, movie_id: str) -> None:
        async with db.begin():
            movie = await db.get(Movie, movie_id)
            if movie is None:
                raise NotFoundError("Movie", movie_id)
            ensure_owner(actor, movie.user_id, "Movie")
            scheduled = await db.scalar(select(exists().where(EventSchedule.movie_id == movie_id)))
            if scheduled:
                raise ValidationError("Movie is scheduled and cannot be deleted")
            await db.delete(movie)
        logging.info(f"movie {movie_id} deleted by {actor.user_id}")


crud_movie = CRUDMovie()
