from typing import List, Optional
from fastapi import APIRouter, Depends, Query
from redis.asyncio import Redis
from sqlalchemy.ext.asyncio import AsyncSession

from cineverse.core.auth import Actor, Role, require_roles
from cineverse.crud.movie import crud_movie
from cineverse.crud.schedule import crud_schedule
from cineverse.db.session import getDB_session
from cineverse.redis import get_redis
from cineverse.schemas.movie import MovieCreate, MovieResponse, MovieUpdate
from cineverse.schemas.schedule import ScheduleResponse

router = APIRouter(
    prefix="/movie"
)


@router.get("/", response_model=list[MovieResponse])
async def list_movies(
        genre: Optional[List[str]] = Query(default=None),
        db: AsyncSession = Depends(getDB_session),
        redis: Redis = Depends(get_redis)):
    return await crud_movie.list_movies(db, redis, genres=genre)


@router.get("/{movie_id}", response_model=MovieResponse)
async def get_movie(movie_id: str, db: AsyncSession = Depends(getDB_session)):
    return await crud_movie.get_movie_by_id(db, movie_id)


@router.get("/{movie_id}/schedules", response_model=list[ScheduleResponse])
async def get_movie_schedules(movie_id: str, db: AsyncSession = Depends(getDB_session)):
    return await crud_schedule.schedules_for_movie(db, movie_id)


@router.post("/", response_model=MovieResponse, status_code=201)
async def create_movie(
        movie: MovieCreate,
        actor: Actor = Depends(require_roles(Role.ADMIN)),
        db: AsyncSession = Depends(getDB_session)):
    return await crud_movie.create_movie(db, actor, movie)


@router.put("/{movie_id}", response_model=MovieResponse)
async def update_movie(
        movie_id: str,
        movie: MovieUpdate,
        actor: Actor = Depends(require_roles(Role.ADMIN)),
        db: AsyncSession = Depends(getDB_session)):
    return await crud_movie.update_movie(db, actor, movie_id, movie)


@router.delete("/{movie_id}", status_code=204)
async def delete_movie(
        movie_id: str,
        actor: Actor = Depends(require_roles(Role.ADMIN)),
        db: AsyncSession = Depends(getDB_session)):
    await crud_movie.delete_movie(db, actor, movie_id)
