from typing import Optional
from redis.asyncio import Redis

from cineverse.core.config import settings
from cineverse.schemas.selection import SeatSelection


def selection_key(user_id: str) -> str:
    return f"selection:user:{user_id}"


class SelectionStore:
    """
    Keeps each user's selection draft in Redis. Nothing here is
    authoritative: seat state lives in the database and is rechecked when a
    booking is committed.
    """

    async def get(self, redis: Redis, user_id: str) -> SeatSelection:
        raw = await redis.get(selection_key(user_id))
        if not raw:
            return SeatSelection()
        return SeatSelection.model_validate_json(raw)

    async def save(self, redis: Redis, user_id: str, selection: SeatSelection) -> SeatSelection:
        await redis.set(selection_key(user_id), selection.model_dump_json(), ex=settings.SELECTION_TTL_SECONDS)
        return selection

    async def toggle_selection(self, redis: Redis, user_id: str, seat) -> SeatSelection:
        selection = await self.get(redis, user_id)
        if seat.booked:
            return selection
        return await self.save(redis, user_id, selection.toggle(seat))

    async def select_schedule(self, redis: Redis, user_id: str, schedule_id: Optional[str]) -> SeatSelection:
        selection = await self.get(redis, user_id)
        return await self.save(redis, user_id, selection.select_schedule(schedule_id))

    async def clear_selection(self, redis: Redis, user_id: str) -> SeatSelection:
        await redis.delete(selection_key(user_id))
        return SeatSelection()


selection_store = SelectionStore()
