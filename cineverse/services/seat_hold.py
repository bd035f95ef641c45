from typing import List
from uuid import uuid4
from redis.asyncio import Redis

from cineverse.core.config import settings


# cluster-safe: every key of one schedule shares the {schedule:<id>} hash tag,
# so the whole script touches a single slot
# key = "hold:{schedule:<id>}:seat:<seat_id>"
HOLD_SEATS_SCRIPT = """
-- KEYS[1..N] = hold key of every seat
-- ARGV[1] = hold token
-- ARGV[2] = ttl (seconds)
-- ARGV[3..N+2] = seat ids, in KEYS order

local token = ARGV[1]
local ttl = tonumber(ARGV[2])

-- Step 1: check ALL seats first, collect the ones held by someone else
local held = {}
for i = 1, #KEYS do
    if redis.call('EXISTS', KEYS[i]) == 1 then
        table.insert(held, ARGV[i + 2])
    end
end
if #held > 0 then
    return held
end

-- Step 2: nothing held, take them all
for i = 1, #KEYS do
    redis.call('SET', KEYS[i], token, 'EX', ttl)
end

return {}
"""

# only the owner of a hold may drop it
RELEASE_SEATS_SCRIPT = """
-- KEYS[1..N] = hold key of every seat
-- ARGV[1] = hold token

local released = 0
for i = 1, #KEYS do
    if redis.call('GET', KEYS[i]) == ARGV[1] then
        redis.call('DEL', KEYS[i])
        released = released + 1
    end
end

return released
"""


def hold_key(schedule_id: str, seat_id: str) -> str:
    return f"hold:{{schedule:{schedule_id}}}:seat:{seat_id}"


class SeatHoldService:
    """Short-lived all-or-nothing holds on the seats being committed."""

    async def acquire(self, redis: Redis, schedule_id: str, seat_ids: List[str], ttl: int | None = None):
        """
        Hold every seat or none. Returns ``(token, [])`` on success and
        ``(None, held)`` naming the seats someone else holds.
        """
        token = uuid4().hex
        ttl = ttl or settings.SEAT_HOLD_TTL_SECONDS
        keys = [hold_key(schedule_id, seat_id) for seat_id in seat_ids]
        result = await redis.eval(HOLD_SEATS_SCRIPT, len(keys), *keys, token, str(ttl), *[str(s) for s in seat_ids])
        held = [m.decode() if isinstance(m, bytes) else m for m in result or []]
        return (None, held) if held else (token, [])

    async def release(self, redis: Redis, schedule_id: str, seat_ids: List[str], token: str) -> int:
        keys = [hold_key(schedule_id, seat_id) for seat_id in seat_ids]
        result = await redis.eval(RELEASE_SEATS_SCRIPT, len(keys), *keys, token)
        return int(result)


seat_hold_service = SeatHoldService()
