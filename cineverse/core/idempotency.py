import hashlib
import json
from dataclasses import dataclass
from redis.asyncio import Redis
from fastapi import Request

from cineverse.core.config import settings
from cineverse.core.exceptions import ValidationError


@dataclass(frozen=True)
class IdempotencyKey:
    redis_key: str
    fingerprint: str


def idempotency_redis_key(user_id: str, path: str, idem_key: str) -> str:
    # a key only ever replays for the same caller on the same route
    return f"idempotency:{user_id}:{path}:{idem_key}"


async def check_idempotency(request: Request, redis: Redis, user_id: str, required: bool = False):
    idem_key = request.headers.get("X-Idempotency-Key")
    if not idem_key:
        if required:
            raise ValidationError("Missing Idempotency Key")
        return None, None, False
    key = IdempotencyKey(
        redis_key=idempotency_redis_key(user_id, request.url.path, idem_key),
        fingerprint=hashlib.sha256(await request.body()).hexdigest())
    cached = await redis.get(key.redis_key)
    if cached:
        entry = json.loads(cached)
        if entry["fingerprint"] != key.fingerprint:
            raise ValidationError("Idempotency key was already used for a different request")
        return key, entry["response"], True
    return key, None, False


async def save_idempotency(redis: Redis, key: IdempotencyKey | None, response: dict):
    if key is None:
        return
    entry = {"fingerprint": key.fingerprint, "response": response}
    await redis.set(key.redis_key, json.dumps(entry), ex=settings.IDEMPOTENCY_TTL_SECONDS)
