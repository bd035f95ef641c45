import json
import logging
from typing import Optional, Type, TypeVar
from pydantic import BaseModel
from redis.asyncio import Redis

from cineverse.core.exceptions import STORE_ERRORS

T = TypeVar("T", bound=BaseModel)

MOVIES_KEY = "catalog:movies"


def companies_by_owner_key(user_id: str) -> str:
    return f"catalog:companies:owner:{user_id}"


class CatalogCache:
    """
    Last successfully fetched catalog collections. Read only when the
    database cannot answer; never treated as the source of truth.
    """

    async def remember(self, redis: Redis, key: str, items: list[BaseModel]) -> None:
        payload = json.dumps([item.model_dump(mode="json") for item in items])
        try:
            await redis.set(key, payload)
        except STORE_ERRORS as e:
            logging.warning(f"could not cache {key}: {e}")

    async def recall(self, redis: Redis, key: str, model: Type[T]) -> Optional[list[T]]:
        try:
            cached = await redis.get(key)
        except STORE_ERRORS as e:
            logging.warning(f"could not read cached {key}: {e}")
            return None
        if not cached:
            return None
        return [model.model_validate(item) for item in json.loads(cached)]


catalog_cache = CatalogCache()
