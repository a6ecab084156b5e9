from typing import Any, Dict, Optional

import orjson
from redis.asyncio import Redis
from redis.exceptions import RedisError

from .base import StorageError


class RedisTable:
    """Partition/row addressed entity table. Each entity is one orjson string."""

    def __init__(self, r: Redis, name: str):
        self.r = r
        self.name = name

    def _key(self, partition_key: str, row_key: str) -> str:
        return f"table:{self.name}:{partition_key}:{row_key}"

    async def get(self, partition_key: str, row_key: str) -> Optional[Dict[str, Any]]:
        try:
            raw = await self.r.get(self._key(partition_key, row_key))
        except RedisError as exc:
            raise StorageError(f"table get failed: {exc}") from exc
        if raw is None:
            return None
        return orjson.loads(raw)

    async def upsert(self, partition_key: str, row_key: str, entity: Dict[str, Any]) -> None:
        # SET replaces the whole value: concurrent writers to one key, last one wins.
        try:
            await self.r.set(self._key(partition_key, row_key), orjson.dumps(entity))
        except RedisError as exc:
            raise StorageError(f"table upsert failed: {exc}") from exc
