from datetime import datetime, timedelta, timezone
from typing import Callable, Optional
from ..storage.base import KeyedStore
from ..storage.schema import CacheEntry

def _utcnow() -> datetime:
    return datetime.now(timezone.utc)

class CacheService:
    """Key/value memo table. Entries go stale after ``freshness`` by wall clock only."""

    def __init__(self, table: KeyedStore, freshness_seconds: int = 300, clock: Callable[[], datetime] = _utcnow):
        self.table = table
        self.freshness = timedelta(seconds=freshness_seconds)
        self.clock = clock

    async def get(self, partition: str, key: str) -> Optional[CacheEntry]:
        data = await self.table.get(partition, key)
        if not data:
            return None
        entry = CacheEntry(**data)
        if entry.timestamp <= self.clock() - self.freshness:
            return None
        return entry

    async def put(self, partition: str, key: str, json_value: str) -> CacheEntry:
        entry = CacheEntry(partition_key=partition, row_key=key, timestamp=self.clock(), json_value=json_value)
        await self.table.upsert(partition, key, entry.model_dump(mode="json"))
        return entry
