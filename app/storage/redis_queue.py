from __future__ import annotations

import logging
import time
import uuid
from contextlib import contextmanager
from typing import Iterator, List, Optional

from redis.asyncio import Redis
from redis.exceptions import RedisError

from .base import QueueMessage, StorageError

logger = logging.getLogger(__name__)

# Pop the head of the pending list, hide it until ARGV[1] and bump its
# delivery counter in one step so two receivers never get the same message.
_RECEIVE_LUA = """
local id = redis.call('LPOP', KEYS[1])
if not id then
  return nil
end
redis.call('ZADD', KEYS[2], ARGV[1], id)
local count = redis.call('HINCRBY', KEYS[3], id, 1)
local body = redis.call('HGET', KEYS[4], id) or ''
return {id, body, count}
"""

_RELEASE_LUA = """
local ids = redis.call('ZRANGEBYSCORE', KEYS[1], '-inf', ARGV[1])
for _, id in ipairs(ids) do
  redis.call('ZREM', KEYS[1], id)
  redis.call('LPUSH', KEYS[2], id)
end
return #ids
"""


@contextmanager
def _storage_errors(operation: str) -> Iterator[None]:
    try:
        yield
    except RedisError as exc:
        raise StorageError(f"queue {operation} failed: {exc}") from exc


class RedisQueue:
    """Peekable at-least-once queue on top of a Redis list.

    Layout for a queue named ``tasks``::

        queue:tasks             list of pending message ids (FIFO)
        queue:tasks:messages    hash id -> body
        queue:tasks:dequeue     hash id -> delivery count
        queue:tasks:inflight    zset id -> time the message becomes visible again
        queue:tasks-poison      list of dead-lettered ids (+ its own :messages hash)
    """

    def __init__(self, r: Redis, name: str):
        self.r = r
        self.name = name
        self._receive = r.register_script(_RECEIVE_LUA)
        self._release = r.register_script(_RELEASE_LUA)

    @property
    def pending_key(self) -> str:
        return f"queue:{self.name}"

    @property
    def messages_key(self) -> str:
        return f"queue:{self.name}:messages"

    @property
    def dequeue_key(self) -> str:
        return f"queue:{self.name}:dequeue"

    @property
    def inflight_key(self) -> str:
        return f"queue:{self.name}:inflight"

    @property
    def poison_key(self) -> str:
        return f"queue:{self.name}-poison"

    async def enqueue(self, body: str) -> QueueMessage:
        message_id = uuid.uuid4().hex
        with _storage_errors("enqueue"):
            async with self.r.pipeline(transaction=True) as pipe:
                pipe.hset(self.messages_key, message_id, body)
                pipe.rpush(self.pending_key, message_id)
                await pipe.execute()
        return QueueMessage(message_id=message_id, body=body)

    async def peek(self, max_messages: int) -> List[QueueMessage]:
        if max_messages <= 0:
            return []
        with _storage_errors("peek"):
            ids = await self.r.lrange(self.pending_key, 0, max_messages - 1)
            if not ids:
                return []
            bodies = await self.r.hmget(self.messages_key, ids)
        return [
            QueueMessage(message_id=mid, body=body)
            for mid, body in zip(ids, bodies)
            if body is not None
        ]

    async def receive(self, visibility_timeout: float) -> Optional[QueueMessage]:
        visible_at = time.time() + visibility_timeout
        with _storage_errors("receive"):
            raw = await self._receive(
                keys=[self.pending_key, self.inflight_key, self.dequeue_key, self.messages_key],
                args=[visible_at],
            )
        if not raw:
            return None
        message_id, body, count = raw
        return QueueMessage(message_id=message_id, body=body, dequeue_count=int(count))

    async def ack(self, message: QueueMessage) -> None:
        # The id may be back in pending if it was released while still being worked on.
        with _storage_errors("ack"):
            async with self.r.pipeline(transaction=True) as pipe:
                pipe.zrem(self.inflight_key, message.message_id)
                pipe.lrem(self.pending_key, 0, message.message_id)
                pipe.hdel(self.messages_key, message.message_id)
                pipe.hdel(self.dequeue_key, message.message_id)
                await pipe.execute()

    async def dead_letter(self, message: QueueMessage) -> None:
        with _storage_errors("dead_letter"):
            async with self.r.pipeline(transaction=True) as pipe:
                pipe.zrem(self.inflight_key, message.message_id)
                pipe.lrem(self.pending_key, 0, message.message_id)
                pipe.hdel(self.messages_key, message.message_id)
                pipe.hdel(self.dequeue_key, message.message_id)
                pipe.rpush(self.poison_key, message.message_id)
                pipe.hset(f"{self.poison_key}:messages", message.message_id, message.body)
                await pipe.execute()
        logger.warning("Moved message %s to %s", message.message_id, self.poison_key)

    async def release_expired(self) -> int:
        with _storage_errors("release_expired"):
            released = await self._release(
                keys=[self.inflight_key, self.pending_key],
                args=[time.time()],
            )
        return int(released or 0)

    async def pending_count(self) -> int:
        with _storage_errors("pending_count"):
            return int(await self.r.llen(self.pending_key))
