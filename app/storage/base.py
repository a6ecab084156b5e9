from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Protocol

class StorageError(Exception):
    pass

@dataclass(frozen=True)
class QueueMessage:
    message_id: str
    body: str
    dequeue_count: int = 0

class Queue(Protocol):
    async def enqueue(self, body: str) -> QueueMessage: ...
    async def peek(self, max_messages: int) -> List[QueueMessage]: ...
    async def receive(self, visibility_timeout: float) -> Optional[QueueMessage]: ...
    async def ack(self, message: QueueMessage) -> None: ...
    async def dead_letter(self, message: QueueMessage) -> None: ...
    async def release_expired(self) -> int: ...

class KeyedStore(Protocol):
    async def get(self, partition_key: str, row_key: str) -> Optional[Dict[str, Any]]: ...
    async def upsert(self, partition_key: str, row_key: str, entity: Dict[str, Any]) -> None: ...
