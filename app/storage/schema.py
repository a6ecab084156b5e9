from datetime import datetime
from pydantic import BaseModel
from typing import Optional

class TaskResult(BaseModel):
    partition_key: str  # Results-{type}
    row_key: str  # task id
    timestamp: datetime
    output: Optional[str] = None  # orjson string
    error: Optional[str] = None

    @property
    def is_processed(self) -> bool:
        return bool(self.output)

    @property
    def is_failed(self) -> bool:
        return not self.output and bool(self.error)

class CacheEntry(BaseModel):
    partition_key: str
    row_key: str
    timestamp: datetime
    json_value: str
