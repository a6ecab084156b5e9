from datetime import datetime, timezone
from .base import KeyedStore
from .schema import TaskResult
from ..models import TaskRequestType, result_partition
import orjson

class TaskResultRepo:
    def __init__(self, table: KeyedStore):
        self.table = table

    async def _save(self, rec: TaskResult):
        await self.table.upsert(rec.partition_key, rec.row_key, rec.model_dump(mode="json"))

    async def get(self, task_type: TaskRequestType, task_id: str) -> TaskResult | None:
        data = await self.table.get(result_partition(task_type), task_id)
        if not data:
            return None
        return TaskResult(**data)

    async def mark_processing(self, task_type: TaskRequestType, task_id: str):
        await self._save(TaskResult(partition_key=result_partition(task_type), row_key=task_id,
                                    timestamp=datetime.now(timezone.utc)))

    async def set_result(self, task_type: TaskRequestType, task_id: str, result) -> TaskResult:
        rec = TaskResult(partition_key=result_partition(task_type), row_key=task_id,
                         timestamp=datetime.now(timezone.utc),
                         output=orjson.dumps(result).decode())
        await self._save(rec)
        return rec

    async def set_failed(self, task_type: TaskRequestType, task_id: str, error: str):
        await self._save(TaskResult(partition_key=result_partition(task_type), row_key=task_id,
                                    timestamp=datetime.now(timezone.utc), error=error))
