import logging
from typing import Optional
from ..models import TaskRequestType, TaskStatus, decode_task
from ..storage.base import Queue
from ..storage.repo import TaskResultRepo

logger = logging.getLogger(__name__)

class TaskStatusService:
    def __init__(self, queue: Queue, results: TaskResultRepo, *, peek_limit: int = 64):
        self.queue = queue
        self.results = results
        self.peek_limit = peek_limit

    async def get_status(self, task_type: TaskRequestType, task_id: str) -> Optional[TaskStatus]:
        # Messages further back than peek_limit are reported as unknown.
        rec = await self.results.get(task_type, task_id)
        if rec is not None:
            if rec.is_processed:
                return TaskStatus.PROCESSED
            if rec.is_failed:
                return TaskStatus.FAILED
            return TaskStatus.PROCESSING

        for message in await self.queue.peek(self.peek_limit):
            try:
                queued = decode_task(message.body)
            except ValueError:
                logger.debug("Skipping undecodable message %s", message.message_id)
                continue
            if queued.task_id == task_id and queued.type == task_type:
                return TaskStatus.QUEUED
        return None
