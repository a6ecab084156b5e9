import asyncio
import logging
import uuid
from typing import Awaitable, Callable, Optional
from ..models import TaskRequest, TaskRequestType, encode_task
from ..storage.base import Queue, StorageError
from ..storage.repo import TaskResultRepo
from ..storage.schema import TaskResult

logger = logging.getLogger(__name__)

StopCheck = Callable[[], Awaitable[bool]]

class TaskSubmissionService:
    def __init__(self, queue: Queue, results: TaskResultRepo, *, timeout: float = 3.0,
                 poll_interval: float = 0.5, notify: Optional[Callable[[], None]] = None):
        self.queue = queue
        self.results = results
        self.timeout = timeout
        self.poll_interval = poll_interval
        self.notify = notify

    async def enqueue(self, request: TaskRequest) -> TaskRequest:
        task = request.model_copy(update={"task_id": str(uuid.uuid4())})
        await self.queue.enqueue(encode_task(task))
        logger.info("Enqueued task %s (%s)", task.task_id, task.type.value)

        if self.notify is not None:
            try:
                self.notify()
            except Exception:
                # The message is durable; the periodic sweep picks it up.
                logger.exception("Could not trigger worker for task %s", task.task_id)
        return task

    async def wait_for_result(self, task_type: TaskRequestType, task_id: str, *,
                              timeout: Optional[float] = None,
                              should_stop: Optional[StopCheck] = None) -> Optional[TaskResult]:
        """Poll until processed, the deadline passes or should_stop() is true. Read failures count as not ready."""
        loop = asyncio.get_running_loop()
        deadline = loop.time() + (self.timeout if timeout is None else timeout)

        while True:
            try:
                rec = await self.results.get(task_type, task_id)
            except StorageError as exc:
                logger.warning("Result poll for task %s failed: %s", task_id, exc)
                rec = None
            if rec is not None and rec.is_processed:
                return rec

            remaining = deadline - loop.time()
            if remaining <= 0:
                return None
            if should_stop is not None and await should_stop():
                logger.info("Caller went away while waiting for task %s", task_id)
                return None
            await asyncio.sleep(min(self.poll_interval, remaining))

    async def submit(self, request: TaskRequest, *,
                     should_stop: Optional[StopCheck] = None) -> tuple[TaskRequest, Optional[TaskResult]]:
        task = await self.enqueue(request)
        rec = await self.wait_for_result(task.type, task.task_id, should_stop=should_stop)
        if rec is None:
            logger.info("Task %s not done within %.1fs, deferring", task.task_id, self.timeout)
        return task, rec
