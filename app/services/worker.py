import asyncio
import logging
import random
from enum import Enum
from typing import Any, Awaitable, Callable, Dict, Optional
from ..models import TaskRequest, TaskRequestType, decode_task
from ..storage.base import Queue, QueueMessage, StorageError
from ..storage.repo import TaskResultRepo
from .callback import CallbackNotifier

logger = logging.getLogger(__name__)

TaskHandler = Callable[[TaskRequest], Awaitable[Any]]

class ProcessOutcome(str, Enum):
    EMPTY = "empty"
    PROCESSED = "processed"
    ALREADY_PROCESSED = "already_processed"
    POISONED = "poisoned"
    FAILED = "failed"

class DebugTaskHandler:
    """Fake long process. The delay is seeded by the task id, so redeliveries give the same output."""

    def __init__(self, min_delay: int = 1, max_delay: int = 10, sleep=asyncio.sleep):
        if min_delay > max_delay:
            raise ValueError("min_delay must not exceed max_delay")
        self.min_delay = min_delay
        self.max_delay = max_delay
        self.sleep = sleep

    async def __call__(self, task: TaskRequest) -> Dict[str, str]:
        delay = random.Random(task.task_id).randint(self.min_delay, self.max_delay)
        await self.sleep(delay)
        return {"delay": str(delay)}

class TaskWorker:
    def __init__(self, queue: Queue, results: TaskResultRepo, handlers: Dict[TaskRequestType, TaskHandler],
                 callbacks: Optional[CallbackNotifier] = None, *,
                 visibility_timeout: float = 30.0, max_delivery_count: int = 5):
        self.queue = queue
        self.results = results
        self.handlers = handlers
        self.callbacks = callbacks
        self.visibility_timeout = visibility_timeout
        self.max_delivery_count = max_delivery_count

    async def process_next(self) -> ProcessOutcome:
        message = await self.queue.receive(self.visibility_timeout)
        if message is None:
            return ProcessOutcome.EMPTY
        return await self.process(message)

    async def process(self, message: QueueMessage) -> ProcessOutcome:
        # Handler and persistence errors propagate; the message stays in flight
        # and is handed out again after the visibility timeout.
        try:
            task = decode_task(message.body)
        except ValueError as exc:
            logger.error("Dropping undecodable message %s: %s", message.message_id, exc)
            await self.queue.dead_letter(message)
            return ProcessOutcome.POISONED
        if not task.task_id:
            logger.error("Dropping message %s without task id", message.message_id)
            await self.queue.dead_letter(message)
            return ProcessOutcome.POISONED

        # Processed is terminal: a late redelivery never touches the stored result.
        existing = await self.results.get(task.type, task.task_id)
        if existing is not None and existing.is_processed:
            logger.info("Task %s already processed, acknowledging redelivery", task.task_id)
            await self.queue.ack(message)
            return ProcessOutcome.ALREADY_PROCESSED

        if message.dequeue_count > self.max_delivery_count:
            logger.error("Task %s exceeded %d deliveries, marking failed", task.task_id, self.max_delivery_count)
            await self.results.set_failed(task.type, task.task_id,
                                          f"gave up after {self.max_delivery_count} deliveries")
            await self.queue.dead_letter(message)
            return ProcessOutcome.FAILED

        handler = self.handlers.get(task.type)
        if handler is None:
            logger.error("No handler for task type %s (task %s)", task.type.value, task.task_id)
            await self.results.set_failed(task.type, task.task_id, f"unsupported task type {task.type.value}")
            await self.queue.dead_letter(message)
            return ProcessOutcome.FAILED

        try:
            await self.results.mark_processing(task.type, task.task_id)
        except StorageError as exc:
            logger.warning("Could not mark task %s as processing: %s", task.task_id, exc)

        logger.info("Processing task %s (delivery %d)", task.task_id, message.dequeue_count)
        result = await handler(task)

        await self.results.set_result(task.type, task.task_id, result)
        await self.queue.ack(message)
        logger.info("Task %s processed", task.task_id)

        callback_url = (task.callback_url or "").strip()
        if callback_url and self.callbacks is not None:
            await self.callbacks.notify(callback_url, task.task_id, result)
        return ProcessOutcome.PROCESSED

def default_handlers(min_delay: int = 1, max_delay: int = 10) -> Dict[TaskRequestType, TaskHandler]:
    return {TaskRequestType.DEBUG: DebugTaskHandler(min_delay, max_delay)}
