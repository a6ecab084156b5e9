import pytest

from app.models import TaskRequest, TaskRequestType, TaskStatus
from app.services.status import TaskStatusService


@pytest.mark.asyncio
async def test_unknown_task_is_not_found(status):
    assert await status.get_status(TaskRequestType.DEBUG, "never-submitted") is None


@pytest.mark.asyncio
async def test_status_follows_task_through_its_lifecycle(status, submission, worker, queue):
    task = await submission.enqueue(TaskRequest(payload="x", type="DEBUG"))
    assert await status.get_status(task.type, task.task_id) is TaskStatus.QUEUED

    message = await queue.receive(30.0)
    await worker.results.mark_processing(task.type, task.task_id)
    assert await status.get_status(task.type, task.task_id) is TaskStatus.PROCESSING

    await worker.process(message)
    assert await status.get_status(task.type, task.task_id) is TaskStatus.PROCESSED


@pytest.mark.asyncio
async def test_failed_row_reports_failed(status, results):
    await results.set_failed(TaskRequestType.DEBUG, "T1", "gave up")

    assert await status.get_status(TaskRequestType.DEBUG, "T1") is TaskStatus.FAILED


@pytest.mark.asyncio
async def test_messages_beyond_peek_limit_are_not_found(queue, results, submission):
    status = TaskStatusService(queue, results, peek_limit=2)
    tasks = [await submission.enqueue(TaskRequest(payload=str(i), type="DEBUG")) for i in range(3)]

    assert await status.get_status(TaskRequestType.DEBUG, tasks[1].task_id) is TaskStatus.QUEUED
    assert await status.get_status(TaskRequestType.DEBUG, tasks[2].task_id) is None


@pytest.mark.asyncio
async def test_undecodable_queue_messages_are_skipped(status, submission, queue):
    await queue.enqueue("garbage")
    task = await submission.enqueue(TaskRequest(payload="x", type="DEBUG"))

    assert await status.get_status(task.type, task.task_id) is TaskStatus.QUEUED
