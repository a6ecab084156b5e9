import asyncio

import orjson
import pytest

from app.models import TaskRequest, TaskRequestType, decode_task
from app.services.submission import TaskSubmissionService
from app.storage.base import StorageError


@pytest.mark.asyncio
async def test_enqueue_assigns_fresh_unique_task_ids(submission, queue):
    req = TaskRequest(task_id="client-chosen", payload="x", type="DEBUG")

    first = await submission.enqueue(req)
    second = await submission.enqueue(req)

    assert first.task_id != "client-chosen"
    assert first.task_id != second.task_id
    queued_ids = [decode_task(queue.bodies[mid]).task_id for mid in queue.pending]
    assert queued_ids == [first.task_id, second.task_id]


@pytest.mark.asyncio
async def test_submit_returns_result_when_worker_finishes_in_time(submission, queue, worker):
    async def run_worker_when_queued():
        while not queue.pending:
            await asyncio.sleep(0.001)
        await worker.process_next()

    background = asyncio.create_task(run_worker_when_queued())
    task, rec = await submission.submit(TaskRequest(payload="x", type="DEBUG"))
    await background

    assert rec is not None
    assert rec.row_key == task.task_id
    assert orjson.loads(rec.output) == {"delay": "0"}


@pytest.mark.asyncio
async def test_submit_defers_when_no_result_before_timeout(queue, results):
    service = TaskSubmissionService(queue, results, timeout=0.05, poll_interval=0.01)

    task, rec = await service.submit(TaskRequest(payload="x", type="DEBUG"))

    assert rec is None
    assert task.task_id
    assert len(queue.pending) == 1


@pytest.mark.asyncio
async def test_placeholder_row_is_not_a_result(submission, results):
    await results.mark_processing(TaskRequestType.DEBUG, "T1")

    assert await submission.wait_for_result(TaskRequestType.DEBUG, "T1", timeout=0.05) is None


@pytest.mark.asyncio
async def test_poll_read_failures_count_as_not_ready(submission, results, table):
    await results.set_result(TaskRequestType.DEBUG, "T1", {"ok": True})
    table.fail_reads = 2

    rec = await submission.wait_for_result(TaskRequestType.DEBUG, "T1", timeout=1.0)

    assert rec is not None
    assert table.reads == 3


@pytest.mark.asyncio
async def test_enqueue_failure_propagates_without_polling(submission, queue, table):
    queue.fail_enqueue = True

    with pytest.raises(StorageError):
        await submission.submit(TaskRequest(payload="x", type="DEBUG"))

    assert queue.pending == []
    assert table.reads == 0


@pytest.mark.asyncio
async def test_wait_stops_when_caller_goes_away(submission):
    async def gone() -> bool:
        return True

    rec = await asyncio.wait_for(
        submission.wait_for_result(TaskRequestType.DEBUG, "T1", timeout=30.0, should_stop=gone),
        timeout=1.0,
    )

    assert rec is None


@pytest.mark.asyncio
async def test_wait_can_be_cancelled(submission):
    waiter = asyncio.create_task(submission.wait_for_result(TaskRequestType.DEBUG, "T1", timeout=30.0))
    await asyncio.sleep(0.02)
    waiter.cancel()

    with pytest.raises(asyncio.CancelledError):
        await waiter


@pytest.mark.asyncio
async def test_worker_trigger_failure_does_not_fail_submission(queue, results):
    calls = []

    def broken_trigger():
        calls.append(1)
        raise ConnectionError("broker down")

    service = TaskSubmissionService(queue, results, timeout=0.01, poll_interval=0.01, notify=broken_trigger)

    task = await service.enqueue(TaskRequest(payload="x", type="DEBUG"))

    assert calls == [1]
    assert decode_task(queue.bodies[queue.pending[0]]).task_id == task.task_id
