from pathlib import Path
import sys

import pytest

sys.path.append(str(Path(__file__).resolve().parents[1]))

from app.services.callback import CallbackNotifier
from app.services.status import TaskStatusService
from app.services.submission import TaskSubmissionService
from app.services.worker import DebugTaskHandler, TaskWorker
from app.models import TaskRequestType
from app.storage.repo import TaskResultRepo

from fakes import InMemoryQueue, InMemoryTable


@pytest.fixture()
def queue() -> InMemoryQueue:
    return InMemoryQueue()


@pytest.fixture()
def table() -> InMemoryTable:
    return InMemoryTable()


@pytest.fixture()
def results(table: InMemoryTable) -> TaskResultRepo:
    return TaskResultRepo(table)


@pytest.fixture()
def submission(queue: InMemoryQueue, results: TaskResultRepo) -> TaskSubmissionService:
    return TaskSubmissionService(queue, results, timeout=0.2, poll_interval=0.01)


@pytest.fixture()
def status(queue: InMemoryQueue, results: TaskResultRepo) -> TaskStatusService:
    return TaskStatusService(queue, results, peek_limit=64)


@pytest.fixture()
def worker(queue: InMemoryQueue, results: TaskResultRepo) -> TaskWorker:
    """Worker whose DEBUG handler does not actually sleep."""
    return TaskWorker(
        queue,
        results,
        {TaskRequestType.DEBUG: DebugTaskHandler(0, 0)},
        CallbackNotifier(timeout=1.0),
        visibility_timeout=30.0,
        max_delivery_count=5,
    )
