from unittest.mock import AsyncMock, patch

from worker import celery_app


def test_sweep_triggers_one_worker_run_per_pending_message():
    with patch.object(celery_app, "_release_expired", new=AsyncMock(return_value=(1, 3))), \
            patch.object(celery_app, "process_next_task") as trigger:
        released = celery_app.release_expired_tasks.run()

    assert released == 1
    assert trigger.delay.call_count == 3


def test_sweep_caps_triggers(monkeypatch):
    monkeypatch.setattr(celery_app, "MAX_TRIGGERS_PER_SWEEP", 2)
    with patch.object(celery_app, "_release_expired", new=AsyncMock(return_value=(0, 50))), \
            patch.object(celery_app, "process_next_task") as trigger:
        celery_app.release_expired_tasks.run()

    assert trigger.delay.call_count == 2


def test_process_next_task_reports_outcome():
    with patch.object(celery_app, "_process_next", new=AsyncMock(return_value="empty")):
        assert celery_app.process_next_task.run() == "empty"
