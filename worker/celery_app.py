import asyncio
import logging
import os
from celery import Celery
from celery.signals import after_setup_logger

logger = logging.getLogger(__name__)

MAX_TRIGGERS_PER_SWEEP = int(os.getenv("MAX_TRIGGERS_PER_SWEEP", 100))

celery_app = Celery(
    "delicate_dust",
    broker=os.getenv("REDIS_URL", "redis://localhost:6379/0"),
    backend=os.getenv("REDIS_URL", "redis://localhost:6379/0"),
)
celery_app.conf.task_ignore_result = True
celery_app.conf.beat_schedule = {
    "release-expired-tasks": {
        "task": "release_expired_tasks",
        "schedule": float(os.getenv("RELEASE_EXPIRED_INTERVAL_SECONDS", 15)),
    },
}


@after_setup_logger.connect
def _configure_logging(**_):
    from app.config import settings
    from app.logging_setup import setup_logging
    setup_logging(settings.log_level)


async def _process_next() -> str:
    from app.dependencies import build_services, redis_client
    r = redis_client()
    try:
        services = build_services(r)
        outcome = await services.worker.process_next()
    finally:
        await r.aclose()
    return outcome.value


async def _release_expired() -> tuple[int, int]:
    from app.dependencies import build_services, redis_client
    r = redis_client()
    try:
        services = build_services(r)
        released = await services.queue.release_expired()
        pending = await services.queue.pending_count()
    finally:
        await r.aclose()
    return released, pending


@celery_app.task(name="process_next_task")
def process_next_task() -> str:
    return asyncio.run(_process_next())


@celery_app.task(name="release_expired_tasks")
def release_expired_tasks() -> int:
    released, pending = asyncio.run(_release_expired())
    if released:
        logger.info("Released %d expired task message(s) back to the queue", released)
    # Covers released messages and any whose submit-time trigger was lost.
    for _ in range(min(pending, MAX_TRIGGERS_PER_SWEEP)):
        process_next_task.delay()
    return released
