from dataclasses import dataclass
from functools import lru_cache
from typing import Callable, Optional

from redis.asyncio import Redis

from .config import Settings, settings
from .services.cache import CacheService
from .services.callback import CallbackNotifier
from .services.status import TaskStatusService
from .services.submission import TaskSubmissionService
from .services.worker import TaskWorker, default_handlers
from .storage.redis_queue import RedisQueue
from .storage.redis_table import RedisTable
from .storage.repo import TaskResultRepo


@dataclass
class Services:
    queue: RedisQueue
    results: TaskResultRepo
    submission: TaskSubmissionService
    status: TaskStatusService
    worker: TaskWorker
    cache: CacheService


def redis_client(cfg: Settings = settings) -> Redis:
    return Redis.from_url(cfg.redis_url, decode_responses=True)


def build_services(r: Redis, cfg: Settings = settings, notify: Optional[Callable[[], None]] = None) -> Services:
    queue = RedisQueue(r, cfg.tasks_queue_name)
    results = TaskResultRepo(RedisTable(r, cfg.tasks_table_name))
    return Services(
        queue=queue,
        results=results,
        submission=TaskSubmissionService(
            queue,
            results,
            timeout=cfg.submit_timeout_seconds,
            poll_interval=cfg.submit_poll_interval_seconds,
            notify=notify,
        ),
        status=TaskStatusService(queue, results, peek_limit=cfg.status_peek_limit),
        worker=TaskWorker(
            queue,
            results,
            default_handlers(cfg.debug_task_min_delay_seconds, cfg.debug_task_max_delay_seconds),
            CallbackNotifier(timeout=cfg.callback_timeout_seconds),
            visibility_timeout=cfg.visibility_timeout_seconds,
            max_delivery_count=cfg.max_delivery_count,
        ),
        cache=CacheService(RedisTable(r, cfg.cache_table_name), cfg.cache_freshness_seconds),
    )


def _trigger_worker() -> None:
    from worker.celery_app import process_next_task
    process_next_task.delay()


@lru_cache(maxsize=1)
def api_services() -> Services:
    return build_services(redis_client(), settings, notify=_trigger_worker)


def get_submission_service() -> TaskSubmissionService:
    return api_services().submission


def get_status_service() -> TaskStatusService:
    return api_services().status


def get_cache_service() -> CacheService:
    return api_services().cache
