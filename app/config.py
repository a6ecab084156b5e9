from pydantic import BaseModel, model_validator
import os

class Settings(BaseModel):
    functions_key: str = os.getenv("FUNCTIONS_KEY", "change-me")
    redis_url: str = os.getenv("REDIS_URL", "redis://localhost:6379/0")
    tasks_queue_name: str = os.getenv("TASKS_QUEUE_NAME", "tasks")
    tasks_table_name: str = os.getenv("TASKS_TABLE_NAME", "tasks")
    cache_table_name: str = os.getenv("CACHE_TABLE_NAME", "Cache")
    submit_timeout_seconds: float = float(os.getenv("SUBMIT_TIMEOUT_SECONDS", 3.0))
    submit_poll_interval_seconds: float = float(os.getenv("SUBMIT_POLL_INTERVAL_SECONDS", 0.5))
    status_peek_limit: int = int(os.getenv("STATUS_PEEK_LIMIT", 64))
    visibility_timeout_seconds: float = float(os.getenv("VISIBILITY_TIMEOUT_SECONDS", 30))
    max_delivery_count: int = int(os.getenv("MAX_DELIVERY_COUNT", 5))
    callback_timeout_seconds: float = float(os.getenv("CALLBACK_TIMEOUT_SECONDS", 10))
    debug_task_min_delay_seconds: int = int(os.getenv("DEBUG_TASK_MIN_DELAY_SECONDS", 1))
    debug_task_max_delay_seconds: int = int(os.getenv("DEBUG_TASK_MAX_DELAY_SECONDS", 10))
    cache_freshness_seconds: int = int(os.getenv("CACHE_FRESHNESS_SECONDS", 300))
    log_level: str = os.getenv("LOG_LEVEL", "INFO")

    @model_validator(mode="after")
    def _check_debug_delay(self):
        if self.debug_task_min_delay_seconds > self.debug_task_max_delay_seconds:
            raise ValueError("DEBUG_TASK_MIN_DELAY_SECONDS must not exceed DEBUG_TASK_MAX_DELAY_SECONDS")
        # A task still running when its message becomes visible again gets redelivered.
        if self.debug_task_max_delay_seconds >= self.visibility_timeout_seconds:
            raise ValueError("DEBUG_TASK_MAX_DELAY_SECONDS must be below VISIBILITY_TIMEOUT_SECONDS")
        return self

settings = Settings()
