import logging
from typing import Any, Optional
import httpx
from ..models import CallbackPayload

logger = logging.getLogger(__name__)

class CallbackNotifier:
    """Best-effort POST of a finished task's result to the caller's URL."""

    def __init__(self, timeout: float = 10.0, transport: Optional[httpx.AsyncBaseTransport] = None):
        self.timeout = timeout
        self.transport = transport

    async def notify(self, url: str, task_id: str, result: Any) -> bool:
        payload = CallbackPayload(task_id=task_id, result=result).model_dump(mode="json", by_alias=True)
        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
                r = await client.post(url, json=payload)
                r.raise_for_status()
        except (httpx.HTTPError, httpx.InvalidURL) as e:
            logger.error("Error while calling task callback url %s: %s", url, e)
            return False
        return True
