from contextlib import asynccontextmanager
import logging
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from .config import settings
from .logging_setup import setup_logging
from .routers import cache, tasks
from .storage.base import StorageError

logger = logging.getLogger(__name__)

@asynccontextmanager
async def lifespan(app: FastAPI):
    setup_logging(settings.log_level)
    yield

app = FastAPI(title="Delicate Dust Tasks API", version="1.0.0", lifespan=lifespan)
app.include_router(tasks.router)
app.include_router(cache.router)

@app.exception_handler(StorageError)
async def storage_error_handler(request: Request, exc: StorageError):
    logger.error("Storage failure on %s %s: %s", request.method, request.url.path, exc)
    return JSONResponse(status_code=500, content={"detail": "Storage unavailable"})
