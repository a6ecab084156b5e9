import orjson
from fastapi import APIRouter, Depends, HTTPException, Request
from ..auth import require_function_key
from ..dependencies import get_cache_service
from ..models import CacheEntryResponse
from ..services.cache import CacheService
from ..storage.schema import CacheEntry

router = APIRouter(prefix="/api/Cache", dependencies=[Depends(require_function_key)])

def _to_response(entry: CacheEntry) -> CacheEntryResponse:
    return CacheEntryResponse(partition_key=entry.partition_key, row_key=entry.row_key,
                              timestamp=entry.timestamp.isoformat(), json_value=entry.json_value)

@router.get("/{partition}/{key}", response_model=CacheEntryResponse)
async def get_cache_entry(partition: str, key: str, cache: CacheService = Depends(get_cache_service)):
    entry = await cache.get(partition, key)
    if entry is None:
        raise HTTPException(status_code=404, detail="Not cached")
    return _to_response(entry)

@router.post("/{partition}/{key}", response_model=CacheEntryResponse)
async def put_cache_entry(partition: str, key: str, request: Request, cache: CacheService = Depends(get_cache_service)):
    body = await request.body()
    if not body.strip():
        raise HTTPException(status_code=400, detail="Request body is empty")
    try:
        orjson.loads(body)
    except orjson.JSONDecodeError:
        raise HTTPException(status_code=400, detail="Request body is not valid JSON")
    entry = await cache.put(partition, key, body.decode())
    return _to_response(entry)
