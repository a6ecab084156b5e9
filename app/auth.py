from fastapi import Header, HTTPException, Query
from .config import settings

async def require_function_key(
    x_functions_key: str | None = Header(default=None),
    code: str | None = Query(default=None),
):
    key = x_functions_key or code
    if not key or key != settings.functions_key:
        raise HTTPException(status_code=401, detail="Unauthorized")
