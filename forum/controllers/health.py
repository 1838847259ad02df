from typing import Any

from fastapi import APIRouter

from forum import db, state

router = APIRouter()


@router.get("/health")
async def health() -> dict[str, Any]:
    redis_status = "disconnected"
    if state.redis_client:
        try:
            await state.redis_client.ping()
            redis_status = "healthy"
        except Exception:
            redis_status = "unhealthy"

    return {"status": "ok", "redis": redis_status, "database": db.get_pool_stats()}


@router.get("/health/schema")
async def schema() -> dict[str, Any]:
    if db.get_pool() is None:
        return {"status": "not_initialized"}
    return await db.get_schema_info()
