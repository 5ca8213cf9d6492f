from fastapi import APIRouter
from typing import Any, Dict

from calendarly import db, state
from calendarly.dependencies import OptionalRedis

router = APIRouter()


@router.get("/health")
async def health(redis_client: OptionalRedis) -> Dict[str, Any]:
    redis_status = "disconnected"
    if redis_client:
        try:
            await redis_client.ping()
            redis_status = "healthy"
        except Exception:
            redis_status = "unhealthy"

    database = db.get_pool_stats() if state.db_ready else {"status": "not_initialized"}
    return {"status": "ok", "redis": redis_status, "database": database}
