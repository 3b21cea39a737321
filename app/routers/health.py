from fastapi import APIRouter, HTTPException
from structlog import get_logger
from redis.asyncio import Redis
from sqlalchemy.sql import text

from app.config import settings
from app.core.database import engine

logger = get_logger()
router = APIRouter(prefix="/api/v1", tags=["health"])

@router.get("/health")
async def health():
    return {"status": "ok"}

@router.get("/health/ready")
async def readiness():
    details = {"status": "ok", "checks": {}}

    # Redis check (rate limiter and geocode cache)
    try:
        redis = Redis.from_url(settings.REDIS_URL, encoding="utf-8", decode_responses=True)
        pong = await redis.ping()
        details["checks"]["redis"] = "ok" if pong else "fail"
    except Exception as e:
        logger.warning("health redis fail", error=str(e))
        details["checks"]["redis"] = f"fail: {str(e)}"
        details["status"] = "degraded"

    # Account database check
    try:
        async with engine.connect() as conn:
            await conn.execute(text("SELECT 1"))
        details["checks"]["database"] = "ok"
    except Exception as e:
        logger.warning("health db fail", error=str(e))
        details["checks"]["database"] = f"fail: {str(e)}"
        details["status"] = "degraded"

    return details

@router.post("/cache/clear")
async def clear_cache():
    """
    Clear cached geocoder answers from Redis.
    """
    try:
        redis = Redis.from_url(settings.REDIS_URL, encoding="utf-8", decode_responses=True)
        keys = await redis.keys("geocode:*")
        if keys:
            deleted = await redis.delete(*keys)
            logger.info("Cache cleared", deleted_keys=deleted)
            return {"status": "ok", "cleared_keys": deleted}
        else:
            logger.info("No cache keys to clear")
            return {"status": "ok", "cleared_keys": 0}
    except Exception as e:
        logger.error("Failed to clear cache", error=str(e))
        raise HTTPException(status_code=500, detail=f"Failed to clear cache: {str(e)}")
