import logging
from datetime import datetime, timezone
from typing import Any, Dict

from fastapi import APIRouter, Depends, HTTPException
from redis.exceptions import RedisError
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from pixelshelf.core.config import settings
from pixelshelf.db import get_db
from pixelshelf.integrations.redis_client import ping

log = logging.getLogger(__name__)

router = APIRouter(prefix="/health", tags=["health"])


async def database_alive(db: AsyncSession) -> bool:
    try:
        await db.execute(text("SELECT 1"))
        return True
    except SQLAlchemyError as exc:
        log.error(f"Database health check failed: {exc}")
        return False


async def cache_status() -> Dict[str, str]:
    if not settings.ENABLE_REDIS_CACHE:
        return {"status": "disabled"}
    try:
        await ping()
        return {"status": "ok"}
    except (RedisError, OSError) as exc:
        return {"status": "error", "message": f"Redis error: {exc}"}


@router.get("")
async def health_check(db: AsyncSession = Depends(get_db)) -> Dict[str, Any]:
    """
    Health check endpoint to verify the API is running.

    Reports the database and cache status. Any failing service marks the
    overall status as degraded.
    """
    health_data = {
        "status": "ok",
        "api": "running",
        "version": "1.0.0",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "services": {
            "database": {"status": "ok" if await database_alive(db) else "error"},
            "cache": await cache_status(),
        },
    }
    for service_info in health_data["services"].values():
        if service_info["status"] not in ("ok", "disabled"):
            health_data["status"] = "degraded"
            break
    return health_data


@router.get("/live")
async def liveness_check():
    """Simple endpoint to check if the API is alive."""
    return {"status": "alive"}


@router.get("/ready")
async def readiness_check(db: AsyncSession = Depends(get_db)):
    if not await database_alive(db):
        raise HTTPException(503, "Database unreachable")
    return {"status": "ready", "checks": {"database": "ok"}}
