from datetime import datetime, timezone
from typing import Dict

from fastapi import APIRouter, Request, status

from quizhub.core.logger.logger import get_logger
from quizhub.infra.config.redis import get_redis
from quizhub.infra.config.settings import get_settings
from quizhub.infra.database import get_database_manager

logger = get_logger(__name__)
settings = get_settings()

router = APIRouter(tags=["Health"])


async def check_database_health() -> Dict[str, str]:
    """Check database connection health."""
    try:
        await get_database_manager().ping()
        return {"status": "healthy", "message": "Connected"}
    except Exception as e:
        logger.warning("Database health check failed", extra={"error": str(e)})
        return {"status": "unhealthy", "message": f"Connection failed: {str(e)}"}


async def check_redis_health() -> Dict[str, str]:
    """Check Redis connection health."""
    try:
        redis_client = await get_redis()
        await redis_client.ping()
        return {"status": "healthy", "message": "Connected"}
    except Exception as e:
        return {"status": "unhealthy", "message": f"Connection failed: {str(e)}"}


@router.get("/health", status_code=status.HTTP_200_OK)
async def health_check(request: Request):
    """
    Service health with database and Redis status.
    Always answers 200; `status` is "degraded" when a dependency is down.
    """
    database = await check_database_health()
    redis = await check_redis_health()

    services = {"database": database, "redis": redis}
    overall = "healthy" if all(s["status"] == "healthy" for s in services.values()) else "degraded"

    return {
        "status": overall,
        "service": settings.APP_NAME,
        "version": settings.APP_VERSION,
        "services": services,
        "request_id": getattr(request.state, "request_id", None),
        "timestamp": datetime.now(timezone.utc).isoformat()
    }
