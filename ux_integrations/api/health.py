"""Health check endpoints."""

from fastapi import APIRouter

from ux_integrations.api.dependencies import storage
from ux_integrations.core.config import get_settings
from ux_integrations.core.database import database
from ux_integrations.utils.dates import utcnow

router = APIRouter()
settings = get_settings()


@router.get("/health")
async def health_check():
    """Basic health check."""
    return {
        "status": "healthy",
        "service": settings.service_name,
        "environment": settings.environment,
        "timestamp": utcnow().isoformat(),
    }


@router.get("/health/detailed")
async def detailed_health_check():
    """Detailed health check with storage connectivity."""
    health_status = {
        "status": "healthy",
        "service": settings.service_name,
        "environment": settings.environment,
        "timestamp": utcnow().isoformat(),
        "checks": {
            "storage": {"backend": settings.storage_backend, "status": "unknown"},
        }
    }
    checks = health_status["checks"]

    if settings.storage_backend == "memory":
        checks["storage"]["status"] = "healthy"
    else:
        try:
            if await database.ping():
                checks["storage"]["status"] = "healthy"
            else:
                checks["storage"]["status"] = "disconnected"
                health_status["status"] = "degraded"
        except Exception as e:
            checks["storage"]["status"] = "unhealthy"
            checks["storage"]["error"] = str(e)
            health_status["status"] = "unhealthy"

    if storage.rate_limiter is not None:
        try:
            await storage.rate_limiter.redis_client.ping()
            checks["redis"] = {"status": "healthy"}
        except Exception as e:
            checks["redis"] = {"status": "unhealthy", "error": str(e)}
            health_status["status"] = "degraded"

    return health_status
