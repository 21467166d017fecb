"""API dependencies."""

from fastapi import Depends, Header, HTTPException, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from typing import Any, Dict, Optional
import hmac
import httpx
import logging

from ux_integrations.core.config import get_settings
from ux_integrations.core.database import database
from ux_integrations.repositories import (
    IntegrationRepository,
    LogRepository,
    InMemoryIntegrationRepository,
    InMemoryLogRepository,
    MongoIntegrationRepository,
    MongoLogRepository,
)
from ux_integrations.services import IntegrationService, SyncService, WebhookService
from ux_integrations.utils.rate_limiter import RateLimiter

logger = logging.getLogger(__name__)
settings = get_settings()

# Security
security = HTTPBearer()


class Storage:
    """Process-wide repositories and the shared provider rate limiter."""

    integrations: Optional[IntegrationRepository] = None
    logs: Optional[LogRepository] = None
    rate_limiter: Optional[RateLimiter] = None

    def configure(self):
        if settings.storage_backend == "memory":
            self.integrations = InMemoryIntegrationRepository(settings.encryption_key)
            self.logs = InMemoryLogRepository()
        else:
            self.integrations = MongoIntegrationRepository(database, settings.encryption_key)
            self.logs = MongoLogRepository(database)

        if settings.rate_limit_enabled:
            self.rate_limiter = RateLimiter(settings.redis_url, prefix="provider_calls")

    async def close(self):
        if self.rate_limiter:
            await self.rate_limiter.close()


storage = Storage()


async def get_current_user(credentials: HTTPAuthorizationCredentials = Depends(security)) -> Dict[str, Any]:
    """Get current user from auth service."""
    token = credentials.credentials

    try:
        # Verify token with auth service
        async with httpx.AsyncClient() as client:
            response = await client.get(
                f"{settings.auth_service_url}/api/v1/users/me",
                headers={"Authorization": f"Bearer {token}"}
            )
    except httpx.RequestError as e:
        logger.error(f"Auth service request failed: {e}")
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Authentication service unavailable"
        )

    if response.status_code != 200:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Unauthorized",
            headers={"WWW-Authenticate": "Bearer"},
        )

    return response.json()


async def verify_scheduler_key(x_scheduler_key: Optional[str] = Header(None)) -> None:
    """Guard the scheduler endpoints when SCHEDULER_API_KEY is configured."""
    if not settings.scheduler_api_key:
        return
    if not x_scheduler_key or not hmac.compare_digest(x_scheduler_key, settings.scheduler_api_key):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid scheduler key",
        )


# Storage dependencies
def get_integration_repository() -> IntegrationRepository:
    if storage.integrations is None:
        raise RuntimeError("Storage not configured")
    return storage.integrations


def get_log_repository() -> LogRepository:
    if storage.logs is None:
        raise RuntimeError("Storage not configured")
    return storage.logs


def get_rate_limiter() -> Optional[RateLimiter]:
    return storage.rate_limiter


# Service dependencies
def get_integration_service(
    integrations: IntegrationRepository = Depends(get_integration_repository),
    logs: LogRepository = Depends(get_log_repository),
    rate_limiter: Optional[RateLimiter] = Depends(get_rate_limiter),
) -> IntegrationService:
    """Get integration service instance."""
    return IntegrationService(integrations, logs, rate_limiter=rate_limiter)


def get_sync_service(
    integrations: IntegrationRepository = Depends(get_integration_repository),
    logs: LogRepository = Depends(get_log_repository),
    rate_limiter: Optional[RateLimiter] = Depends(get_rate_limiter),
) -> SyncService:
    """Get sync service instance."""
    return SyncService(integrations, logs, rate_limiter=rate_limiter)


def get_webhook_service(
    integrations: IntegrationRepository = Depends(get_integration_repository),
    logs: LogRepository = Depends(get_log_repository),
) -> WebhookService:
    """Get webhook service instance."""
    return WebhookService(integrations, logs)
