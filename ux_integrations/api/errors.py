"""Translation of service errors into HTTP errors."""

from fastapi import HTTPException, status

from ux_integrations.integrations.base import (
    ConfigurationError,
    IntegrationError,
    UnsupportedProviderError,
)
from ux_integrations.services.errors import (
    IntegrationNotFoundError,
    InvalidConfigurationError,
    InvalidSignatureError,
    SyncInProgressError,
    WebhookRejectedError,
)


def http_error(exc: IntegrationError) -> HTTPException:
    if isinstance(exc, IntegrationNotFoundError):
        return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc))
    if isinstance(exc, SyncInProgressError):
        return HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(exc))
    if isinstance(exc, InvalidConfigurationError):
        return HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail={"error": str(exc), "details": exc.errors},
        )
    if isinstance(exc, InvalidSignatureError):
        return HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail=str(exc))
    if isinstance(exc, (WebhookRejectedError, ConfigurationError, UnsupportedProviderError)):
        return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc))
    return HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=str(exc))
