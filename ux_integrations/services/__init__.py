"""Business logic services."""

from .config_validator import ConfigValidator, ValidationResult
from .errors import (
    IntegrationNotFoundError,
    InvalidConfigurationError,
    InvalidSignatureError,
    SyncInProgressError,
    WebhookRejectedError,
)
from .integration_service import IntegrationService, ConnectionTestResult
from .sync_service import SyncService, SyncResult, SyncCandidates
from .webhook_service import WebhookService, WebhookSignatureVerifier, HmacSha256Verifier

__all__ = [
    "ConfigValidator",
    "ValidationResult",
    "IntegrationNotFoundError",
    "InvalidConfigurationError",
    "InvalidSignatureError",
    "SyncInProgressError",
    "WebhookRejectedError",
    "IntegrationService",
    "ConnectionTestResult",
    "SyncService",
    "SyncResult",
    "SyncCandidates",
    "WebhookService",
    "WebhookSignatureVerifier",
    "HmacSha256Verifier",
]
