"""Service-level errors, translated to HTTP responses by the API layer."""

from typing import List, Optional

from ux_integrations.integrations.base import IntegrationError


class IntegrationNotFoundError(IntegrationError):
    """Integration is absent or not owned by the caller."""

    def __init__(self, integration_id: str):
        self.integration_id = integration_id
        super().__init__("Integration not found")


class SyncInProgressError(IntegrationError):
    """A sync is already running for the integration."""

    def __init__(self, integration_id: str):
        self.integration_id = integration_id
        super().__init__("Integration already syncing")


class InvalidConfigurationError(IntegrationError):
    """Config failed static validation."""

    def __init__(self, errors: List[str]):
        self.errors = errors
        super().__init__("Invalid integration configuration")


class WebhookRejectedError(IntegrationError):
    """Webhook was understood but cannot be applied."""
    pass


class InvalidSignatureError(IntegrationError):
    """Webhook signature is missing or does not match."""

    def __init__(self, message: Optional[str] = None):
        super().__init__(message or "Invalid webhook signature")
