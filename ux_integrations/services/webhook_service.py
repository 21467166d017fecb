"""Webhook service for events pushed by providers."""

from abc import ABC, abstractmethod
from datetime import timezone
from typing import Any, Dict, List, Optional
import hashlib
import hmac
import logging

from ux_integrations.core.config import get_settings
from ux_integrations.models import IntegrationLog, IntegrationStatus, LogType
from ux_integrations.repositories import IntegrationRepository, LogRepository
from ux_integrations.schemas.webhook import WebhookEvent
from ux_integrations.services.errors import (
    IntegrationNotFoundError,
    InvalidSignatureError,
    WebhookRejectedError,
)
from ux_integrations.utils.dates import utcnow

logger = logging.getLogger(__name__)
settings = get_settings()

SIGNATURE_HEADER = "X-Webhook-Signature"


class WebhookSignatureVerifier(ABC):
    """Checks that a webhook body was produced by the holder of a shared secret."""

    @abstractmethod
    def verify(self, signature: str, payload: bytes, secret: str) -> bool:
        pass


class HmacSha256Verifier(WebhookSignatureVerifier):
    """Hex HMAC-SHA256 of the raw body, bare or as `sha256=<hex>`."""

    prefix = "sha256="

    def sign(self, payload: bytes, secret: str) -> str:
        return hmac.new(secret.encode(), payload, hashlib.sha256).hexdigest()

    def verify(self, signature: str, payload: bytes, secret: str) -> bool:
        provided = signature.strip()
        if provided.startswith(self.prefix):
            provided = provided[len(self.prefix):]
        return hmac.compare_digest(self.sign(payload, secret), provided.lower())


class WebhookService:
    """Folds webhook events into integration status and the integration log."""

    def __init__(
        self,
        integrations: IntegrationRepository,
        logs: LogRepository,
        verifier: Optional[WebhookSignatureVerifier] = None,
        secret: Optional[str] = None,
    ):
        self.integrations = integrations
        self.logs = logs
        self.verifier = verifier or HmacSha256Verifier()
        self.secret = secret if secret is not None else settings.webhook_secret

    def verify_request(self, signature: Optional[str], payload: bytes) -> None:
        """Raise InvalidSignatureError unless the request may be processed."""
        if not self.secret:
            logger.warning("WEBHOOK_SECRET is not configured; accepting unsigned webhook")
            return

        if not signature:
            raise InvalidSignatureError(f"Missing {SIGNATURE_HEADER} header")
        if not self.verifier.verify(signature, payload, self.secret):
            raise InvalidSignatureError()

    async def ingest(self, event: WebhookEvent) -> IntegrationLog:
        """Apply one event and log it.

        Every event for a known integration is logged exactly once, including
        status changes that are rejected (WebhookRejectedError is raised after
        the log entry is written).
        """
        integration = await self.integrations.get(event.integration_id)
        if integration is None:
            raise IntegrationNotFoundError(event.integration_id)

        now = utcnow()
        rejection: Optional[str] = None
        fields: Dict[str, Any] = {}

        if event.type == LogType.STATUS_CHANGE:
            requested = (event.data or {}).get("status")
            if requested is not None:
                try:
                    status = IntegrationStatus(requested)
                except ValueError:
                    rejection = f"Invalid status: {requested}"
                else:
                    if status == IntegrationStatus.SYNCING:
                        rejection = "Status SYNCING can only be set by a running sync"
                    else:
                        fields = {"status": status}
        elif event.type == LogType.ERROR:
            fields = {
                "status": IntegrationStatus.ERROR,
                "error_message": event.message or "Error reported by webhook",
            }
        elif event.type == LogType.SYNC_COMPLETE:
            fields = {"status": IntegrationStatus.ACTIVE, "last_sync_at": now, "error_message": None}
        elif event.type == LogType.DATA_UPDATE:
            fields = {"last_sync_at": now}

        if fields:
            await self.integrations.update(integration.id, fields)

        timestamp = event.timestamp or now
        if timestamp.tzinfo is None:
            timestamp = timestamp.replace(tzinfo=timezone.utc)

        log = await self.logs.append(IntegrationLog(
            integration_id=integration.id,
            type=event.type,
            message=event.message or f"Webhook received: {event.type.value}",
            data=event.data or {},
            timestamp=timestamp,
        ))

        if rejection:
            logger.warning(
                f"Rejected webhook for integration {integration.id}: {rejection}",
                extra={"integration_id": integration.id},
            )
            raise WebhookRejectedError(rejection)

        logger.info(
            f"Processed {event.type.value} webhook for integration {integration.id}",
            extra={"integration_id": integration.id},
        )
        return log

    async def list_logs(self, integration_id: str, limit: int = 50) -> List[IntegrationLog]:
        return await self.logs.list_for_integration(integration_id, limit)
