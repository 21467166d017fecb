"""Integration service for managing integrations."""

import asyncio
from dataclasses import dataclass
from typing import Any, Dict, List, Optional
import logging

from ux_integrations.core.config import get_settings
from ux_integrations.integrations.base import IntegrationError
from ux_integrations.integrations.registry import create_adapter
from ux_integrations.models import Integration, IntegrationStatus, IntegrationType
from ux_integrations.repositories import IntegrationRepository, LogRepository
from ux_integrations.schemas.integration import IntegrationCreate, IntegrationUpdate, dump
from ux_integrations.schemas.webhook import dump_log
from ux_integrations.services.config_validator import ConfigValidator
from ux_integrations.services.errors import IntegrationNotFoundError, InvalidConfigurationError
from ux_integrations.services.sync_service import AdapterFactory
from ux_integrations.utils.dates import DateRange, utcnow
from ux_integrations.utils.rate_limiter import RateLimiter

logger = logging.getLogger(__name__)
settings = get_settings()

EXPORT_VERSION = "1.0"
EXPORT_LOG_LIMIT = 100


@dataclass
class ConnectionTestResult:
    success: bool
    message: str
    integration_type: IntegrationType
    sample_data: Any = None
    error: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        body: Dict[str, Any] = {
            "success": self.success,
            "message": self.message,
            "type": self.integration_type.value,
        }
        if self.success:
            body["sampleData"] = self.sample_data
        if self.error:
            body["error"] = self.error
        return body


class IntegrationService:
    """Service for managing integrations."""

    def __init__(
        self,
        integrations: IntegrationRepository,
        logs: LogRepository,
        adapter_factory: AdapterFactory = create_adapter,
        rate_limiter: Optional[RateLimiter] = None,
    ):
        self.integrations = integrations
        self.logs = logs
        self.adapter_factory = adapter_factory
        self.rate_limiter = rate_limiter

    @staticmethod
    def _validate(integration_type: IntegrationType, config: Dict[str, Any]) -> None:
        result = ConfigValidator.validate(integration_type, config)
        if not result.valid:
            raise InvalidConfigurationError(result.errors)

    async def create_integration(self, user_id: str, data: IntegrationCreate) -> Integration:
        """Validate and store a new integration, linking it to a project if given."""
        self._validate(data.integration_type, data.config)

        integration = await self.integrations.create(Integration(
            user_id=user_id,
            integration_type=data.integration_type,
            name=data.name,
            config=data.config,
        ))

        if data.project_id:
            await self.integrations.add_project_link(data.project_id, integration.id)

        return integration

    async def list_integrations(
        self,
        user_id: str,
        integration_type: Optional[IntegrationType] = None,
        status: Optional[IntegrationStatus] = None,
    ) -> List[Integration]:
        return await self.integrations.list_for_user(user_id, integration_type, status)

    async def get_integration(self, integration_id: str, user_id: str) -> Integration:
        integration = await self.integrations.get(integration_id, user_id)
        if integration is None:
            raise IntegrationNotFoundError(integration_id)
        return integration

    async def update_integration(
        self,
        integration_id: str,
        user_id: str,
        data: IntegrationUpdate,
    ) -> Integration:
        """Apply user edits; a new config is revalidated and its connection retested."""
        integration = await self.get_integration(integration_id, user_id)
        fields = data.model_dump(exclude_unset=True, exclude_none=True)

        if data.config is not None:
            self._validate(integration.integration_type, data.config)
            if not await self._test_connection(integration.integration_type, data.config):
                fields["status"] = IntegrationStatus.ERROR
                fields["error_message"] = "Connection test failed for the new configuration"
            else:
                fields.setdefault("error_message", None)

        if not fields:
            return integration

        updated = await self.integrations.update(integration.id, fields)
        if updated is None:
            raise IntegrationNotFoundError(integration_id)
        return updated

    async def delete_integration(self, integration_id: str, user_id: str) -> None:
        """Remove an integration with its project links and logs."""
        integration = await self.get_integration(integration_id, user_id)

        links = await self.integrations.delete_project_links(integration.id)
        logs = await self.logs.delete_for_integration(integration.id)
        await self.integrations.delete(integration.id)

        logger.info(
            f"Deleted integration {integration.id} ({links} project links, {logs} log entries)",
            extra={"integration_id": integration.id},
        )

    async def _test_connection(self, integration_type: IntegrationType, config: Dict[str, Any]) -> bool:
        try:
            async with self.adapter_factory(integration_type, config, rate_limiter=self.rate_limiter) as adapter:
                return await adapter.test_connection()
        except Exception as e:
            logger.warning(
                f"Connection test for {integration_type.value} failed: {e}",
                exc_info=not isinstance(e, IntegrationError),
            )
            return False

    async def test_configuration(
        self,
        integration_type: IntegrationType,
        config: Dict[str, Any],
    ) -> ConnectionTestResult:
        """Test a config without storing it; on success fetch a same-day sample."""
        self._validate(integration_type, config)

        try:
            async with self.adapter_factory(integration_type, config, rate_limiter=self.rate_limiter) as adapter:
                if not await adapter.test_connection():
                    return ConnectionTestResult(False, "Integration connection failed", integration_type)
                sample = await adapter.fetch_data(DateRange.for_today())
        except Exception as e:
            logger.warning(
                f"Test of {integration_type.value} configuration failed: {e}",
                exc_info=not isinstance(e, IntegrationError),
            )
            return ConnectionTestResult(
                False, "Integration test failed", integration_type, error=str(e) or type(e).__name__
            )

        return ConnectionTestResult(True, "Integration test successful", integration_type, sample_data=sample)

    async def export_integration(self, integration_id: str, user_id: str) -> Dict[str, Any]:
        """Integration (config included), recent logs and a fresh data snapshot."""
        integration = await self.get_integration(integration_id, user_id)
        logs = await self.logs.list_for_integration(integration.id, limit=EXPORT_LOG_LIMIT)

        return {
            "integration": dump(integration),
            "logs": [dump_log(log) for log in logs],
            "currentData": await self._current_data(integration),
            "exportDate": utcnow().isoformat(),
            "exportVersion": EXPORT_VERSION,
        }

    async def _current_data(self, integration: Integration) -> Any:
        timeout = settings.provider_timeout_seconds * settings.sync_timeout_multiplier
        try:
            adapter = self.adapter_factory(
                integration.integration_type, integration.config, rate_limiter=self.rate_limiter
            )
            async with adapter:
                return await asyncio.wait_for(adapter.fetch_data(), timeout=timeout)
        except asyncio.TimeoutError:
            logger.warning(f"Export of integration {integration.id} without current data: timed out")
            return {"error": "Failed to fetch current data", "message": f"Timed out after {timeout:g} seconds"}
        except Exception as e:
            logger.warning(
                f"Export of integration {integration.id} without current data: {e}",
                exc_info=not isinstance(e, IntegrationError),
                extra={"integration_id": integration.id},
            )
            return {"error": "Failed to fetch current data", "message": str(e) or type(e).__name__}
