"""Synchronization of integrations with their providers."""

import asyncio
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Callable, Dict, List, Optional
import logging

from ux_integrations.core.config import get_settings
from ux_integrations.integrations.base import BaseAdapter, IntegrationError
from ux_integrations.integrations.registry import create_adapter
from ux_integrations.models import (
    Integration,
    IntegrationLog,
    IntegrationStatus,
    IntegrationType,
    LogType,
)
from ux_integrations.repositories import IntegrationRepository, LogRepository
from ux_integrations.services.errors import IntegrationNotFoundError, SyncInProgressError
from ux_integrations.utils.dates import DateRange, utcnow
from ux_integrations.utils.mapping import count_data_points
from ux_integrations.utils.rate_limiter import RateLimiter

logger = logging.getLogger(__name__)
settings = get_settings()

AdapterFactory = Callable[..., BaseAdapter]


@dataclass
class SyncResult:
    """Outcome of one sync attempt."""
    integration_id: str
    success: bool
    message: str
    data_points: int = 0
    data: Any = None
    error: Optional[str] = None
    last_sync: Optional[datetime] = None

    def to_batch_entry(self) -> Dict[str, Any]:
        entry: Dict[str, Any] = {"integrationId": self.integration_id, "success": self.success}
        if self.success:
            entry["message"] = self.message
            entry["dataPoints"] = self.data_points
        else:
            entry["error"] = self.error
        return entry


@dataclass
class SyncCandidates:
    integrations: List[Integration] = field(default_factory=list)
    ready_for_sync: int = 0


class SyncService:
    """Runs the per-integration sync state machine.

    INACTIVE/ACTIVE/ERROR -> SYNCING -> ACTIVE on success or ERROR on failure.
    Provider failures are recorded on the integration and in its log; they are
    never raised to the caller.
    """

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
        self.sync_timeout = settings.provider_timeout_seconds * settings.sync_timeout_multiplier

    async def request_sync(
        self,
        integration_id: str,
        user_id: Optional[str] = None,
        force: bool = False,
        date_range: Optional[DateRange] = None,
        label: str = "Sync",
    ) -> SyncResult:
        """Sync one integration.

        Raises IntegrationNotFoundError when it is absent (or not owned by
        `user_id`) and SyncInProgressError when a sync is already running and
        `force` is not set.
        """
        integration = await self.integrations.get(integration_id, user_id)
        if integration is None:
            raise IntegrationNotFoundError(integration_id)

        claimed = await self.integrations.try_begin_sync(integration_id, force=force)
        if claimed is None:
            raise SyncInProgressError(integration_id)

        logger.info(
            f"Sync started for integration {integration_id}",
            extra={"integration_id": integration_id, "integration_type": claimed.integration_type.value},
        )
        return await self._run_sync(claimed, date_range, label)

    async def _run_sync(
        self,
        integration: Integration,
        date_range: Optional[DateRange],
        label: str,
    ) -> SyncResult:
        try:
            data = await asyncio.wait_for(self._fetch(integration, date_range), timeout=self.sync_timeout)
        except asyncio.TimeoutError:
            outcome = self._record_failure(
                integration, label, f"Sync timed out after {self.sync_timeout:g} seconds"
            )
        except Exception as e:
            logger.warning(
                f"Sync failed for integration {integration.id}: {e}",
                exc_info=not isinstance(e, IntegrationError),
                extra={"integration_id": integration.id},
            )
            outcome = self._record_failure(integration, label, str(e) or type(e).__name__)
        else:
            outcome = self._record_success(integration, label, data)

        try:
            return await outcome
        except Exception as e:
            await self._release(integration, f"Failed to record sync outcome: {e}")
            raise

    async def _release(self, integration: Integration, error: str) -> None:
        """Move an integration out of SYNCING after its outcome could not be stored."""
        try:
            await self.integrations.update(
                integration.id, {"status": IntegrationStatus.ERROR, "error_message": error}
            )
        except Exception:
            logger.exception(
                f"Integration {integration.id} left in SYNCING; a forced sync will recover it",
                extra={"integration_id": integration.id},
            )

    async def _fetch(self, integration: Integration, date_range: Optional[DateRange]) -> Any:
        adapter = self.adapter_factory(
            integration.integration_type,
            integration.config,
            rate_limiter=self.rate_limiter,
        )
        async with adapter:
            return await adapter.fetch_data(date_range)

    async def _record_success(self, integration: Integration, label: str, data: Any) -> SyncResult:
        now = utcnow()
        data_points = count_data_points(data)

        await self.integrations.update(
            integration.id,
            {"status": IntegrationStatus.ACTIVE, "last_sync_at": now, "error_message": None},
            increments={"total_syncs": 1, "successful_syncs": 1},
        )
        await self.logs.append(IntegrationLog(
            integration_id=integration.id,
            type=LogType.SYNC_COMPLETE,
            message=f"{label} completed successfully",
            data={"dataPoints": data_points},
            timestamp=now,
        ))

        logger.info(
            f"Sync completed for integration {integration.id}",
            extra={"integration_id": integration.id, "data_points": data_points},
        )
        return SyncResult(
            integration_id=integration.id,
            success=True,
            message="Integration synced successfully",
            data_points=data_points,
            data=data,
            last_sync=now,
        )

    async def _record_failure(self, integration: Integration, label: str, error: str) -> SyncResult:
        await self.integrations.update(
            integration.id,
            {"status": IntegrationStatus.ERROR, "error_message": error},
            increments={"total_syncs": 1, "failed_syncs": 1},
        )
        await self.logs.append(IntegrationLog(
            integration_id=integration.id,
            type=LogType.ERROR,
            message=f"{label} failed",
            data={"error": error},
        ))

        return SyncResult(
            integration_id=integration.id,
            success=False,
            message="Integration sync failed",
            error=error,
        )

    async def sync_batch(self, integration_ids: List[str], force: bool = False) -> List[Dict[str, Any]]:
        """Sync many integrations; one result per id, in input order."""
        semaphore = asyncio.Semaphore(settings.sync_batch_concurrency)

        async def run(integration_id: str) -> Dict[str, Any]:
            async with semaphore:
                return await self._sync_batch_item(integration_id, force)

        return list(await asyncio.gather(*(run(integration_id) for integration_id in integration_ids)))

    async def _sync_batch_item(self, integration_id: str, force: bool) -> Dict[str, Any]:
        try:
            result = await self.request_sync(integration_id, force=force, label="Scheduled sync")
        except (IntegrationNotFoundError, SyncInProgressError) as e:
            return {"integrationId": integration_id, "success": False, "error": str(e)}
        except Exception as e:
            logger.error(f"Scheduled sync of integration {integration_id} failed: {e}", exc_info=True)
            return {"integrationId": integration_id, "success": False, "error": str(e)}
        return result.to_batch_entry()

    async def get_sync_status(self, integration_id: str, user_id: Optional[str] = None) -> Dict[str, Any]:
        integration = await self.integrations.get(integration_id, user_id)
        if integration is None:
            raise IntegrationNotFoundError(integration_id)
        return {
            "id": integration.id,
            "status": integration.status.value,
            "lastSync": integration.last_sync_at,
            "lastUpdated": integration.updated_at,
        }

    async def list_sync_candidates(
        self,
        status: Optional[IntegrationStatus] = None,
        integration_type: Optional[IntegrationType] = None,
        limit: int = 50,
    ) -> SyncCandidates:
        integrations = await self.integrations.list_sync_candidates(status, integration_type, limit)
        ready = sum(
            1 for integration in integrations
            if integration.status in (IntegrationStatus.ACTIVE, IntegrationStatus.ERROR)
        )
        return SyncCandidates(integrations=integrations, ready_for_sync=ready)
