"""Sync API schemas."""

from typing import List

from ux_integrations.models.common import CamelModel


class ScheduledSyncRequest(CamelModel):
    """Batch sync request sent by the external scheduler."""
    integration_ids: List[str]
    force: bool = False
