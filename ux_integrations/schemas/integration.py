"""Integration API schemas."""

from datetime import datetime
from typing import Optional, Dict, Any, List

from pydantic import Field, field_validator

from ux_integrations.models import Integration, IntegrationType, IntegrationStatus
from ux_integrations.models.common import CamelModel


class IntegrationCreate(CamelModel):
    """Schema for creating an integration."""
    integration_type: IntegrationType = Field(alias="type")
    name: str = Field(min_length=1)
    config: Dict[str, Any]
    project_id: Optional[str] = None


class IntegrationUpdate(CamelModel):
    """Schema for updating an integration."""
    name: Optional[str] = Field(default=None, min_length=1)
    config: Optional[Dict[str, Any]] = None
    status: Optional[IntegrationStatus] = None

    @field_validator("status")
    @classmethod
    def status_not_syncing(cls, value: Optional[IntegrationStatus]) -> Optional[IntegrationStatus]:
        if value == IntegrationStatus.SYNCING:
            raise ValueError("SYNCING is set only by a running sync")
        return value


class IntegrationTestRequest(CamelModel):
    """Schema for testing a config without saving it."""
    integration_type: IntegrationType = Field(alias="type")
    config: Dict[str, Any]


class IntegrationResponse(CamelModel):
    """Integration response schema."""
    id: str
    user_id: str
    integration_type: IntegrationType = Field(alias="type")
    name: str
    status: IntegrationStatus
    config: Dict[str, Any]
    created_at: datetime
    updated_at: datetime
    last_sync: Optional[datetime] = None
    error_message: Optional[str] = None
    total_syncs: int = 0
    successful_syncs: int = 0
    failed_syncs: int = 0

    @classmethod
    def from_model(cls, integration: Integration) -> "IntegrationResponse":
        return cls(
            id=integration.id,
            user_id=integration.user_id,
            integration_type=integration.integration_type,
            name=integration.name,
            status=integration.status,
            config=integration.config,
            created_at=integration.created_at,
            updated_at=integration.updated_at,
            last_sync=integration.last_sync_at,
            error_message=integration.error_message,
            total_syncs=integration.total_syncs,
            successful_syncs=integration.successful_syncs,
            failed_syncs=integration.failed_syncs,
        )


def dump(integration: Integration) -> Dict[str, Any]:
    """JSON-ready camelCase form of an integration."""
    return IntegrationResponse.from_model(integration).model_dump(mode="json", by_alias=True)


def dump_all(integrations: List[Integration]) -> List[Dict[str, Any]]:
    return [dump(integration) for integration in integrations]
