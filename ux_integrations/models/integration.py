"""Integration models."""

from datetime import datetime
from typing import Optional, Dict, Any
from pydantic import BaseModel, ConfigDict, Field
from enum import Enum

from ux_integrations.utils.dates import utcnow


class IntegrationType(str, Enum):
    """Supported providers."""
    GOOGLE_ANALYTICS = "GOOGLE_ANALYTICS"
    HOTJAR = "HOTJAR"
    POWERBI = "POWERBI"
    MIXPANEL = "MIXPANEL"
    AMPLITUDE = "AMPLITUDE"
    CUSTOM = "CUSTOM"
    FIGMA = "FIGMA"


class IntegrationStatus(str, Enum):
    """Integration lifecycle status."""
    ACTIVE = "ACTIVE"
    INACTIVE = "INACTIVE"
    ERROR = "ERROR"
    SYNCING = "SYNCING"


class Integration(BaseModel):
    """Integration model."""

    model_config = ConfigDict(populate_by_name=True, use_enum_values=False)

    id: Optional[str] = Field(default=None, alias="_id")
    user_id: str
    integration_type: IntegrationType
    name: str
    status: IntegrationStatus = IntegrationStatus.ACTIVE

    # Provider specific, validated per type before it is stored
    config: Dict[str, Any] = Field(default_factory=dict)

    # Metadata
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)
    last_sync_at: Optional[datetime] = None
    error_message: Optional[str] = None

    # Statistics
    total_syncs: int = 0
    successful_syncs: int = 0
    failed_syncs: int = 0


class ProjectIntegration(BaseModel):
    """Link between a dashboard project and an integration."""

    model_config = ConfigDict(populate_by_name=True)

    id: Optional[str] = Field(default=None, alias="_id")
    project_id: str
    integration_id: str
    created_at: datetime = Field(default_factory=utcnow)
