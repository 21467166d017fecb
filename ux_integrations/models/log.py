"""Integration log models."""

from datetime import datetime
from typing import Optional, Dict, Any
from pydantic import BaseModel, ConfigDict, Field
from enum import Enum

from ux_integrations.utils.dates import utcnow


class LogType(str, Enum):
    """Integration log categories, shared by syncs and webhooks."""
    SYNC_COMPLETE = "sync_complete"
    ERROR = "error"
    DATA_UPDATE = "data_update"
    STATUS_CHANGE = "status_change"


class IntegrationLog(BaseModel):
    """Append-only integration event."""

    model_config = ConfigDict(populate_by_name=True)

    id: Optional[str] = Field(default=None, alias="_id")
    integration_id: str
    type: LogType
    message: str
    data: Optional[Dict[str, Any]] = None
    timestamp: datetime = Field(default_factory=utcnow)
