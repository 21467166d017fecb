"""Webhook schemas."""

from datetime import datetime
from typing import Any, Dict, Optional

from ux_integrations.models import IntegrationLog, LogType
from ux_integrations.models.common import CamelModel


class WebhookEvent(CamelModel):
    """Event pushed by a provider or relay."""
    integration_id: str
    type: LogType
    data: Optional[Dict[str, Any]] = None
    message: Optional[str] = None
    timestamp: Optional[datetime] = None


class LogResponse(CamelModel):
    id: str
    integration_id: str
    type: LogType
    message: str
    data: Optional[Dict[str, Any]] = None
    timestamp: datetime


def dump_log(log: IntegrationLog) -> Dict[str, Any]:
    return LogResponse(
        id=log.id,
        integration_id=log.integration_id,
        type=log.type,
        message=log.message,
        data=log.data,
        timestamp=log.timestamp,
    ).model_dump(mode="json", by_alias=True)
