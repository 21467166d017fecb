"""API request/response schemas."""

from .integration import (
    IntegrationCreate,
    IntegrationUpdate,
    IntegrationTestRequest,
    IntegrationResponse,
    dump,
    dump_all,
)
from .sync import ScheduledSyncRequest
from .webhook import WebhookEvent, LogResponse, dump_log

__all__ = [
    "IntegrationCreate",
    "IntegrationUpdate",
    "IntegrationTestRequest",
    "IntegrationResponse",
    "dump",
    "dump_all",
    "ScheduledSyncRequest",
    "WebhookEvent",
    "LogResponse",
    "dump_log",
]
