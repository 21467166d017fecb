"""Domain models for the integrations service."""

from .integration import Integration, IntegrationStatus, IntegrationType, ProjectIntegration
from .log import IntegrationLog, LogType

__all__ = [
    "Integration",
    "IntegrationStatus",
    "IntegrationType",
    "ProjectIntegration",
    "IntegrationLog",
    "LogType",
]
