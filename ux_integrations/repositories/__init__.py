"""Storage for integrations, their project links and logs."""

from .base import IntegrationRepository, LogRepository
from .memory import InMemoryIntegrationRepository, InMemoryLogRepository
from .mongo import MongoIntegrationRepository, MongoLogRepository

__all__ = [
    "IntegrationRepository",
    "LogRepository",
    "InMemoryIntegrationRepository",
    "InMemoryLogRepository",
    "MongoIntegrationRepository",
    "MongoLogRepository",
]
