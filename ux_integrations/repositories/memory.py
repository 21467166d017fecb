"""In-memory repositories for development and tests.

Records are kept in their stored (document) form so config encryption behaves
exactly as it does against MongoDB.
"""

import asyncio
import copy
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from bson import ObjectId

from ux_integrations.models import (
    Integration,
    IntegrationLog,
    IntegrationStatus,
    IntegrationType,
    ProjectIntegration,
)
from ux_integrations.utils.dates import utcnow
from .base import (
    IntegrationRepository,
    LogRepository,
    encode_fields,
    from_document,
    to_document,
)

_EPOCH = datetime.min.replace(tzinfo=timezone.utc)


class InMemoryIntegrationRepository(IntegrationRepository):

    def __init__(self, encryption_key: Optional[str] = None):
        self.encryption_key = encryption_key
        self.documents: Dict[str, Dict[str, Any]] = {}
        self.links: Dict[str, ProjectIntegration] = {}
        self._lock = asyncio.Lock()

    def _load(self, doc: Optional[Dict[str, Any]]) -> Optional[Integration]:
        return from_document(copy.deepcopy(doc), self.encryption_key) if doc else None

    async def create(self, integration: Integration) -> Integration:
        integration.id = str(ObjectId())
        doc = to_document(integration, self.encryption_key)
        doc["_id"] = integration.id
        self.documents[integration.id] = copy.deepcopy(doc)
        return integration

    async def get(self, integration_id: str, user_id: Optional[str] = None) -> Optional[Integration]:
        doc = self.documents.get(integration_id)
        if doc is None or (user_id is not None and doc["user_id"] != user_id):
            return None
        return self._load(doc)

    async def list_for_user(
        self,
        user_id: str,
        integration_type: Optional[IntegrationType] = None,
        status: Optional[IntegrationStatus] = None,
    ) -> List[Integration]:
        docs = [
            doc for doc in self.documents.values()
            if doc["user_id"] == user_id
            and (integration_type is None or doc["integration_type"] == integration_type.value)
            and (status is None or doc["status"] == status.value)
        ]
        docs.sort(key=lambda doc: doc["created_at"], reverse=True)
        return [self._load(doc) for doc in docs]

    async def list_sync_candidates(
        self,
        status: Optional[IntegrationStatus] = None,
        integration_type: Optional[IntegrationType] = None,
        limit: int = 50,
    ) -> List[Integration]:
        docs = [
            doc for doc in self.documents.values()
            if doc["status"] != IntegrationStatus.SYNCING.value
            and (status is None or doc["status"] == status.value)
            and (integration_type is None or doc["integration_type"] == integration_type.value)
        ]
        docs.sort(key=lambda doc: doc.get("last_sync_at") or _EPOCH)
        return [self._load(doc) for doc in docs[:limit or None]]

    async def update(
        self,
        integration_id: str,
        fields: Dict[str, Any],
        increments: Optional[Dict[str, int]] = None,
    ) -> Optional[Integration]:
        async with self._lock:
            doc = self.documents.get(integration_id)
            if doc is None:
                return None
            doc.update(encode_fields({**fields, "updated_at": utcnow()}, self.encryption_key))
            for key, amount in (increments or {}).items():
                doc[key] = doc.get(key, 0) + amount
            return self._load(doc)

    async def try_begin_sync(self, integration_id: str, force: bool = False) -> Optional[Integration]:
        async with self._lock:
            doc = self.documents.get(integration_id)
            if doc is None:
                return None
            if doc["status"] == IntegrationStatus.SYNCING.value and not force:
                return None
            doc["status"] = IntegrationStatus.SYNCING.value
            doc["updated_at"] = utcnow()
            return self._load(doc)

    async def delete(self, integration_id: str) -> bool:
        return self.documents.pop(integration_id, None) is not None

    async def add_project_link(self, project_id: str, integration_id: str) -> ProjectIntegration:
        link = ProjectIntegration(_id=str(ObjectId()), project_id=project_id, integration_id=integration_id)
        self.links[link.id] = link
        return link

    async def delete_project_links(self, integration_id: str) -> int:
        doomed = [key for key, link in self.links.items() if link.integration_id == integration_id]
        for key in doomed:
            del self.links[key]
        return len(doomed)


class InMemoryLogRepository(LogRepository):

    def __init__(self):
        self.logs: List[IntegrationLog] = []

    async def append(self, log: IntegrationLog) -> IntegrationLog:
        log.id = str(ObjectId())
        self.logs.append(log.model_copy(deep=True))
        return log

    async def list_for_integration(self, integration_id: str, limit: int = 50) -> List[IntegrationLog]:
        logs = [log for log in self.logs if log.integration_id == integration_id]
        logs.sort(key=lambda log: log.timestamp, reverse=True)
        return [log.model_copy(deep=True) for log in logs[:limit or None]]

    async def delete_for_integration(self, integration_id: str) -> int:
        before = len(self.logs)
        self.logs = [log for log in self.logs if log.integration_id != integration_id]
        return before - len(self.logs)
