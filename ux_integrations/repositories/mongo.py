"""MongoDB (motor) repositories."""

from typing import Any, Dict, List, Optional
import logging

from bson import ObjectId
from bson.errors import InvalidId
from pymongo import ASCENDING, DESCENDING, ReturnDocument

from ux_integrations.core.database import Database, COLLECTIONS
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

logger = logging.getLogger(__name__)


def _object_id(value: str) -> Optional[ObjectId]:
    try:
        return ObjectId(value)
    except (InvalidId, TypeError):
        return None


class MongoIntegrationRepository(IntegrationRepository):
    """Integration records in the `integrations` collection."""

    def __init__(self, db: Database, encryption_key: Optional[str] = None):
        self.db = db
        self.encryption_key = encryption_key

    @property
    def collection(self):
        return self.db.get_collection(COLLECTIONS["integrations"])

    @property
    def links(self):
        return self.db.get_collection(COLLECTIONS["project_integrations"])

    def _load(self, doc: Optional[Dict[str, Any]]) -> Optional[Integration]:
        return from_document(doc, self.encryption_key) if doc else None

    async def create(self, integration: Integration) -> Integration:
        result = await self.collection.insert_one(to_document(integration, self.encryption_key))
        integration.id = str(result.inserted_id)
        logger.info(f"Created integration {integration.id} of type {integration.integration_type.value}")
        return integration

    async def get(self, integration_id: str, user_id: Optional[str] = None) -> Optional[Integration]:
        oid = _object_id(integration_id)
        if oid is None:
            return None

        query: Dict[str, Any] = {"_id": oid}
        if user_id is not None:
            query["user_id"] = user_id
        return self._load(await self.collection.find_one(query))

    async def list_for_user(
        self,
        user_id: str,
        integration_type: Optional[IntegrationType] = None,
        status: Optional[IntegrationStatus] = None,
    ) -> List[Integration]:
        query: Dict[str, Any] = {"user_id": user_id}
        if integration_type:
            query["integration_type"] = integration_type.value
        if status:
            query["status"] = status.value

        cursor = self.collection.find(query).sort("created_at", DESCENDING)
        return [self._load(doc) async for doc in cursor]

    async def list_sync_candidates(
        self,
        status: Optional[IntegrationStatus] = None,
        integration_type: Optional[IntegrationType] = None,
        limit: int = 50,
    ) -> List[Integration]:
        query: Dict[str, Any] = {"status": {"$ne": IntegrationStatus.SYNCING.value}}
        if status and status != IntegrationStatus.SYNCING:
            query["status"] = status.value
        elif status:
            return []
        if integration_type:
            query["integration_type"] = integration_type.value

        # Null last_sync_at sorts first, so never-synced integrations lead
        cursor = self.collection.find(query).sort("last_sync_at", ASCENDING).limit(limit)
        return [self._load(doc) async for doc in cursor]

    async def update(
        self,
        integration_id: str,
        fields: Dict[str, Any],
        increments: Optional[Dict[str, int]] = None,
    ) -> Optional[Integration]:
        oid = _object_id(integration_id)
        if oid is None:
            return None

        update: Dict[str, Any] = {
            "$set": encode_fields({**fields, "updated_at": utcnow()}, self.encryption_key)
        }
        if increments:
            update["$inc"] = increments

        doc = await self.collection.find_one_and_update(
            {"_id": oid}, update, return_document=ReturnDocument.AFTER
        )
        return self._load(doc)

    async def try_begin_sync(self, integration_id: str, force: bool = False) -> Optional[Integration]:
        oid = _object_id(integration_id)
        if oid is None:
            return None

        query: Dict[str, Any] = {"_id": oid}
        if not force:
            query["status"] = {"$ne": IntegrationStatus.SYNCING.value}

        doc = await self.collection.find_one_and_update(
            query,
            {"$set": {"status": IntegrationStatus.SYNCING.value, "updated_at": utcnow()}},
            return_document=ReturnDocument.AFTER,
        )
        return self._load(doc)

    async def delete(self, integration_id: str) -> bool:
        oid = _object_id(integration_id)
        if oid is None:
            return False
        result = await self.collection.delete_one({"_id": oid})
        return result.deleted_count > 0

    async def add_project_link(self, project_id: str, integration_id: str) -> ProjectIntegration:
        link = ProjectIntegration(project_id=project_id, integration_id=integration_id)
        result = await self.links.insert_one(link.model_dump(exclude={"id"}))
        link.id = str(result.inserted_id)
        return link

    async def delete_project_links(self, integration_id: str) -> int:
        result = await self.links.delete_many({"integration_id": integration_id})
        return result.deleted_count


class MongoLogRepository(LogRepository):
    """Integration logs in the `integration_logs` collection."""

    def __init__(self, db: Database):
        self.db = db

    @property
    def collection(self):
        return self.db.get_collection(COLLECTIONS["integration_logs"])

    async def append(self, log: IntegrationLog) -> IntegrationLog:
        doc = log.model_dump(exclude={"id"})
        doc["type"] = log.type.value
        result = await self.collection.insert_one(doc)
        log.id = str(result.inserted_id)
        return log

    async def list_for_integration(self, integration_id: str, limit: int = 50) -> List[IntegrationLog]:
        cursor = (
            self.collection.find({"integration_id": integration_id})
            .sort("timestamp", DESCENDING)
            .limit(limit)
        )
        logs = []
        async for doc in cursor:
            doc["_id"] = str(doc["_id"])
            logs.append(IntegrationLog.model_validate(doc))
        return logs

    async def delete_for_integration(self, integration_id: str) -> int:
        result = await self.collection.delete_many({"integration_id": integration_id})
        return result.deleted_count
