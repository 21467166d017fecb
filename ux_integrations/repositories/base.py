"""Repository interfaces and the document codec they share."""

from abc import ABC, abstractmethod
from enum import Enum
from typing import Any, Dict, List, Optional
import json

from ux_integrations.models import (
    Integration,
    IntegrationLog,
    IntegrationStatus,
    IntegrationType,
    ProjectIntegration,
)
from ux_integrations.utils.crypto import decrypt_value, encrypt_value, is_encrypted


def encode_config(config: Dict[str, Any], encryption_key: Optional[str]) -> Any:
    """Config as stored: the plain map, or an encrypted JSON blob when a key is set."""
    if not encryption_key:
        return config
    return encrypt_value(json.dumps(config), encryption_key)


def decode_config(stored: Any, encryption_key: Optional[str]) -> Dict[str, Any]:
    if isinstance(stored, dict):
        return stored
    if is_encrypted(stored):
        if not encryption_key:
            raise RuntimeError("Integration config is encrypted but ENCRYPTION_KEY is not set")
        stored = decrypt_value(stored, encryption_key)
    return json.loads(stored)


def encode_fields(fields: Dict[str, Any], encryption_key: Optional[str]) -> Dict[str, Any]:
    """Convert model-level values into their stored form."""
    encoded = {}
    for key, value in fields.items():
        if key == "config":
            value = encode_config(value, encryption_key)
        elif isinstance(value, Enum):
            value = value.value
        encoded[key] = value
    return encoded


def to_document(integration: Integration, encryption_key: Optional[str]) -> Dict[str, Any]:
    doc = integration.model_dump(exclude={"id"})
    return encode_fields(doc, encryption_key)


def from_document(doc: Dict[str, Any], encryption_key: Optional[str]) -> Integration:
    doc = dict(doc)
    doc["_id"] = str(doc["_id"])
    doc["config"] = decode_config(doc.get("config") or {}, encryption_key)
    return Integration.model_validate(doc)


class IntegrationRepository(ABC):
    """Storage for integration records and their project links."""

    @abstractmethod
    async def create(self, integration: Integration) -> Integration:
        pass

    @abstractmethod
    async def get(self, integration_id: str, user_id: Optional[str] = None) -> Optional[Integration]:
        """Load an integration; with `user_id`, only when owned by that user."""
        pass

    @abstractmethod
    async def list_for_user(
        self,
        user_id: str,
        integration_type: Optional[IntegrationType] = None,
        status: Optional[IntegrationStatus] = None,
    ) -> List[Integration]:
        """Newest first."""
        pass

    @abstractmethod
    async def list_sync_candidates(
        self,
        status: Optional[IntegrationStatus] = None,
        integration_type: Optional[IntegrationType] = None,
        limit: int = 50,
    ) -> List[Integration]:
        """Integrations not currently syncing, least recently synced first; `limit=0` means no limit."""
        pass

    @abstractmethod
    async def update(
        self,
        integration_id: str,
        fields: Dict[str, Any],
        increments: Optional[Dict[str, int]] = None,
    ) -> Optional[Integration]:
        """Apply `fields` (and counter increments) in one write; None if absent."""
        pass

    @abstractmethod
    async def try_begin_sync(self, integration_id: str, force: bool = False) -> Optional[Integration]:
        """Atomically move an integration to SYNCING.

        Returns None when the integration is absent or, unless `force`, already
        SYNCING; the record is left untouched in that case.
        """
        pass

    @abstractmethod
    async def delete(self, integration_id: str) -> bool:
        pass

    @abstractmethod
    async def add_project_link(self, project_id: str, integration_id: str) -> ProjectIntegration:
        pass

    @abstractmethod
    async def delete_project_links(self, integration_id: str) -> int:
        pass


class LogRepository(ABC):
    """Append-only integration log storage."""

    @abstractmethod
    async def append(self, log: IntegrationLog) -> IntegrationLog:
        pass

    @abstractmethod
    async def list_for_integration(self, integration_id: str, limit: int = 50) -> List[IntegrationLog]:
        """Most recent first; `limit=0` means no limit."""
        pass

    @abstractmethod
    async def delete_for_integration(self, integration_id: str) -> int:
        pass
