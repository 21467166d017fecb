"""Database connections and utilities."""

from motor.motor_asyncio import AsyncIOMotorClient, AsyncIOMotorDatabase
from pymongo import ASCENDING, DESCENDING
from typing import Optional
import logging

from ux_integrations.core.config import get_settings

logger = logging.getLogger(__name__)
settings = get_settings()


# Collection names
COLLECTIONS = {
    "integrations": "integrations",
    "integration_logs": "integration_logs",
    "project_integrations": "project_integrations",
}


class Database:
    """Database connection manager."""

    client: Optional[AsyncIOMotorClient] = None
    db: Optional[AsyncIOMotorDatabase] = None

    async def connect(self):
        """Connect to MongoDB and make sure the indexes exist."""
        try:
            self.client = AsyncIOMotorClient(settings.mongodb_url, tz_aware=True)
            self.db = self.client[settings.mongodb_db_name]

            # Test connection
            await self.client.admin.command("ping")
            logger.info("Connected to MongoDB")
        except Exception as e:
            logger.error(f"Failed to connect to MongoDB: {e}")
            raise

        await self.create_indexes()

    async def create_indexes(self):
        integrations = self.get_collection(COLLECTIONS["integrations"])
        await integrations.create_index([("user_id", ASCENDING), ("created_at", DESCENDING)])
        await integrations.create_index([("status", ASCENDING), ("last_sync_at", ASCENDING)])

        logs = self.get_collection(COLLECTIONS["integration_logs"])
        await logs.create_index([("integration_id", ASCENDING), ("timestamp", DESCENDING)])

        links = self.get_collection(COLLECTIONS["project_integrations"])
        await links.create_index(
            [("project_id", ASCENDING), ("integration_id", ASCENDING)], unique=True
        )
        await links.create_index("integration_id")

    async def disconnect(self):
        """Disconnect from MongoDB."""
        if self.client:
            self.client.close()
            logger.info("Disconnected from MongoDB")

    async def ping(self) -> bool:
        if self.client is None:
            return False
        await self.client.admin.command("ping")
        return True

    def get_collection(self, name: str):
        """Get a collection."""
        if self.db is None:
            raise RuntimeError("Database not connected")
        return self.db[name]


# Global database instance
database = Database()
