"""
Database module for APK Tracker
Builds the MongoDB client and the collection bundle handed to services.

There is no module-level client: the FastAPI lifespan (or a script) creates
one with create_client() and passes the resulting collections to whatever
needs them.
"""
import logging
from dataclasses import dataclass
from typing import Any, Optional

from motor.motor_asyncio import AsyncIOMotorClient

from .config import (
    MONGO_URI,
    MONGO_DB_NAME,
    APPS_COLLECTION,
    INSTALLS_COLLECTION,
    OPENS_COLLECTION,
    COUNTERS_COLLECTION,
)

logger = logging.getLogger(__name__)


@dataclass
class Collections:
    """The record collections the dashboard works with."""
    apps: Any
    installs: Any
    opens: Any
    counters: Any


def create_client(uri: Optional[str] = None) -> AsyncIOMotorClient:
    """Create a Motor client; tz_aware so timestamps come back as UTC datetimes."""
    return AsyncIOMotorClient(uri or MONGO_URI, tz_aware=True)


def get_collections(client, db_name: Optional[str] = None) -> Collections:
    """Resolve the four collections from a client."""
    db = client[db_name or MONGO_DB_NAME]
    return Collections(
        apps=db[APPS_COLLECTION],
        installs=db[INSTALLS_COLLECTION],
        opens=db[OPENS_COLLECTION],
        counters=db[COUNTERS_COLLECTION],
    )


async def setup_indexes(collections: Collections):
    """
    Set up indexes for the tracker collections.

    apps.app_key is unique so a key collision becomes a rejected insert.
    Child collections are indexed on app_key for the per-app count queries.
    """
    try:
        await collections.apps.create_index("app_key", unique=True, background=True)
        await collections.apps.create_index("id", unique=True, background=True)
        await collections.apps.create_index([("created_at", -1)], background=True)
        logger.info("Created indexes on apps")

        await collections.installs.create_index("app_key", background=True)
        await collections.installs.create_index([("installed_at", -1)], background=True)
        logger.info("Created indexes on app_installs")

        await collections.opens.create_index("app_key", background=True)
        await collections.opens.create_index([("opened_at", -1)], background=True)
        logger.info("Created indexes on app_opens")

        logger.info("Tracker index setup complete")
    except Exception as e:
        logger.error(f"Error setting up indexes: {e}")
