# =============================================================================
# MongoDB Connection — Lifespan-Managed Client
# =============================================================================
#
# One AsyncMongoClient per process. It is opened when the FastAPI lifespan
# starts, stored on `app.state.mongo`, and closed at shutdown. Route
# handlers never touch a module-level client; they receive the stores via
# dependencies (see funnel/api/deps.py).
#
# LIFECYCLE:
# 1. Lifespan startup → `MongoConnection.open(settings)`
# 2. Requests → `connection.records` / `connection.blobs`
# 3. Lifespan shutdown → `await connection.close()`
#
# The driver pools connections internally. Constructing the client does
# not contact the server; the first operation does.
# =============================================================================

from __future__ import annotations

import logging

from gridfs import AsyncGridFSBucket
from pymongo import AsyncMongoClient
from pymongo.asynchronous.database import AsyncDatabase
from pymongo.server_api import ServerApi

from funnel.config import Settings
from funnel.db.blobs import BlobStore
from funnel.db.records import FileRecordRepository

logger = logging.getLogger(__name__)


class MongoConnection:
    """
    Owns the Mongo client and the two stores built on top of it.

    Usage:
        connection = MongoConnection.open(settings)
        try:
            records = await connection.records.list_all()
        finally:
            await connection.close()
    """

    def __init__(
        self,
        client: AsyncMongoClient,
        database: AsyncDatabase,
        collection_name: str,
        bucket_name: str,
    ) -> None:
        self._client = client
        self.database = database
        self.records = FileRecordRepository(database[collection_name])
        self.blobs = BlobStore(
            AsyncGridFSBucket(database, bucket_name=bucket_name),
        )

    @classmethod
    def open(cls, settings: Settings) -> MongoConnection:
        """Create the client from settings. No network I/O happens here."""
        client: AsyncMongoClient = AsyncMongoClient(
            settings.mongo_uri,
            server_api=ServerApi("1", strict=True, deprecation_errors=True),
            tz_aware=True,
        )
        logger.info(
            "Mongo client created (database=%s, collection=%s, bucket=%s)",
            settings.mongo_database,
            settings.files_collection,
            settings.gridfs_bucket,
        )
        return cls(
            client=client,
            database=client[settings.mongo_database],
            collection_name=settings.files_collection,
            bucket_name=settings.gridfs_bucket,
        )

    async def close(self) -> None:
        await self._client.close()
        logger.info("Mongo client closed")
