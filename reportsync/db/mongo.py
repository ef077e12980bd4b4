# reportsync/db/mongo.py
from __future__ import annotations

import logging

from motor.motor_asyncio import AsyncIOMotorClient, AsyncIOMotorCollection

from reportsync.core.config import Settings

logger = logging.getLogger(__name__)


class MongoConnection:
    """
    Owns the motor client for one application lifetime.
    The client is lazy: no socket is opened until the first operation.
    """

    def __init__(self, settings: Settings):
        self.settings = settings
        self.client: AsyncIOMotorClient | None = None

    def open(self) -> None:
        if self.client is None:
            self.client = AsyncIOMotorClient(self.settings.mongo_uri)
            logger.info("Mongo client created for db=%s", self.settings.mongo_db)

    def close(self) -> None:
        if self.client is not None:
            self.client.close()
            self.client = None

    @property
    def db(self):
        if self.client is None:
            raise RuntimeError("Mongo connection is not open")
        return self.client[self.settings.mongo_db]

    def cache_collection(self) -> AsyncIOMotorCollection:
        return self.db[self.settings.cache_collection]
