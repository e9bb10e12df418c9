from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

from motor.motor_asyncio import AsyncIOMotorClient, AsyncIOMotorDatabase

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class MongoConfig:
    uri: str
    database: str
    server_selection_timeout_ms: int = 5000


class MongoConnection:
    """Lazily created Motor client.

    One instance per container; the client binds to the event loop that first
    uses it, so all store calls must run on that same loop.
    """

    def __init__(self, config: MongoConfig):
        self._config = config
        self._client: Optional[AsyncIOMotorClient] = None

    @property
    def client(self) -> AsyncIOMotorClient:
        if self._client is None:
            self._client = AsyncIOMotorClient(
                self._config.uri,
                serverSelectionTimeoutMS=int(self._config.server_selection_timeout_ms),
                tz_aware=True,
            )
            logger.info("MongoDB client created for database %s", self._config.database)
        return self._client

    @property
    def database(self) -> AsyncIOMotorDatabase:
        return self.client[self._config.database]

    def close(self) -> None:
        if self._client is not None:
            self._client.close()
            self._client = None
            logger.info("MongoDB connection closed")
