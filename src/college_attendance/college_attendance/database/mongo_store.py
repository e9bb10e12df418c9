from __future__ import annotations

import logging
import re
from contextlib import asynccontextmanager
from typing import Any, Mapping, Optional

from pymongo import ASCENDING, IndexModel
from pymongo.errors import PyMongoError

from ..core.exceptions import DocumentNotFoundError, StoreError
from .connection import MongoConnection
from .document_store import PathSegments, join_path
from .memory_store import generate_id

logger = logging.getLogger(__name__)


@asynccontextmanager
async def mongo_errors(operation: str, path: str):
    try:
        yield
    except PyMongoError as e:
        raise StoreError(f"{operation} failed at {path}: {e}") from e


class MongoDocumentStore:
    """DocumentStore on MongoDB.

    Each root segment maps to one Mongo collection. A stored document looks like
    ``{"_id": "<full path>", "_collection": "<collection path>", "_doc_id": id, "data": {...}}``
    so a partition listing is a prefix match on ``_collection``.
    """

    def __init__(self, connection: MongoConnection):
        self._connection = connection

    def _mongo(self, collection: PathSegments):
        return self._connection.database[collection[0]]

    @staticmethod
    def _unwrap(raw: Mapping[str, Any]) -> dict[str, Any]:
        return {"id": raw["_doc_id"], **dict(raw.get("data") or {})}

    async def create_indexes(self, roots: list[str]) -> None:
        for root in roots:
            async with mongo_errors("create_indexes", root):
                await self._connection.database[root].create_indexes(
                    [IndexModel([("_collection", ASCENDING)])]
                )
        logger.info("MongoDB indexes ensured for %s", ", ".join(roots))

    async def get(self, collection: PathSegments, doc_id: str) -> Optional[dict[str, Any]]:
        path = join_path(collection, doc_id)
        async with mongo_errors("get", path):
            raw = await self._mongo(collection).find_one({"_id": path})
        return self._unwrap(raw) if raw else None

    async def set(self, collection: PathSegments, doc_id: str, data: Mapping[str, Any], *, merge: bool = True) -> None:
        path = join_path(collection, doc_id)
        envelope = {"_collection": join_path(collection), "_doc_id": doc_id}
        async with mongo_errors("set", path):
            if merge:
                fields = {f"data.{k}": v for k, v in data.items()}
                await self._mongo(collection).update_one(
                    {"_id": path}, {"$set": {**envelope, **fields}}, upsert=True
                )
            else:
                await self._mongo(collection).replace_one(
                    {"_id": path}, {**envelope, "data": dict(data)}, upsert=True
                )

    async def update(self, collection: PathSegments, doc_id: str, data: Mapping[str, Any]) -> None:
        path = join_path(collection, doc_id)
        fields = {f"data.{k}": v for k, v in data.items()}
        async with mongo_errors("update", path):
            result = await self._mongo(collection).update_one({"_id": path}, {"$set": fields})
        if result.matched_count == 0:
            raise DocumentNotFoundError(path)

    async def add(self, collection: PathSegments, data: Mapping[str, Any]) -> str:
        doc_id = generate_id()
        await self.set(collection, doc_id, data, merge=False)
        return doc_id

    async def delete(self, collection: PathSegments, doc_id: str) -> bool:
        path = join_path(collection, doc_id)
        async with mongo_errors("delete", path):
            result = await self._mongo(collection).delete_one({"_id": path})
        return result.deleted_count > 0

    async def list_documents(self, collection: PathSegments) -> list[dict[str, Any]]:
        return await self.query(collection, {})

    async def query(self, collection: PathSegments, where: Mapping[str, Any]) -> list[dict[str, Any]]:
        path = join_path(collection)
        criteria = {"_collection": path, **{f"data.{k}": v for k, v in where.items()}}
        async with mongo_errors("query", path):
            cursor = self._mongo(collection).find(criteria)
            rows = await cursor.to_list(length=None)
        return [self._unwrap(r) for r in rows]

    async def list_child_collections(self, path: PathSegments) -> list[str]:
        prefix = join_path(path) + "/"
        async with mongo_errors("list_child_collections", prefix):
            names = await self._mongo(path).distinct(
                "_collection", {"_collection": {"$regex": "^" + re.escape(prefix)}}
            )
        return sorted({name[len(prefix):].split("/", 1)[0] for name in names})
