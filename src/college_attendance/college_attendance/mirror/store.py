from __future__ import annotations

from typing import Any, Mapping, Optional

from ..database.document_store import DocumentStore


class FlatMirrorStore:
    """Non-partitioned collection queried by user id or status.

    No ordering is guaranteed; callers sort in memory (no composite indexes).
    """

    def __init__(self, store: DocumentStore, collection: str):
        self._store = store
        self._path = (collection,)

    async def upsert_by_user(self, document: Mapping[str, Any], doc_id: Optional[str] = None) -> str:
        if doc_id is None:
            return await self._store.add(self._path, document)
        await self._store.set(self._path, doc_id, document, merge=True)
        return doc_id

    async def add(self, document: Mapping[str, Any]) -> str:
        return await self._store.add(self._path, document)

    async def get(self, doc_id: str) -> Optional[dict[str, Any]]:
        return await self._store.get(self._path, doc_id)

    async def update(self, doc_id: str, data: Mapping[str, Any]) -> None:
        await self._store.update(self._path, doc_id, data)

    async def delete(self, doc_id: str) -> bool:
        return await self._store.delete(self._path, doc_id)

    async def query_by_user(self, user_id: str) -> list[dict[str, Any]]:
        return await self._store.query(self._path, {"userId": user_id})

    async def query(self, **equals: Any) -> list[dict[str, Any]]:
        return await self._store.query(self._path, equals)

    async def query_where(self, where: Mapping[str, Any]) -> list[dict[str, Any]]:
        return await self._store.query(self._path, where)
