from __future__ import annotations

import copy
import uuid
from typing import Any, Mapping, Optional

from ..core.exceptions import DocumentNotFoundError
from .document_store import PathSegments, join_path, lookup


def generate_id() -> str:
    return uuid.uuid4().hex[:20]


class InMemoryDocumentStore:
    """Dict-backed DocumentStore for tests and local development.

    State is per instance, so several stores can coexist in one process.
    """

    def __init__(self) -> None:
        self._collections: dict[str, dict[str, dict[str, Any]]] = {}

    async def get(self, collection: PathSegments, doc_id: str) -> Optional[dict[str, Any]]:
        data = self._collections.get(join_path(collection), {}).get(doc_id)
        if data is None:
            return None
        return {"id": doc_id, **copy.deepcopy(data)}

    async def set(self, collection: PathSegments, doc_id: str, data: Mapping[str, Any], *, merge: bool = True) -> None:
        docs = self._collections.setdefault(join_path(collection), {})
        incoming = copy.deepcopy(dict(data))
        if merge and doc_id in docs:
            docs[doc_id].update(incoming)
        else:
            docs[doc_id] = incoming

    async def update(self, collection: PathSegments, doc_id: str, data: Mapping[str, Any]) -> None:
        docs = self._collections.get(join_path(collection), {})
        if doc_id not in docs:
            raise DocumentNotFoundError(join_path(collection, doc_id))
        docs[doc_id].update(copy.deepcopy(dict(data)))

    async def add(self, collection: PathSegments, data: Mapping[str, Any]) -> str:
        doc_id = generate_id()
        await self.set(collection, doc_id, data, merge=False)
        return doc_id

    async def delete(self, collection: PathSegments, doc_id: str) -> bool:
        key = join_path(collection)
        docs = self._collections.get(key, {})
        removed = docs.pop(doc_id, None) is not None
        if key in self._collections and not docs:
            del self._collections[key]
        return removed

    async def list_documents(self, collection: PathSegments) -> list[dict[str, Any]]:
        docs = self._collections.get(join_path(collection), {})
        return [{"id": doc_id, **copy.deepcopy(data)} for doc_id, data in docs.items()]

    async def query(self, collection: PathSegments, where: Mapping[str, Any]) -> list[dict[str, Any]]:
        docs = await self.list_documents(collection)
        return [d for d in docs if all(lookup(d, k) == v for k, v in where.items())]

    async def list_child_collections(self, path: PathSegments) -> list[str]:
        prefix = join_path(path) + "/"
        children = {
            key[len(prefix):].split("/", 1)[0]
            for key, docs in self._collections.items()
            if key.startswith(prefix) and docs
        }
        return sorted(children)
