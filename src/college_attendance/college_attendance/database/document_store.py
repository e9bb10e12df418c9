from __future__ import annotations

from typing import Any, Mapping, Optional, Protocol, Sequence

PathSegments = tuple[str, ...]


def join_path(path: Sequence[str], doc_id: Optional[str] = None) -> str:
    parts = list(path)
    if doc_id is not None:
        parts.append(doc_id)
    return "/".join(parts)


class DocumentStore(Protocol):
    """Async hierarchical document store.

    A collection is addressed by a tuple of path segments; documents are plain
    dicts. Reading an absent collection is not an error: it is simply empty.
    """

    async def get(self, collection: PathSegments, doc_id: str) -> Optional[dict[str, Any]]:
        raise NotImplementedError

    async def set(self, collection: PathSegments, doc_id: str, data: Mapping[str, Any], *, merge: bool = True) -> None:
        raise NotImplementedError

    async def update(self, collection: PathSegments, doc_id: str, data: Mapping[str, Any]) -> None:
        """Partial update; raises DocumentNotFoundError when the document is absent."""

        raise NotImplementedError

    async def add(self, collection: PathSegments, data: Mapping[str, Any]) -> str:
        raise NotImplementedError

    async def delete(self, collection: PathSegments, doc_id: str) -> bool:
        raise NotImplementedError

    async def list_documents(self, collection: PathSegments) -> list[dict[str, Any]]:
        raise NotImplementedError

    async def query(self, collection: PathSegments, where: Mapping[str, Any]) -> list[dict[str, Any]]:
        """Equality filters only; dotted keys address nested fields."""

        raise NotImplementedError

    async def list_child_collections(self, path: PathSegments) -> list[str]:
        """Names of the immediate child collections below ``path`` holding documents."""

        raise NotImplementedError


def lookup(data: Mapping[str, Any], dotted_key: str) -> Any:
    current: Any = data
    for part in dotted_key.split("."):
        if not isinstance(current, Mapping) or part not in current:
            return None
        current = current[part]
    return current
