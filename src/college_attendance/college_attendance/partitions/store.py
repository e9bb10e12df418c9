from __future__ import annotations

import logging
from datetime import date
from typing import Any, Mapping, Optional

from ..core.exceptions import MissingScopeError, PartitionNotFoundError
from ..database.document_store import DocumentStore, PathSegments, join_path
from .keys import Scope, month_path, segment_path

logger = logging.getLogger(__name__)


class PartitionedRecordStore:
    """Records partitioned by organizational scope and calendar day.

    Absent partitions read as empty; they are a normal state, not a failure.
    """

    def __init__(self, store: DocumentStore, root: str):
        self._store = store
        self._root = root

    async def write(
        self,
        scope: Scope,
        record_id: str,
        day: Optional[date],
        data: Mapping[str, Any],
        *,
        merge: bool = True,
    ) -> PathSegments:
        if day is None:
            raise MissingScopeError(["date"])
        path = segment_path(self._root, scope, day)
        await self._store.set(path, record_id, data, merge=merge)
        return path

    async def get(self, scope: Scope, day: date, record_id: str) -> Optional[dict[str, Any]]:
        return await self._store.get(segment_path(self._root, scope, day), record_id)

    async def update(self, scope: Scope, day: date, record_id: str, data: Mapping[str, Any]) -> None:
        await self._store.update(segment_path(self._root, scope, day), record_id, data)

    async def delete(self, scope: Scope, day: date, record_id: str) -> bool:
        return await self._store.delete(segment_path(self._root, scope, day), record_id)

    async def read_segment(self, scope: Scope, year: int | str, month: int | str, day: int | str) -> list[dict[str, Any]]:
        path = (*month_path(self._root, scope, year, month), f"{int(day):02d}")
        try:
            docs = await self._store.list_documents(path)
        except PartitionNotFoundError:
            docs = []
        if not docs:
            logger.debug("No records at %s", join_path(path))
        return docs

    async def read_day(self, scope: Scope, day: date) -> list[dict[str, Any]]:
        return await self.read_segment(scope, day.year, day.month, day.day)

    async def list_days(self, scope: Scope, year: int | str, month: int | str) -> list[str]:
        """Day segments (``"01"``..``"31"``) that currently hold records."""
        path = month_path(self._root, scope, year, month)
        try:
            return await self._store.list_child_collections(path)
        except PartitionNotFoundError:
            logger.debug("No day partitions under %s", join_path(path))
            return []
