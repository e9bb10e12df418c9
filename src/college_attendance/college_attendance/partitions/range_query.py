from __future__ import annotations

import asyncio
import logging
from datetime import date
from typing import Any, Callable, Collection, Optional

from ..common.datetime_utils import group_days_by_month, iter_days
from ..common.soft_failures import SoftFailureLog
from ..core.exceptions import StoreError, ValidationError
from .keys import Scope
from .store import PartitionedRecordStore

logger = logging.getLogger(__name__)

Document = dict[str, Any]
RecordFilter = Callable[[Document], bool]


class RangeQueryEngine:
    """Reads a date range out of a partitioned store.

    Every per-segment read is issued before any of them is awaited (fan-out),
    then the group is awaited jointly (fan-in) and merged in calendar order.
    """

    def __init__(self, partitions: PartitionedRecordStore, *, soft_failures: Optional[SoftFailureLog] = None):
        self._partitions = partitions
        self._soft_failures = soft_failures

    @property
    def partitions(self) -> PartitionedRecordStore:
        return self._partitions

    async def _read_day_or_empty(self, scope: Scope, day: date) -> list[Document]:
        try:
            return await self._partitions.read_day(scope, day)
        except StoreError as e:
            if self._soft_failures is not None:
                self._soft_failures.record("range_query.segment", e, day=day.isoformat(), subject=scope.subject)
            else:
                logger.warning("Segment read failed for %s on %s: %s", scope.subject, day, e)
            return []

    async def query_range(
        self,
        scope: Scope,
        start: date,
        end: date,
        record_filter: Optional[RecordFilter] = None,
    ) -> list[Document]:
        if end < start:
            raise ValidationError("End date must be on or after start date")

        days = list(iter_days(start, end))
        per_day = await asyncio.gather(*(self._read_day_or_empty(scope, day) for day in days))
        logger.debug("Range %s..%s for %s: %d segment reads", start, end, scope.subject, len(days))

        merged: list[Document] = []
        for docs in per_day:
            merged.extend(d for d in docs if record_filter is None or record_filter(d))
        return merged

    async def query_month(
        self,
        scope: Scope,
        year: int,
        month: int,
        days: Optional[Collection[str]] = None,
    ) -> list[Document]:
        """One listing of the month's existing day partitions, then one read per listed day.

        ``days`` restricts the reads to those day segments (``"01"``..``"31"``).
        """
        existing = await self._partitions.list_days(scope, year, month)
        wanted = [d for d in existing if days is None or d in days]
        per_day = await asyncio.gather(
            *(self._partitions.read_segment(scope, year, month, d) for d in wanted)
        )

        merged: list[Document] = []
        for docs in per_day:
            merged.extend(docs)
        return merged

    async def query_range_by_month(
        self,
        scope: Scope,
        start: date,
        end: date,
        record_filter: Optional[RecordFilter] = None,
    ) -> list[Document]:
        if end < start:
            raise ValidationError("End date must be on or after start date")

        groups = group_days_by_month(start, end)
        per_month = await asyncio.gather(
            *(
                self.query_month(scope, y, m, days={f"{d.day:02d}" for d in month_days})
                for (y, m), month_days in sorted(groups.items())
            )
        )

        merged: list[Document] = []
        for docs in per_month:
            merged.extend(d for d in docs if record_filter is None or record_filter(d))
        return merged
