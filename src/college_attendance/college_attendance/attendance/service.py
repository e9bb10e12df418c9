from __future__ import annotations

import asyncio
import logging
from datetime import date, datetime
from typing import Any, Callable, Iterable, Optional, Sequence

from ..common.datetime_utils import now_utc, parse_iso_date
from ..common.soft_failures import SoftFailureLog
from ..core.enums import ExportGranularity
from ..core.exceptions import DomainError, MissingScopeError, StoreError, ValidationError
from ..mirror.store import FlatMirrorStore
from ..partitions.keys import Scope, attendance_record_id, scope_key
from ..partitions.range_query import RangeQueryEngine
from ..partitions.store import PartitionedRecordStore
from .batch_export import BatchExportAggregator, ProgressCallback
from .model import AttendanceMark, AttendanceRecord, BulkMarkResult

logger = logging.getLogger(__name__)

AttendanceExport = dict[str, dict[str, list[AttendanceRecord]]]


def decode_records(docs: Iterable[dict[str, Any]]) -> list[AttendanceRecord]:
    records: list[AttendanceRecord] = []
    for doc in docs:
        try:
            records.append(AttendanceRecord.from_document(doc))
        except ValidationError as e:
            logger.warning("Skipping malformed attendance document %s: %s", doc.get("id"), e)
    return records


def mirror_doc_id(record: AttendanceRecord) -> str:
    return f"{record.year}_{record.sem}_{record.div}_{record.subject}_{record.record_id}"


class AttendanceService:
    def __init__(
        self,
        partitions: PartitionedRecordStore,
        mirror: FlatMirrorStore,
        engine: RangeQueryEngine,
        exporter: BatchExportAggregator,
        *,
        soft_failures: SoftFailureLog,
        clock: Callable[[], datetime] = now_utc,
    ):
        self._partitions = partitions
        self._mirror = mirror
        self._engine = engine
        self._exporter = exporter
        self._soft_failures = soft_failures
        self._clock = clock

    async def mark_attendance(self, mark: AttendanceMark) -> str:
        """Write one mark; re-marking the same student/subject/day overwrites it.

        The partition write is the primary one. The flat mirror write is best-effort.
        """
        scope = mark.scope
        scope_key(scope)
        if mark.day is None:
            raise MissingScopeError(["date"])

        record_id = attendance_record_id(mark.roll_number, mark.day)
        record = AttendanceRecord(
            record_id=record_id,
            roll_number=mark.roll_number.strip(),
            user_id=(mark.user_id or mark.roll_number).strip(),
            user_name=mark.user_name or "",
            day=mark.day,
            status=mark.status,
            subject=scope.subject,
            year=scope.year,
            sem=scope.sem,
            div=scope.div,
            notes=(mark.notes or "").strip() or None,
            created_at=self._clock(),
        )
        document = record.to_document()

        await self._partitions.write(scope, record_id, mark.day, document)

        try:
            await self._mirror.upsert_by_user(document, doc_id=mirror_doc_id(record))
        except StoreError as e:
            self._soft_failures.record("attendance.mirror_write", e, record_id=record_id, subject=scope.subject)

        return record_id

    async def mark_bulk_attendance(self, marks: Sequence[AttendanceMark]) -> BulkMarkResult:
        """Mark a whole class concurrently; a failed student does not stop the others."""
        outcomes = await asyncio.gather(*(self.mark_attendance(m) for m in marks), return_exceptions=True)

        succeeded: list[str] = []
        failed: dict[str, str] = {}
        for mark, outcome in zip(marks, outcomes):
            if isinstance(outcome, (DomainError, StoreError)):
                failed[mark.roll_number] = str(outcome)
            elif isinstance(outcome, BaseException):
                raise outcome
            else:
                succeeded.append(outcome)
        return BulkMarkResult(succeeded=succeeded, failed=failed)

    async def get_attendance_by_user(self, user_id: str) -> list[AttendanceRecord]:
        records = decode_records(await self._mirror.query_by_user(user_id))
        records.sort(key=lambda r: r.day, reverse=True)
        return records

    async def get_attendance_by_user_and_date_range(self, user_id: str, start: date, end: date) -> list[AttendanceRecord]:
        if end < start:
            raise ValidationError("End date must be on or after start date")
        records = [r for r in await self.get_attendance_by_user(user_id) if start <= r.day <= end]
        return records

    async def get_organized_attendance_by_user_and_date_range(
        self,
        roll_number: str,
        scope: Scope,
        start: date,
        end: date,
    ) -> list[AttendanceRecord]:
        roll = roll_number.strip()
        docs = await self._engine.query_range(
            scope,
            start,
            end,
            record_filter=lambda d: str(d.get("rollNumber") or "") == roll,
        )
        return decode_records(docs)

    async def get_attendance_by_date(self, scope: Scope, day: date | str) -> list[AttendanceRecord]:
        return decode_records(await self._partitions.read_day(scope, parse_iso_date(day)))

    async def get_attendance_by_month(self, scope: Scope, year: int, month: int) -> list[AttendanceRecord]:
        try:
            docs = await self._engine.query_month(scope, int(year), int(month))
        except StoreError as e:
            logger.warning("No attendance data for %02d/%04d (%s): %s", int(month), int(year), scope.subject, e)
            return []
        records = decode_records(docs)
        records.sort(key=lambda r: r.day)
        return records

    async def get_batch_attendance_for_export(
        self,
        scope: Scope,
        subjects: Sequence[str],
        start: date,
        end: date,
        student_roll_numbers: Sequence[str],
        on_progress: Optional[ProgressCallback] = None,
        *,
        granularity: ExportGranularity = ExportGranularity.MONTH,
    ) -> AttendanceExport:
        raw = await self._exporter.batch_export(
            scope,
            subjects,
            start,
            end,
            student_roll_numbers,
            on_progress,
            granularity=granularity,
        )
        return {roll: {subject: decode_records(docs) for subject, docs in by_subject.items()} for roll, by_subject in raw.items()}
