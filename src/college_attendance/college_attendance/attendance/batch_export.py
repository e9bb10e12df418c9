from __future__ import annotations

import asyncio
import logging
from datetime import date
from typing import Any, Callable, Optional, Sequence

from ..common.datetime_utils import group_days_by_month, iter_days
from ..common.soft_failures import SoftFailureLog
from ..core.enums import ExportGranularity
from ..core.exceptions import LimitExceededError, ValidationError
from ..database.store_config import ExportLimits
from ..partitions.keys import Scope, owner_from_record_id
from ..partitions.range_query import RangeQueryEngine

logger = logging.getLogger(__name__)

Document = dict[str, Any]
ProgressCallback = Callable[[float], None]
ExportResult = dict[str, dict[str, list[Document]]]


class BatchExportAggregator:
    """Fan out one query per (subject, month) or (subject, day) bucket, then route by student."""

    def __init__(
        self,
        engine: RangeQueryEngine,
        limits: ExportLimits,
        *,
        soft_failures: Optional[SoftFailureLog] = None,
    ):
        self._engine = engine
        self._limits = limits
        self._soft_failures = soft_failures or SoftFailureLog()

    def check_limits(self, subjects: Sequence[str], start: date, end: date, student_roll_numbers: Sequence[str]) -> None:
        if end < start:
            raise ValidationError("End date must be on or after start date")
        if len(student_roll_numbers) > self._limits.max_students:
            raise LimitExceededError("students", len(student_roll_numbers), self._limits.max_students)
        if len(subjects) > self._limits.max_subjects:
            raise LimitExceededError("subjects", len(subjects), self._limits.max_subjects)
        span = (end - start).days
        if span > self._limits.max_days:
            raise LimitExceededError("days", span, self._limits.max_days)

    def _buckets(self, scope: Scope, subjects: Sequence[str], start: date, end: date, granularity: ExportGranularity):
        if granularity == ExportGranularity.DAY:
            days = list(iter_days(start, end))
            for subject in subjects:
                subject_scope = scope.with_subject(subject)
                for day in days:
                    yield subject, day.isoformat(), self._engine.partitions.read_day(subject_scope, day)
            return

        groups = sorted(group_days_by_month(start, end).items())
        for subject in subjects:
            subject_scope = scope.with_subject(subject)
            for (y, m), month_days in groups:
                wanted = {f"{d.day:02d}" for d in month_days}
                yield subject, f"{y:04d}-{m:02d}", self._engine.query_month(subject_scope, y, m, days=wanted)

    async def _run_bucket(self, subject: str, bucket: str, query) -> tuple[str, list[Document]]:
        """A bucket that fails for any reason comes back empty; the gather never aborts."""
        try:
            return subject, await query
        except Exception as e:
            self._soft_failures.record("batch_export.bucket", e, subject=subject, bucket=bucket)
            return subject, []

    @staticmethod
    def _progress_reporter(total: int, on_progress: ProgressCallback):
        done = 0

        def _on_done(_task: asyncio.Future) -> None:
            nonlocal done
            done += 1
            try:
                on_progress(min(1.0, done / total))
            except Exception:
                logger.warning("Export progress callback raised; ignoring", exc_info=True)

        return _on_done

    async def batch_export(
        self,
        scope: Scope,
        subjects: Sequence[str],
        start: date,
        end: date,
        student_roll_numbers: Sequence[str],
        on_progress: Optional[ProgressCallback] = None,
        *,
        granularity: ExportGranularity = ExportGranularity.MONTH,
    ) -> ExportResult:
        """Return ``{rollNumber: {subject: [record, ...]}}`` for every requested pair.

        Lists keep the order the buckets returned them in; callers sort if needed.
        A failing bucket contributes nothing; only the limit checks raise.
        """
        self.check_limits(subjects, start, end, student_roll_numbers)

        result: ExportResult = {roll: {subject: [] for subject in subjects} for roll in student_roll_numbers}

        tasks = [
            asyncio.ensure_future(self._run_bucket(subject, bucket, query))
            for subject, bucket, query in self._buckets(scope, subjects, start, end, granularity)
        ]
        logger.info(
            "Batch export: %d students, %d subjects, %s..%s -> %d %s buckets",
            len(student_roll_numbers), len(subjects), start, end, len(tasks), granularity.value,
        )

        if on_progress is not None:
            if tasks:
                reporter = self._progress_reporter(len(tasks), on_progress)
                for task in tasks:
                    task.add_done_callback(reporter)
            else:
                on_progress(1.0)

        for subject, records in await asyncio.gather(*tasks):
            for record in records:
                owner = owner_from_record_id(str(record.get("id") or ""))
                bucket = result.get(owner)
                if bucket is not None and subject in bucket:
                    bucket[subject].append(record)

        return result
