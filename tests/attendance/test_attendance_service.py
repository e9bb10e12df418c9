import asyncio
from datetime import date, datetime, timezone

import pytest

from college_attendance.attendance.batch_export import BatchExportAggregator
from college_attendance.attendance.model import AttendanceMark
from college_attendance.attendance.service import AttendanceService, mirror_doc_id
from college_attendance.common.soft_failures import SoftFailureLog
from college_attendance.core.enums import AttendanceStatus
from college_attendance.core.exceptions import MissingScopeError, StoreError
from college_attendance.database.memory_store import InMemoryDocumentStore
from college_attendance.database.store_config import ExportLimits
from college_attendance.mirror.store import FlatMirrorStore
from college_attendance.partitions.keys import Scope
from college_attendance.partitions.range_query import RangeQueryEngine
from college_attendance.partitions.store import PartitionedRecordStore

FIXED_NOW = datetime(2024, 1, 31, 9, 0, tzinfo=timezone.utc)
MATH = Scope(year="2024", sem="1", div="A", subject="Math")


class BrokenMirrorStore(InMemoryDocumentStore):
    """Partition writes succeed; writes to the flat attendance collection fail."""

    async def set(self, collection, doc_id, data, *, merge=True):
        if collection == ("attendance_flat",):
            raise StoreError("mirror down")
        await super().set(collection, doc_id, data, merge=merge)


def _service(store=None, soft_failures=None):
    store = store or InMemoryDocumentStore()
    soft_failures = soft_failures or SoftFailureLog()
    partitions = PartitionedRecordStore(store, "attendance")
    engine = RangeQueryEngine(partitions, soft_failures=soft_failures)
    return AttendanceService(
        partitions,
        FlatMirrorStore(store, "attendance_flat"),
        engine,
        BatchExportAggregator(engine, ExportLimits(), soft_failures=soft_failures),
        soft_failures=soft_failures,
        clock=lambda: FIXED_NOW,
    )


def _mark(roll, day, status=AttendanceStatus.PRESENT, subject="Math"):
    return AttendanceMark(roll_number=roll, day=day, status=status, subject=subject, year="2024", sem="1", div="A")


def test_mark_then_read_day_and_user_history():
    svc = _service()

    async def run():
        rid = await svc.mark_attendance(_mark("R1", date(2024, 1, 5)))
        by_day = await svc.get_attendance_by_date(MATH, "2024-01-05")
        by_user = await svc.get_attendance_by_user("R1")
        return rid, by_day, by_user

    rid, by_day, by_user = asyncio.run(run())
    assert rid == "R1_2024-01-05"
    assert [r.record_id for r in by_day] == [rid]
    assert by_user[0].status == AttendanceStatus.PRESENT
    assert by_user[0].created_at == FIXED_NOW


def test_remarking_overwrites_instead_of_duplicating():
    svc = _service()

    async def run():
        await svc.mark_attendance(_mark("R1", date(2024, 1, 5)))
        await svc.mark_attendance(_mark("R1", date(2024, 1, 5), AttendanceStatus.ABSENT))
        return await svc.get_attendance_by_date(MATH, date(2024, 1, 5)), await svc.get_attendance_by_user("R1")

    by_day, by_user = asyncio.run(run())
    assert [r.status for r in by_day] == [AttendanceStatus.ABSENT]
    assert len(by_user) == 1


def test_mark_without_subject_is_rejected_before_any_write():
    store = InMemoryDocumentStore()
    svc = _service(store)

    with pytest.raises(MissingScopeError):
        asyncio.run(svc.mark_attendance(_mark("R1", date(2024, 1, 5), subject="")))

    assert asyncio.run(store.list_child_collections(("attendance",))) == []


def test_mirror_failure_keeps_primary_write():
    soft_failures = SoftFailureLog()
    svc = _service(BrokenMirrorStore(), soft_failures)

    async def run():
        await svc.mark_attendance(_mark("R1", date(2024, 1, 5)))
        return await svc.get_attendance_by_date(MATH, date(2024, 1, 5))

    assert len(asyncio.run(run())) == 1
    assert len(soft_failures.for_operation("attendance.mirror_write")) == 1


def test_organized_range_only_returns_that_student():
    svc = _service()

    async def run():
        for day in (date(2024, 1, 1), date(2024, 1, 2), date(2024, 1, 3)):
            await svc.mark_attendance(_mark("R1", day))
            await svc.mark_attendance(_mark("R2", day, AttendanceStatus.ABSENT))
        return await svc.get_organized_attendance_by_user_and_date_range("R1", MATH, date(2024, 1, 1), date(2024, 1, 3))

    records = asyncio.run(run())
    assert [r.day.day for r in records] == [1, 2, 3]
    assert {r.roll_number for r in records} == {"R1"}


def test_bulk_marking_reports_failures_per_student():
    svc = _service()
    marks = [_mark("R1", date(2024, 1, 5)), _mark("R/2", date(2024, 1, 5)), _mark("R3", date(2024, 1, 5))]

    result = asyncio.run(svc.mark_bulk_attendance(marks))

    assert result.succeeded == ["R1_2024-01-05", "R3_2024-01-05"]
    assert list(result.failed) == ["R/2"]


def test_month_view_and_date_range_history():
    svc = _service()

    async def run():
        await svc.mark_attendance(_mark("R1", date(2024, 1, 31)))
        await svc.mark_attendance(_mark("R1", date(2024, 1, 2)))
        await svc.mark_attendance(_mark("R1", date(2024, 2, 1)))
        month = await svc.get_attendance_by_month(MATH, 2024, 1)
        history = await svc.get_attendance_by_user_and_date_range("R1", date(2024, 1, 15), date(2024, 2, 15))
        return month, history

    month, history = asyncio.run(run())
    assert [r.day.day for r in month] == [2, 31]
    assert [r.day for r in history] == [date(2024, 2, 1), date(2024, 1, 31)]


def test_export_decodes_records_per_student_and_subject():
    svc = _service()

    async def run():
        await svc.mark_attendance(_mark("R1", date(2024, 1, 1)))
        await svc.mark_attendance(_mark("R1", date(2024, 1, 2), AttendanceStatus.ABSENT))
        await svc.mark_attendance(_mark("R2", date(2024, 1, 1), subject="Phys"))
        return await svc.get_batch_attendance_for_export(
            Scope(year="2024", sem="1", div="A", subject=""),
            ["Math", "Phys"],
            date(2024, 1, 1),
            date(2024, 1, 2),
            ["R1", "R2"],
        )

    export = asyncio.run(run())
    assert sorted(r.status.value for r in export["R1"]["Math"]) == ["absent", "present"]
    assert export["R1"]["Phys"] == []
    assert [r.subject for r in export["R2"]["Phys"]] == ["Phys"]


def test_mirror_id_includes_scope():
    svc = _service()
    asyncio.run(svc.mark_attendance(_mark("R1", date(2024, 1, 5))))

    [record] = asyncio.run(svc.get_attendance_by_user("R1"))
    assert mirror_doc_id(record) == "2024_1_A_Math_R1_2024-01-05"
