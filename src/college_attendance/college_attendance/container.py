from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Mapping, Optional

from .attendance.batch_export import BatchExportAggregator
from .attendance.report import AttendanceReportService
from .attendance.service import AttendanceService
from .common.soft_failures import SoftFailureLog
from .database.connection import MongoConfig, MongoConnection
from .database.document_store import DocumentStore
from .database.memory_store import InMemoryDocumentStore
from .database.mongo_store import MongoDocumentStore
from .database.store_config import StoreConfig
from .leaves.service import LeaveService
from .mirror.store import FlatMirrorStore
from .notifications.service import NotificationService
from .partitions.range_query import RangeQueryEngine
from .partitions.store import PartitionedRecordStore


@dataclass(frozen=True)
class Container:
    config: StoreConfig
    store: DocumentStore
    connection: Optional[MongoConnection]
    soft_failures: SoftFailureLog

    attendance_partitions: PartitionedRecordStore
    leave_partitions: PartitionedRecordStore
    attendance_mirror: FlatMirrorStore
    leave_requests: FlatMirrorStore
    teachers: FlatMirrorStore
    notifications_store: FlatMirrorStore

    attendance_engine: RangeQueryEngine
    leave_engine: RangeQueryEngine
    batch_exporter: BatchExportAggregator

    attendance_service: AttendanceService
    report_service: AttendanceReportService
    leave_service: LeaveService
    notification_service: NotificationService


def build_store(settings: Mapping[str, Any]) -> tuple[DocumentStore, Optional[MongoConnection]]:
    backend = str(settings.get("STORE_BACKEND", "memory")).lower()
    if backend == "memory":
        return InMemoryDocumentStore(), None
    if backend == "mongo":
        connection = MongoConnection(
            MongoConfig(uri=str(settings["MONGODB_URI"]), database=str(settings["MONGODB_DATABASE"]))
        )
        return MongoDocumentStore(connection), connection
    raise ValueError(f"Unknown STORE_BACKEND: {backend!r}")


def build_container(*, settings: Mapping[str, Any], store: Optional[DocumentStore] = None) -> Container:
    config = StoreConfig.from_settings(settings)
    connection: Optional[MongoConnection] = None
    if store is None:
        store, connection = build_store(settings)

    names = config.collections
    soft_failures = SoftFailureLog()

    attendance_partitions = PartitionedRecordStore(store, names.attendance_root)
    leave_partitions = PartitionedRecordStore(store, names.leave_root)
    attendance_mirror = FlatMirrorStore(store, names.attendance)
    leave_requests = FlatMirrorStore(store, names.leave_requests)
    teachers = FlatMirrorStore(store, names.teachers)
    notifications_store = FlatMirrorStore(store, names.notifications)

    attendance_engine = RangeQueryEngine(attendance_partitions, soft_failures=soft_failures)
    leave_engine = RangeQueryEngine(leave_partitions, soft_failures=soft_failures)
    batch_exporter = BatchExportAggregator(attendance_engine, config.limits, soft_failures=soft_failures)

    notification_service = NotificationService(notifications_store)
    attendance_service = AttendanceService(
        attendance_partitions,
        attendance_mirror,
        attendance_engine,
        batch_exporter,
        soft_failures=soft_failures,
    )
    leave_service = LeaveService(
        leave_requests,
        leave_partitions,
        leave_engine,
        notification_service,
        teachers,
        approval_flow=config.approval_flow,
        soft_failures=soft_failures,
    )

    return Container(
        config=config,
        store=store,
        connection=connection,
        soft_failures=soft_failures,
        attendance_partitions=attendance_partitions,
        leave_partitions=leave_partitions,
        attendance_mirror=attendance_mirror,
        leave_requests=leave_requests,
        teachers=teachers,
        notifications_store=notifications_store,
        attendance_engine=attendance_engine,
        leave_engine=leave_engine,
        batch_exporter=batch_exporter,
        attendance_service=attendance_service,
        report_service=AttendanceReportService(),
        leave_service=leave_service,
        notification_service=notification_service,
    )
