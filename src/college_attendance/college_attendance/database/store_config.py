from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Mapping

from ..core import constants


@dataclass(frozen=True)
class CollectionNames:
    attendance_root: str = constants.ATTENDANCE_ROOT
    leave_root: str = constants.LEAVE_ROOT
    users: str = constants.USERS_COLLECTION
    teachers: str = constants.TEACHERS_COLLECTION
    leave_requests: str = constants.LEAVE_REQUESTS_COLLECTION
    attendance: str = constants.ATTENDANCE_COLLECTION
    notifications: str = constants.NOTIFICATIONS_COLLECTION


@dataclass(frozen=True)
class ExportLimits:
    max_students: int = constants.DEFAULT_MAX_STUDENTS
    max_subjects: int = constants.DEFAULT_MAX_SUBJECTS
    max_days: int = constants.DEFAULT_MAX_DAYS


@dataclass(frozen=True)
class StoreConfig:
    """Everything the stores, engines and services need, passed explicitly."""

    collections: CollectionNames = field(default_factory=CollectionNames)
    limits: ExportLimits = field(default_factory=ExportLimits)
    approval_flow: tuple[str, ...] = constants.DEFAULT_APPROVAL_FLOW

    @classmethod
    def from_settings(cls, settings: Mapping[str, Any]) -> "StoreConfig":
        limits = dict(settings.get("EXPORT_LIMITS") or {})
        flow = tuple(settings.get("APPROVAL_FLOW") or constants.DEFAULT_APPROVAL_FLOW)
        return cls(
            collections=CollectionNames(**dict(settings.get("COLLECTIONS") or {})),
            limits=ExportLimits(
                max_students=int(limits.get("max_students", constants.DEFAULT_MAX_STUDENTS)),
                max_subjects=int(limits.get("max_subjects", constants.DEFAULT_MAX_SUBJECTS)),
                max_days=int(limits.get("max_days", constants.DEFAULT_MAX_DAYS)),
            ),
            approval_flow=flow,
        )
