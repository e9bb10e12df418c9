from __future__ import annotations

from enum import Enum


class AttendanceStatus(str, Enum):
    """Status of a single attendance mark, stored as-is in documents."""

    PRESENT = "present"
    ABSENT = "absent"
    LATE = "late"
    LEAVE = "leave"
    HALF_DAY = "half-day"


class LeaveType(str, Enum):
    CL = "CL"
    ML = "ML"
    EL = "EL"
    LOP = "LOP"
    COH = "COH"
    SL = "SL"
    OD = "OD"
    OTH = "OTH"


class LeaveStatus(str, Enum):
    """State of a leave request in the approval chain."""

    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"
    RETURNED = "returned"


class LeaveAction(str, Enum):
    APPROVE = "approve"
    REJECT = "reject"
    RETURN = "return"


class NotificationType(str, Enum):
    INFO = "info"
    SUCCESS = "success"
    WARNING = "warning"
    ERROR = "error"


class NotificationCategory(str, Enum):
    LEAVE = "leave"
    ATTENDANCE = "attendance"
    SYSTEM = "system"
    ANNOUNCEMENT = "announcement"


class Priority(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class ExportGranularity(str, Enum):
    """How a batch export buckets its reads: one per (subject, month) or (subject, day)."""

    MONTH = "month"
    DAY = "day"
