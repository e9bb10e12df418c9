from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Any, Literal, Mapping, Optional

from ..common.datetime_utils import parse_iso_date
from ..common.serialization import compact, parse_timestamp
from ..core.constants import DEFAULT_LEAVE_SUBJECT
from ..core.enums import LeaveStatus, LeaveType
from ..core.exceptions import ValidationError
from ..partitions.keys import Scope


def parse_leave_type(value: Any) -> LeaveType:
    try:
        return LeaveType(str(value).strip().upper())
    except ValueError:
        raise ValidationError(f"Invalid leave type: {value!r}")


def parse_leave_status(value: Any) -> LeaveStatus:
    try:
        return LeaveStatus(str(value).strip().lower())
    except ValueError:
        raise ValidationError(f"Invalid leave status: {value!r}")


@dataclass(frozen=True)
class NewLeaveRequest:
    user_id: str
    user_name: str
    leave_type: LeaveType
    from_date: date
    to_date: date
    reason: str
    department: str = ""
    days_count: Optional[int] = None
    approval_flow: tuple[str, ...] = ()
    roll_number: Optional[str] = None
    year: Optional[str] = None
    sem: Optional[str] = None
    div: Optional[str] = None
    subject: Optional[str] = None
    reapplied_from: Optional[str] = None


@dataclass(frozen=True)
class LeaveRequest:
    request_id: str
    user_id: str
    user_name: str
    department: str
    leave_type: LeaveType
    from_date: date
    to_date: date
    days_count: int
    reason: str
    status: LeaveStatus
    current_approval_level: str
    approval_flow: tuple[str, ...]
    submitted_at: Optional[datetime] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    approved_by: Optional[str] = None
    approved_at: Optional[datetime] = None
    remarks: Optional[str] = None
    roll_number: Optional[str] = None
    year: Optional[str] = None
    sem: Optional[str] = None
    div: Optional[str] = None
    subject: Optional[str] = None
    reapplied_from: Optional[str] = None
    assigned_to: Optional[dict[str, Any]] = field(default=None, hash=False, compare=False)
    kind: Literal["leave"] = "leave"

    @property
    def mirror_scope(self) -> Optional[Scope]:
        """Where the hierarchical copy lives, if the request carries a class scope."""
        if not (self.year and self.sem and self.div):
            return None
        return Scope(year=self.year, sem=self.sem, div=self.div, subject=self.subject or DEFAULT_LEAVE_SUBJECT)

    def to_document(self) -> dict[str, Any]:
        return compact(
            {
                "kind": self.kind,
                "userId": self.user_id,
                "userName": self.user_name,
                "department": self.department,
                "leaveType": self.leave_type.value,
                "fromDate": self.from_date.isoformat(),
                "toDate": self.to_date.isoformat(),
                "daysCount": self.days_count,
                "reason": self.reason,
                "status": self.status.value,
                "currentApprovalLevel": self.current_approval_level,
                "approvalFlow": list(self.approval_flow),
                "submittedAt": self.submitted_at,
                "createdAt": self.created_at,
                "updatedAt": self.updated_at,
                "approvedBy": self.approved_by,
                "approvedAt": self.approved_at,
                "remarks": self.remarks,
                "rollNumber": self.roll_number,
                "year": self.year,
                "sem": self.sem,
                "div": self.div,
                "subject": self.subject,
                "reappliedFrom": self.reapplied_from,
                "assignedTo": self.assigned_to,
            }
        )

    @classmethod
    def from_document(cls, doc: Mapping[str, Any], *, default_flow: tuple[str, ...] = ()) -> "LeaveRequest":
        request_id = str(doc.get("id") or "").strip()
        if not request_id:
            raise ValidationError("Leave document without id")
        for key in ("userId", "fromDate", "toDate", "leaveType"):
            if not doc.get(key):
                raise ValidationError(f"Leave document {request_id} without {key}")

        flow = tuple(doc.get("approvalFlow") or default_flow)
        from_date = parse_iso_date(doc["fromDate"])
        to_date = parse_iso_date(doc["toDate"])
        return cls(
            request_id=request_id,
            user_id=str(doc["userId"]),
            user_name=str(doc.get("userName") or ""),
            department=str(doc.get("department") or ""),
            leave_type=parse_leave_type(doc["leaveType"]),
            from_date=from_date,
            to_date=to_date,
            days_count=int(doc.get("daysCount") or (to_date - from_date).days + 1),
            reason=str(doc.get("reason") or ""),
            status=parse_leave_status(doc.get("status") or LeaveStatus.PENDING.value),
            current_approval_level=str(doc.get("currentApprovalLevel") or (flow[0] if flow else "")),
            approval_flow=flow,
            submitted_at=parse_timestamp(doc.get("submittedAt")),
            created_at=parse_timestamp(doc.get("createdAt")),
            updated_at=parse_timestamp(doc.get("updatedAt")),
            approved_by=doc.get("approvedBy"),
            approved_at=parse_timestamp(doc.get("approvedAt")),
            remarks=doc.get("remarks"),
            roll_number=doc.get("rollNumber"),
            year=doc.get("year"),
            sem=doc.get("sem"),
            div=doc.get("div"),
            subject=doc.get("subject"),
            reapplied_from=doc.get("reappliedFrom"),
            assigned_to=doc.get("assignedTo"),
        )
