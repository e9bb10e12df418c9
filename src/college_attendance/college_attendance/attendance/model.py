from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from typing import Any, Literal, Mapping, Optional

from ..common.datetime_utils import parse_iso_date
from ..common.serialization import compact, parse_timestamp
from ..core.enums import AttendanceStatus
from ..core.exceptions import ValidationError
from ..partitions.keys import Scope, owner_from_record_id


def parse_status(value: Any) -> AttendanceStatus:
    try:
        return AttendanceStatus(str(value).strip().lower())
    except ValueError:
        raise ValidationError(f"Invalid attendance status: {value!r}")


@dataclass(frozen=True)
class AttendanceMark:
    """Input for marking one student in one subject on one day."""

    roll_number: str
    day: date
    status: AttendanceStatus
    subject: str
    year: str
    sem: str
    div: str
    user_id: Optional[str] = None
    user_name: str = ""
    notes: Optional[str] = None

    @property
    def scope(self) -> Scope:
        return Scope(year=self.year, sem=self.sem, div=self.div, subject=self.subject)


@dataclass(frozen=True)
class AttendanceRecord:
    """One mark per (student, subject, day); ``record_id`` is ``{rollNumber}_{isoDate}``."""

    record_id: str
    roll_number: str
    user_id: str
    user_name: str
    day: date
    status: AttendanceStatus
    subject: str
    year: str
    sem: str
    div: str
    notes: Optional[str] = None
    created_at: Optional[datetime] = None
    kind: Literal["attendance"] = "attendance"

    @property
    def scope(self) -> Scope:
        return Scope(year=self.year, sem=self.sem, div=self.div, subject=self.subject)

    def to_document(self) -> dict[str, Any]:
        return compact(
            {
                "kind": self.kind,
                "id": self.record_id,
                "rollNumber": self.roll_number,
                "userId": self.user_id,
                "userName": self.user_name,
                "date": self.day.isoformat(),
                "status": self.status.value,
                "subject": self.subject,
                "year": self.year,
                "sem": self.sem,
                "div": self.div,
                "notes": self.notes,
                "createdAt": self.created_at,
            }
        )

    @classmethod
    def from_document(cls, doc: Mapping[str, Any]) -> "AttendanceRecord":
        record_id = str(doc.get("id") or "").strip()
        if not record_id:
            raise ValidationError("Attendance document without id")
        if not doc.get("date"):
            raise ValidationError(f"Attendance document {record_id} without date")
        roll = str(doc.get("rollNumber") or doc.get("userId") or owner_from_record_id(record_id))
        return cls(
            record_id=record_id,
            roll_number=roll,
            user_id=str(doc.get("userId") or roll),
            user_name=str(doc.get("userName") or ""),
            day=parse_iso_date(doc["date"]),
            status=parse_status(doc.get("status")),
            subject=str(doc.get("subject") or ""),
            year=str(doc.get("year") or ""),
            sem=str(doc.get("sem") or ""),
            div=str(doc.get("div") or ""),
            notes=doc.get("notes") or None,
            created_at=parse_timestamp(doc.get("createdAt")),
        )


@dataclass(frozen=True)
class BulkMarkResult:
    succeeded: list[str]
    failed: dict[str, str]
