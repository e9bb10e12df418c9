"""Partition key scheme shared by every read and write path.

``{root}/{year}/sems/{sem}/divs/{div}/subjects/{subject}/{YYYY}/{MM}/{DD}/{docId}``
"""
from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from typing import Any, Mapping, Optional

from ..common.validators import require_fields, require_segment
from ..database.document_store import PathSegments


@dataclass(frozen=True)
class Scope:
    year: str
    sem: str
    div: str
    subject: str

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any], *, subject: Optional[str] = None) -> "Scope":
        return cls(
            year=str(data.get("year") or "").strip(),
            sem=str(data.get("sem") or "").strip(),
            div=str(data.get("div") or "").strip(),
            subject=str(subject if subject is not None else data.get("subject") or "").strip(),
        )

    def with_subject(self, subject: str) -> "Scope":
        return Scope(year=self.year, sem=self.sem, div=self.div, subject=subject)


def scope_key(scope: Scope) -> PathSegments:
    require_fields({"year": scope.year, "sem": scope.sem, "div": scope.div, "subject": scope.subject})
    return (
        require_segment(scope.year, "year"),
        "sems",
        require_segment(scope.sem, "sem"),
        "divs",
        require_segment(scope.div, "div"),
        "subjects",
        require_segment(scope.subject, "subject"),
    )


def calendar_segment(day: date) -> tuple[str, str, str]:
    return f"{day.year:04d}", f"{day.month:02d}", f"{day.day:02d}"


def month_path(root: str, scope: Scope, year: int | str, month: int | str) -> PathSegments:
    return (root, *scope_key(scope), f"{int(year):04d}", f"{int(month):02d}")


def segment_path(root: str, scope: Scope, day: date) -> PathSegments:
    return (root, *scope_key(scope), *calendar_segment(day))


def attendance_record_id(roll_number: str, day: date) -> str:
    roll = require_segment(roll_number, "rollNumber")
    return f"{roll}_{day.isoformat()}"


def owner_from_record_id(record_id: str) -> str:
    """Student identifier: everything before the final ``_{isoDate}`` suffix."""
    head, sep, _ = record_id.rpartition("_")
    return head if sep else record_id
