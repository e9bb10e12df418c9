from __future__ import annotations

import io
from dataclasses import dataclass
from typing import Mapping, Optional, Sequence

import pandas as pd

from ..core.enums import AttendanceStatus
from .model import AttendanceRecord

SUBJECT_COLUMNS = [
    "Sr No",
    "Name",
    "Division",
    "Roll No",
    "Subject",
    "Present",
    "Absent",
    "Total",
    "Present Percentage",
    "Absent Percentage",
]

STUDENT_COLUMNS = [
    "Sr No",
    "Name",
    "Division",
    "Roll No",
    "Present",
    "Absent",
    "Total",
    "Present Percentage",
    "Absent Percentage",
]


def percent(part: int, total: int) -> str:
    """Integer percent with a trailing ``%``, half rounded up; ``0%`` with no data."""
    if total <= 0:
        return "0%"
    return f"{(part * 200 + total) // (total * 2)}%"


@dataclass(frozen=True)
class Tally:
    present: int
    absent: int
    total: int


def tally(records: Sequence[AttendanceRecord]) -> Tally:
    present = sum(1 for r in records if r.status == AttendanceStatus.PRESENT)
    absent = sum(1 for r in records if r.status == AttendanceStatus.ABSENT)
    return Tally(present=present, absent=absent, total=len(records))


class AttendanceReportService:
    """Turns a batch export into tabular reports (CSV / Excel)."""

    def build_subject_summary(
        self,
        export: Mapping[str, Mapping[str, Sequence[AttendanceRecord]]],
        *,
        division: str = "",
        student_names: Optional[Mapping[str, str]] = None,
    ) -> pd.DataFrame:
        """One row per (student, subject)."""
        names = student_names or {}
        rows: list[dict] = []
        for roll, by_subject in export.items():
            for subject, records in by_subject.items():
                t = tally(records)
                rows.append(
                    {
                        "Sr No": len(rows) + 1,
                        "Name": names.get(roll),
                        "Division": division or None,
                        "Roll No": roll,
                        "Subject": subject,
                        "Present": t.present,
                        "Absent": t.absent,
                        "Total": t.total,
                        "Present Percentage": percent(t.present, t.total),
                        "Absent Percentage": percent(t.absent, t.total),
                    }
                )
        return pd.DataFrame(rows, columns=SUBJECT_COLUMNS).fillna("")

    def build_student_summary(
        self,
        export: Mapping[str, Mapping[str, Sequence[AttendanceRecord]]],
        *,
        division: str = "",
        student_names: Optional[Mapping[str, str]] = None,
    ) -> pd.DataFrame:
        """One row per student, all subjects combined."""
        names = student_names or {}
        rows: list[dict] = []
        for roll, by_subject in export.items():
            t = tally([r for records in by_subject.values() for r in records])
            rows.append(
                {
                    "Sr No": len(rows) + 1,
                    "Name": names.get(roll),
                    "Division": division or None,
                    "Roll No": roll,
                    "Present": t.present,
                    "Absent": t.absent,
                    "Total": t.total,
                    "Present Percentage": percent(t.present, t.total),
                    "Absent Percentage": percent(t.absent, t.total),
                }
            )
        return pd.DataFrame(rows, columns=STUDENT_COLUMNS).fillna("")

    def build_detail(self, records: Sequence[AttendanceRecord]) -> pd.DataFrame:
        df = pd.DataFrame(
            [
                {
                    "Date": r.day.isoformat(),
                    "Roll No": r.roll_number,
                    "Name": r.user_name,
                    "Subject": r.subject,
                    "Status": r.status.value,
                    "Notes": r.notes,
                }
                for r in sorted(records, key=lambda r: (r.day, r.roll_number))
            ],
            columns=["Date", "Roll No", "Name", "Subject", "Status", "Notes"],
        )
        return df.fillna("")

    @staticmethod
    def to_csv_bytes(df: pd.DataFrame) -> bytes:
        return df.to_csv(index=False, lineterminator="\n").encode("utf-8")

    @staticmethod
    def to_excel_bytes(df: pd.DataFrame, *, sheet_name: str = "Attendance") -> bytes:
        output = io.BytesIO()
        with pd.ExcelWriter(output, engine="openpyxl") as writer:
            df.to_excel(writer, index=False, sheet_name=sheet_name)
        output.seek(0)
        return output.getvalue()
