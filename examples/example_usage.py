"""Example: drive the service layer directly, without Flask.

Marks a few students, exports the month and prints the CSV summary.
"""

import asyncio
import importlib
from datetime import date

from config import get_settings_module

from college_attendance.attendance.model import AttendanceMark
from college_attendance.container import build_container
from college_attendance.core.enums import AttendanceStatus
from college_attendance.main import settings_from_module
from college_attendance.partitions.keys import Scope


async def run(container) -> bytes:
    scope = Scope(year="2nd", sem="3", div="A", subject="")
    marks = [
        AttendanceMark(roll_number=roll, day=date(2025, 3, day), status=status, subject="Operating System",
                       year="2nd", sem="3", div="A")
        for roll, day, status in [
            ("CS001", 10, AttendanceStatus.PRESENT),
            ("CS001", 11, AttendanceStatus.ABSENT),
            ("CS002", 10, AttendanceStatus.PRESENT),
        ]
    ]
    await container.attendance_service.mark_bulk_attendance(marks)

    export = await container.attendance_service.get_batch_attendance_for_export(
        scope, ["Operating System"], date(2025, 3, 1), date(2025, 3, 31), ["CS001", "CS002"],
        on_progress=lambda f: print(f"progress {f:.0%}"),
    )
    reports = container.report_service
    return reports.to_csv_bytes(reports.build_subject_summary(export, division="A"))


def main():
    settings = settings_from_module(importlib.import_module(get_settings_module()))
    container = build_container(settings={**settings, "STORE_BACKEND": "memory"})
    print(asyncio.run(run(container)).decode("utf-8"))


if __name__ == "__main__":
    main()
