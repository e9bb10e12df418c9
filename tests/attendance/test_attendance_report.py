from datetime import date

from college_attendance.attendance.model import AttendanceRecord
from college_attendance.attendance.report import SUBJECT_COLUMNS, AttendanceReportService, percent
from college_attendance.core.enums import AttendanceStatus


def _rec(roll, day, status, subject="Math"):
    return AttendanceRecord(
        record_id=f"{roll}_{day.isoformat()}",
        roll_number=roll,
        user_id=roll,
        user_name="",
        day=day,
        status=status,
        subject=subject,
        year="2024",
        sem="1",
        div="A",
    )


def test_percent_rounds_half_up_and_handles_zero():
    assert percent(0, 0) == "0%"
    assert percent(1, 3) == "33%"
    assert percent(2, 3) == "67%"
    assert percent(1, 8) == "13%"
    assert percent(3, 3) == "100%"


def test_subject_summary_counts_present_absent_and_total():
    export = {
        "R1": {
            "Math": [
                _rec("R1", date(2024, 1, 1), AttendanceStatus.PRESENT),
                _rec("R1", date(2024, 1, 2), AttendanceStatus.ABSENT),
                _rec("R1", date(2024, 1, 3), AttendanceStatus.LATE),
            ],
            "Phys": [],
        }
    }

    df = AttendanceReportService().build_subject_summary(export, division="A", student_names={"R1": "Asha"})

    assert list(df.columns) == SUBJECT_COLUMNS
    math = df[df["Subject"] == "Math"].iloc[0]
    assert (math["Present"], math["Absent"], math["Total"]) == (1, 1, 3)
    assert math["Present Percentage"] == "33%"
    assert math["Name"] == "Asha"
    phys = df[df["Subject"] == "Phys"].iloc[0]
    assert phys["Present Percentage"] == "0%"


def test_student_summary_combines_subjects():
    export = {
        "R1": {
            "Math": [_rec("R1", date(2024, 1, 1), AttendanceStatus.PRESENT)],
            "Phys": [_rec("R1", date(2024, 1, 1), AttendanceStatus.ABSENT, "Phys")],
        }
    }

    df = AttendanceReportService().build_student_summary(export)

    row = df.iloc[0]
    assert (row["Present"], row["Absent"], row["Total"]) == (1, 1, 2)
    assert row["Present Percentage"] == "50%"
    assert row["Name"] == ""


def test_csv_bytes_start_with_header_row():
    df = AttendanceReportService().build_subject_summary({"R1": {"Math": []}})

    text = AttendanceReportService.to_csv_bytes(df).decode("utf-8")

    assert text.splitlines()[0] == ",".join(SUBJECT_COLUMNS)
    assert text.splitlines()[1].startswith("1,,,R1,Math,0,0,0,0%,0%")


def test_excel_bytes_are_a_zip_container():
    df = AttendanceReportService().build_detail([_rec("R1", date(2024, 1, 1), AttendanceStatus.PRESENT)])

    data = AttendanceReportService.to_excel_bytes(df)

    assert data[:2] == b"PK"
