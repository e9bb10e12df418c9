from datetime import date

import pytest

from college_attendance.core.exceptions import MissingScopeError, ValidationError
from college_attendance.partitions.keys import (
    Scope,
    attendance_record_id,
    month_path,
    owner_from_record_id,
    scope_key,
    segment_path,
)


def test_segment_path_layout():
    scope = Scope(year="2024", sem="1", div="A", subject="Math")

    assert segment_path("attendance", scope, date(2024, 1, 5)) == (
        "attendance", "2024", "sems", "1", "divs", "A", "subjects", "Math", "2024", "01", "05",
    )
    assert month_path("leave", scope, 2024, 2)[-2:] == ("2024", "02")


def test_scope_key_names_every_missing_dimension():
    with pytest.raises(MissingScopeError) as exc:
        scope_key(Scope(year="2024", sem="", div=" ", subject="Math"))

    assert exc.value.missing == ["sem", "div"]


def test_scope_key_rejects_path_separator():
    with pytest.raises(ValidationError):
        scope_key(Scope(year="2024", sem="1", div="A/B", subject="Math"))


def test_record_id_routes_back_to_owner():
    rid = attendance_record_id("CS_101", date(2024, 1, 5))

    assert rid == "CS_101_2024-01-05"
    assert owner_from_record_id(rid) == "CS_101"
    assert owner_from_record_id("plain") == "plain"


def test_scope_from_mapping_strips_and_overrides_subject():
    scope = Scope.from_mapping({"year": " 2024 ", "sem": 1, "div": "A", "subject": "Math"}, subject="Physics")

    assert scope == Scope(year="2024", sem="1", div="A", subject="Physics")
