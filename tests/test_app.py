import asyncio

import pytest

from college_attendance.main import create_app


@pytest.fixture()
def client(monkeypatch):
    monkeypatch.setenv("APP_ENV", "testing")
    app = create_app()
    yield app.test_client()
    app.extensions["college_attendance"]["runner"].close()


def _mark(client, roll, day, status="present", subject="Math"):
    return client.post(
        "/api/attendance",
        json={"rollNumber": roll, "date": day, "status": status, "subject": subject, "year": "2024", "sem": "1", "div": "A"},
    )


def test_mark_and_export_csv(client):
    assert _mark(client, "R1", "2024-01-01").status_code == 201
    assert _mark(client, "R1", "2024-01-02", "absent").status_code == 201

    resp = client.post(
        "/api/attendance/export?format=csv",
        json={"year": "2024", "sem": "1", "div": "A", "subjects": ["Math"], "students": ["R1"],
              "start": "2024-01-01", "end": "2024-01-31"},
    )

    assert resp.status_code == 200
    lines = resp.data.decode("utf-8").splitlines()
    assert lines[0].startswith("Sr No,Name,Division,Roll No,Subject")
    assert lines[1].endswith("R1,Math,1,1,2,50%,50%")


def test_missing_scope_is_a_bad_request(client):
    resp = _mark(client, "R1", "2024-01-01", subject="")

    assert resp.status_code == 400
    assert resp.get_json()["missing"] == ["subject"]


def test_export_over_limit_is_a_bad_request(client):
    resp = client.post(
        "/api/attendance/export",
        json={"year": "2024", "sem": "1", "div": "A", "subjects": ["Math"],
              "students": [f"R{i}" for i in range(101)], "start": "2024-01-01", "end": "2024-01-02"},
    )

    assert resp.status_code == 400
    assert "Maximum allowed: 100" in resp.get_json()["message"]


def test_leave_flow_over_http(client):
    created = client.post(
        "/api/leaves",
        json={"userId": "U1", "userName": "Asha", "leaveType": "SL", "fromDate": "2024-01-10",
              "toDate": "2024-01-10", "reason": "fever", "year": "2024", "sem": "1", "div": "A"},
    )
    assert created.status_code == 201
    request_id = created.get_json()["id"]

    first = client.post(f"/api/leaves/{request_id}/status", json={"status": "approved", "approvedBy": "T1"})
    assert first.get_json()["currentApprovalLevel"] == "HOD"
    second = client.post(f"/api/leaves/{request_id}/status", json={"status": "approved", "approvedBy": "H1"})
    assert second.get_json()["status"] == "approved"

    conflict = client.post(f"/api/leaves/{request_id}/status", json={"status": "rejected"})
    assert conflict.status_code == 409

    month = client.get("/api/leaves/class/month?year=2024&sem=1&div=A&subject=General&month=1&yearForMonth=2024")
    assert [r["id"] for r in month.get_json()] == [request_id]

    inbox = client.get("/api/notifications/users/U1").get_json()
    assert inbox["unread"] == 2


def test_unknown_leave_is_not_found(client):
    assert client.get("/api/leaves/nope").status_code == 404


def test_runner_timeout_maps_to_gateway_timeout(client):
    app = client.application
    runner = app.extensions["college_attendance"]["runner"]

    @app.get("/api/_slow")
    def slow():
        return runner.run(asyncio.sleep(1, result="late"), timeout=0.01)

    resp = client.get("/api/_slow")

    assert resp.status_code == 504
    assert "may still complete" in resp.get_json()["message"]
