from __future__ import annotations

from datetime import timedelta

import pytest
from fastapi.testclient import TestClient

from leavedesk.core.security import create_access_token
from leavedesk.db.session import get_db
from leavedesk.main import app


@pytest.fixture()
def client(db, directory):
    def override_get_db():
        try:
            yield db
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db

    client_instance = TestClient(app)
    try:
        yield client_instance
    finally:
        client_instance.close()
        app.dependency_overrides.clear()


def _auth(user_id: int, kind: str) -> dict[str, str]:
    token = create_access_token({"sub": str(user_id), "kind": kind})
    return {"Authorization": f"Bearer {token}"}


def _student_headers(directory) -> dict[str, str]:
    return _auth(directory.student.id, "Student")


def _staff_headers(member) -> dict[str, str]:
    return _auth(member.id, "Staff")


def _submit(client, directory, start, days=2):
    response = client.post(
        "/api/leave-requests",
        json={
            "from_date": str(start),
            "to_date": str(start + timedelta(days=days - 1)),
            "reason": "Cousin's wedding",
        },
        headers=_student_headers(directory),
    )
    assert response.status_code == 201, response.text
    return response.json()


def test_submit_returns_pending_request_with_stage_map(client, directory, future_monday):
    created = _submit(client, directory, future_monday)

    assert created["status"] == "pending"
    assert created["requester_kind"] == "Student"
    assert created["no_of_days"] == 2.0
    assert [stage["stage"] for stage in created["stages"]] == ["mentor", "classIncharge", "hod"]
    assert all(stage["status"] == "pending" for stage in created["stages"])


def test_requests_require_a_token(client):
    response = client.get("/api/leave-requests/my")
    assert response.status_code == 401


def test_invalid_token_is_rejected(client):
    response = client.get("/api/leave-requests/my", headers={"Authorization": "Bearer not-a-token"})
    assert response.status_code == 401


def test_duplicate_period_has_distinct_code(client, directory, future_monday):
    _submit(client, directory, future_monday)

    response = client.post(
        "/api/leave-requests",
        json={"from_date": str(future_monday + timedelta(days=1)), "single_day": True, "reason": "Again"},
        headers=_student_headers(directory),
    )
    assert response.status_code == 409
    body = response.json()
    assert body["success"] is False
    assert body["code"] == "duplicate_period"
    assert body["detail"] == "You already have a leave request for this period"


def test_admission_errors_use_the_envelope(client, directory, future_monday):
    response = client.post(
        "/api/leave-requests",
        json={"from_date": str(future_monday), "to_date": str(future_monday - timedelta(days=1)), "reason": ""},
        headers=_student_headers(directory),
    )
    assert response.status_code == 422
    body = response.json()
    assert body["status_code"] == 422
    assert body["code"] == "validation_error"
    messages = {err["field"]: err["message"] for err in body["errors"]}
    assert messages == {
        "to_date": "Leave end date must be after the start date",
        "reason": "Reason must be given",
    }


def test_malformed_body_uses_the_envelope(client, directory):
    response = client.post(
        "/api/leave-requests",
        json={"from_date": "not-a-date", "reason": "x"},
        headers=_student_headers(directory),
    )
    assert response.status_code == 422
    assert response.json()["errors"][0]["field"] == "from_date"


def test_approval_flow_over_http(client, directory, future_monday):
    created = _submit(client, directory, future_monday)
    leave_id = created["id"]

    inbox = client.get("/api/leave-requests/inbox", headers=_staff_headers(directory.mentor))
    assert inbox.status_code == 200
    assert [row["id"] for row in inbox.json()] == [leave_id]

    for stage, member in (
        ("mentor", directory.mentor),
        ("classIncharge", directory.class_incharge),
        ("hod", directory.hod),
    ):
        response = client.post(
            f"/api/leave-requests/{leave_id}/stages/{stage}/approve",
            json={"comment": "ok"},
            headers=_staff_headers(member),
        )
        assert response.status_code == 200, response.text

    body = response.json()
    assert body["status"] == "approved"
    assert all(stage["decided_at"] for stage in body["stages"])

    mine = client.get("/api/leave-requests/my?status=approved", headers=_student_headers(directory))
    assert [row["id"] for row in mine.json()] == [leave_id]


def test_reject_without_body(client, directory, future_monday):
    created = _submit(client, directory, future_monday)
    response = client.post(
        f"/api/leave-requests/{created['id']}/stages/hod/reject",
        headers=_staff_headers(directory.hod),
    )
    assert response.status_code == 200, response.text
    assert response.json()["status"] == "rejected"


def test_decision_errors_map_to_status_codes(client, directory, future_monday):
    created = _submit(client, directory, future_monday)
    base = f"/api/leave-requests/{created['id']}/stages"

    forbidden = client.post(f"{base}/hod/approve", headers=_staff_headers(directory.mentor))
    assert forbidden.status_code == 403
    assert forbidden.json()["code"] == "forbidden_actor"

    unknown = client.post(f"{base}/dean/approve", headers=_staff_headers(directory.hod))
    assert unknown.status_code == 400
    assert unknown.json()["code"] == "unknown_stage"

    first = client.post(f"{base}/mentor/approve", headers=_staff_headers(directory.mentor))
    assert first.status_code == 200
    again = client.post(f"{base}/mentor/reject", headers=_staff_headers(directory.mentor))
    assert again.status_code == 409
    assert again.json()["code"] == "already_decided"

    missing = client.post("/api/leave-requests/9999/stages/hod/approve", headers=_staff_headers(directory.hod))
    assert missing.status_code == 404


def test_students_cannot_decide(client, directory, future_monday):
    created = _submit(client, directory, future_monday)
    response = client.post(
        f"/api/leave-requests/{created['id']}/stages/mentor/approve",
        headers=_student_headers(directory),
    )
    assert response.status_code == 403


def test_read_leave_visibility(client, directory, future_monday):
    created = _submit(client, directory, future_monday)
    url = f"/api/leave-requests/{created['id']}"

    assert client.get(url, headers=_student_headers(directory)).status_code == 200
    assert client.get(url, headers=_staff_headers(directory.class_incharge)).status_code == 200
    assert client.get(url, headers=_staff_headers(directory.lecturer)).status_code == 403


def test_staff_without_hod_gets_unresolved_chain(client, db, directory, future_monday):
    directory.department.hod_staff_id = None
    db.commit()

    response = client.post(
        "/api/leave-requests",
        json={"from_date": str(future_monday), "single_day": True, "leave_type": "Casual Leave", "reason": "Personal"},
        headers=_staff_headers(directory.lecturer),
    )
    assert response.status_code == 409
    assert response.json()["code"] == "unresolved_approval_chain"


def test_duration_preview(client, directory, future_monday):
    response = client.get(
        "/api/leave-requests/duration",
        params={"from_date": str(future_monday), "to_date": str(future_monday + timedelta(days=4))},
        headers=_student_headers(directory),
    )
    assert response.status_code == 200
    body = response.json()
    assert body["chargeable_days"] == 5
    assert body["calendar_span_days"] == 5

    half = client.get(
        "/api/leave-requests/duration",
        params={"from_date": str(future_monday), "is_half_day": "AN"},
        headers=_student_headers(directory),
    )
    assert half.json()["no_of_days"] == 0.5


def test_health_endpoints(client):
    assert client.get("/healthz").json() == {"status": "ok"}
    assert client.get("/readyz").status_code == 200
    metrics = client.get("/metrics")
    assert metrics.status_code == 200
    assert "leave_requests_submitted_total" in metrics.text
