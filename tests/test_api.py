import math

from app.core.config import settings
from app.models import AttendanceRecord

from tests.conftest import ADMIN, STRANGER

FENCE = {"latitude": -6.2088, "longitude": 106.8456, "radius": 100}
PHONE = {"platform": "Android", "language": "id-ID", "screen": "412x915x24", "timezone": "Asia/Jakarta"}


def _create_session(client, **fields):
    body = {"es_name": "Town hall", **fields}
    res = client.post("/api/v1/sessions/", json=body)
    assert res.status_code == 201, res.text
    return res.json()["data"]


def test_root(client):
    res = client.get("/")
    assert res.status_code == 200
    assert res.json()["status"] == "running"


def test_create_session_sets_owner(client):
    data = _create_session(client, es_kind="code", es_geo_fence=FENCE, es_form_fields=["name"])

    assert data["es_owner_id"] == 7
    assert data["es_kind"] == "code"
    assert data["es_geo_fence"]["radius"] == 100
    assert data["es_scan_count"] == 0


def test_create_session_rejects_inverted_window(client):
    res = client.post(
        "/api/v1/sessions/",
        json={
            "es_name": "Backwards",
            "es_valid_from": "2026-05-02T10:00:00Z",
            "es_valid_until": "2026-05-01T10:00:00Z",
        },
    )
    assert res.status_code == 422
    assert res.json()["success"] is False


def test_scan_sets_device_cookie_and_blocks_repeat(client):
    code = _create_session(client, es_kind="code")

    first = client.post("/api/v1/attendance/scan", json={"session_or_code_id": code["es_id"], "device": PHONE})
    assert first.status_code == 201, first.text
    body = first.json()["data"]
    assert body["device_token"].startswith("dt_")
    assert body["identity_source"] == "generated"
    assert body["record"]["ar_session_id"] == code["es_id"]
    assert settings.DEVICE_COOKIE_NAME in first.cookies

    again = client.post("/api/v1/attendance/scan", json={"session_or_code_id": code["es_id"]})
    assert again.status_code == 409
    assert again.json()["success"] is False
    assert again.json()["details"]["code"] == "DUPLICATE_SUBMISSION"

    # Cookie gone, local-storage copy still there
    client.cookies.clear()
    from_local = client.post(
        "/api/v1/attendance/scan",
        json={"session_or_code_id": code["es_id"]},
        headers={settings.DEVICE_TOKEN_HEADER: body["device_token"]},
    )
    assert from_local.status_code == 409


def test_cookie_identifies_device_on_next_code(client):
    first = _create_session(client, es_kind="code")
    second = _create_session(client, es_kind="code")

    token = client.post("/api/v1/attendance/scan", json={"session_or_code_id": first["es_id"]}).json()["data"]["device_token"]
    res = client.post("/api/v1/attendance/scan", json={"session_or_code_id": second["es_id"]})

    assert res.status_code == 201
    assert res.json()["data"]["identity_source"] == "cookie"
    assert res.json()["data"]["device_token"] == token


def test_checkin_cooldown_reports_wait(client):
    session = _create_session(client)

    assert client.post("/api/v1/attendance/checkin", json={"session_or_code_id": session["es_id"]}).status_code == 201
    res = client.post("/api/v1/attendance/checkin", json={"session_or_code_id": session["es_id"]})

    assert res.status_code == 429
    details = res.json()["details"]
    assert details["code"] == "TOO_SOON"
    assert 0 < details["retry_after_seconds"] <= settings.RESUBMIT_COOLDOWN_HOURS * 3600


def test_scan_outside_geofence_reports_distance(client):
    code = _create_session(client, es_kind="code", es_geo_fence=FENCE)
    location = {
        "latitude": FENCE["latitude"] + math.degrees(150 / 6_371_000),
        "longitude": FENCE["longitude"],
    }

    res = client.post(
        "/api/v1/attendance/scan",
        json={"session_or_code_id": code["es_id"], "capture_location": True, "location": location},
    )

    assert res.status_code == 403
    details = res.json()["details"]
    assert details["code"] == "OUTSIDE_GEOFENCE"
    assert abs(details["distance_m"] - 150) < 1


def test_scan_with_fence_and_no_location(client):
    code = _create_session(client, es_kind="code", es_geo_fence=FENCE)

    res = client.post("/api/v1/attendance/scan", json={"session_or_code_id": code["es_id"]})

    assert res.status_code == 400
    assert res.json()["details"]["code"] == "LOCATION_REQUIRED"


def test_scan_unknown_and_inactive(client):
    missing = client.post("/api/v1/attendance/scan", json={"session_or_code_id": "nope"})
    assert missing.status_code == 404
    assert missing.json()["details"]["code"] == "NOT_FOUND"

    code = _create_session(client, es_kind="code", es_is_active=False)
    inactive = client.post("/api/v1/attendance/scan", json={"session_or_code_id": code["es_id"]})
    assert inactive.status_code == 403
    assert inactive.json()["details"]["code"] == "INACTIVE"


def test_scan_requires_body(client):
    res = client.post("/api/v1/attendance/scan", json={})
    assert res.status_code == 422


def test_update_session_toggles_active(client):
    session = _create_session(client)

    res = client.put(f"/api/v1/sessions/{session['es_id']}", json={"es_is_active": False})

    assert res.status_code == 200
    assert res.json()["data"]["es_is_active"] is False


def test_update_cannot_move_end_before_stored_start(client):
    session = _create_session(
        client,
        es_valid_from="2026-05-01T08:00:00Z",
        es_valid_until="2026-05-01T17:00:00Z",
    )

    res = client.put(
        f"/api/v1/sessions/{session['es_id']}",
        json={"es_valid_until": "2026-05-01T07:00:00Z"},
    )

    assert res.status_code == 400
    assert res.json()["details"]["code"] == "INVALID_SCHEDULE"
    stored = client.get(f"/api/v1/sessions/{session['es_id']}").json()["data"]
    assert stored["es_valid_until"].startswith("2026-05-01T17:00:00")


def test_update_rejects_inverted_window_in_body(client):
    session = _create_session(client)

    res = client.put(
        f"/api/v1/sessions/{session['es_id']}",
        json={"es_valid_from": "2026-05-02T10:00:00Z", "es_valid_until": "2026-05-01T10:00:00Z"},
    )

    assert res.status_code == 422


def test_session_records_are_listed_for_owner(client, current_user):
    session = _create_session(client)
    client.post("/api/v1/attendance/checkin", json={"session_or_code_id": session["es_id"], "member_id": "m-1"})

    res = client.get(f"/api/v1/sessions/{session['es_id']}/records")
    assert res.status_code == 200
    assert res.json()["total"] == 1
    assert res.json()["data"][0]["ar_member_id"] == "m-1"

    current_user.update(STRANGER)
    assert client.get(f"/api/v1/sessions/{session['es_id']}/records").status_code == 403


def test_list_sessions_requires_admin(client, current_user):
    _create_session(client)
    assert client.get("/api/v1/sessions/").status_code == 403

    current_user.update(ADMIN)
    res = client.get("/api/v1/sessions/", params={"search": "town"})
    assert res.status_code == 200
    assert res.json()["total"] == 1


def test_delete_small_session_inline(client, db, add_records):
    session = _create_session(client)
    add_records(session["es_id"], 50)

    res = client.delete(f"/api/v1/sessions/{session['es_id']}")

    assert res.status_code == 200
    assert res.json()["data"] == {"mode": "synchronous", "deleted_count": 50, "job_id": None}
    assert client.get(f"/api/v1/sessions/{session['es_id']}").status_code == 404


def test_delete_large_session_runs_background_job(client, db, add_records):
    session = _create_session(client)
    add_records(session["es_id"], 1200)

    res = client.delete(f"/api/v1/sessions/{session['es_id']}")

    assert res.status_code == 202
    data = res.json()["data"]
    assert data["mode"] == "queued"

    # TestClient runs background tasks before returning
    job = client.get(f"/api/v1/deletion-jobs/{data['job_id']}")
    assert job.status_code == 200
    job_data = job.json()["data"]
    assert job_data["dj_status"] == "completed"
    assert job_data["dj_processed_count"] >= 1200
    assert job_data["dj_total_count"] == 1200

    db.expire_all()
    assert db.query(AttendanceRecord).filter(AttendanceRecord.ar_session_id == session["es_id"]).count() == 0

    retry = client.post(f"/api/v1/deletion-jobs/{data['job_id']}/retry")
    assert retry.status_code == 409
    assert retry.json()["details"]["code"] == "INVALID_JOB_STATE"


def test_delete_by_stranger_is_denied(client, current_user):
    session = _create_session(client)

    current_user.update(STRANGER)
    res = client.delete(f"/api/v1/sessions/{session['es_id']}")

    assert res.status_code == 403
    assert res.json()["details"]["code"] == "PERMISSION_DENIED"


def test_unknown_deletion_job(client):
    res = client.get("/api/v1/deletion-jobs/does-not-exist")
    assert res.status_code == 404
