import datetime as dt

import pytest

from app.core.config import Settings
from app.core.qr_codec import VerifyReason
from app.core.timeutil import utcnow
from app.crud.class_session import class_session_crud
from app.models.attendance import AttendanceStatus
from app.models.enrollment import Enrollment
from app.services.attendance import AttendanceError, record_scan

NEAR = {"latitude": -12.0465, "longitude": -77.0428}
FAR = {"latitude": -12.0600, "longitude": -77.0428}


@pytest.fixture()
def live_session(db, codec, professor, course):
    return class_session_crud.start(db, codec, course=course, professor=professor)


def _scan(client, auth, user, payload, **extra):
    return client.post("/api/v1/attendance/scan", json={"payload": payload, **extra}, headers=auth(user))


def test_scan_records_present(client, codec, auth, student, live_session):
    payload = codec.issue(live_session.id, live_session.qr_secret)
    r = _scan(client, auth, student, payload, device_info="pytest", **NEAR)
    assert r.status_code == 200, r.text
    body = r.json()
    assert body["success"] is True
    assert body["status"] == "present"
    assert body["session_id"] == live_session.id


def test_scan_via_professor_qr_endpoint(client, auth, professor, student, live_session):
    qr = client.get(f"/api/v1/sessions/{live_session.id}/qr", headers=auth(professor)).json()
    assert _scan(client, auth, student, qr["payload"]).status_code == 200

    records = client.get(f"/api/v1/sessions/{live_session.id}/attendance", headers=auth(professor)).json()
    assert [(r["student_id"], r["status"]) for r in records] == [(student.id, "present")]
    assert records[0]["student"]["email"] == student.email


def test_second_scan_is_already_marked(client, codec, auth, student, live_session):
    payload = codec.issue(live_session.id, live_session.qr_secret)
    assert _scan(client, auth, student, payload).status_code == 200
    r = _scan(client, auth, student, payload)
    assert r.status_code == 409
    assert r.json()["detail"]["code"] == "ALREADY_MARKED"


def test_not_enrolled(client, codec, auth, outsider, live_session):
    r = _scan(client, auth, outsider, codec.issue(live_session.id, live_session.qr_secret))
    assert r.status_code == 403
    assert r.json()["detail"]["code"] == "NOT_ENROLLED"


def test_inactive_enrollment_is_not_enrolled(client, db, codec, auth, student, course, live_session):
    enr = db.query(Enrollment).filter_by(student_id=student.id, course_id=course.id).one()
    enr.active = False
    db.commit()
    r = _scan(client, auth, student, codec.issue(live_session.id, live_session.qr_secret))
    assert r.status_code == 403


def test_tampered_payload_is_invalid(client, codec, auth, student, live_session):
    nonce, ct, tag = codec.issue(live_session.id, live_session.qr_secret).split(".")
    r = _scan(client, auth, student, ".".join((nonce, ct[::-1], tag)))
    assert r.status_code == 400
    assert r.json()["detail"] == {"code": "INVALID_QR", "message": "invalid or expired code"}


def test_stale_payload_is_expired(client, codec, auth, student, live_session):
    payload = codec.issue(live_session.id, live_session.qr_secret, utcnow() - dt.timedelta(minutes=1))
    r = _scan(client, auth, student, payload)
    assert r.status_code == 400
    assert r.json()["detail"] == {"code": "QR_EXPIRED", "message": "code expired, scan again"}


def test_payload_signed_with_wrong_secret_is_invalid(client, codec, auth, student, live_session):
    payload = codec.issue(live_session.id, codec.new_secret())
    r = _scan(client, auth, student, payload)
    assert r.status_code == 400
    assert r.json()["detail"]["code"] == "INVALID_QR"


def test_ended_session_is_invalid(client, db, codec, auth, student, live_session):
    payload = codec.issue(live_session.id, live_session.qr_secret)
    class_session_crud.end(db, live_session)
    r = _scan(client, auth, student, payload)
    assert r.status_code == 400
    assert r.json()["detail"]["code"] == "INVALID_QR"


def test_too_far_from_classroom(client, codec, auth, student, live_session):
    r = _scan(client, auth, student, codec.issue(live_session.id, live_session.qr_secret), **FAR)
    assert r.status_code == 400
    assert r.json()["detail"]["code"] == "TOO_FAR"


def test_professor_cannot_scan(client, codec, auth, professor, live_session):
    r = _scan(client, auth, professor, codec.issue(live_session.id, live_session.qr_secret))
    assert r.status_code == 403


def test_history_lists_own_records(client, codec, auth, student, course, live_session):
    _scan(client, auth, student, codec.issue(live_session.id, live_session.qr_secret))
    rows = client.get("/api/v1/attendance/me", headers=auth(student)).json()
    assert len(rows) == 1
    assert rows[0]["course_code"] == course.code
    assert rows[0]["session_id"] == live_session.id


# ---------------------------------------------------------------- service level

def test_late_after_threshold(db, codec, professor, student, course):
    now = utcnow()
    cs = class_session_crud.start(db, codec, course=course, professor=professor, now=now - dt.timedelta(minutes=20))
    outcome = record_scan(db, codec, student, codec.issue(cs.id, cs.qr_secret, now), now=now)
    assert outcome.record.status == AttendanceStatus.late
    assert outcome.minutes_late == 20


def test_location_required_when_configured(db, codec, professor, student, course):
    cs = class_session_crud.start(db, codec, course=course, professor=professor)
    cfg = Settings(REQUIRE_GEOLOCATION=True)
    with pytest.raises(AttendanceError) as exc:
        record_scan(db, codec, student, codec.issue(cs.id, cs.qr_secret), cfg=cfg)
    assert exc.value.code == "LOCATION_REQUIRED"


def test_session_without_coordinates_skips_geofence(db, codec, professor, student, course):
    course.latitude = course.longitude = None
    db.commit()
    cs = class_session_crud.start(db, codec, course=course, professor=professor)
    outcome = record_scan(db, codec, student, codec.issue(cs.id, cs.qr_secret), **FAR)
    assert outcome.record.status == AttendanceStatus.present


def test_envelope_for_one_session_cannot_mark_another(db, codec, professor, student, course):
    a = class_session_crud.start(db, codec, course=course, professor=professor)
    b = class_session_crud.start(db, codec, course=course, professor=professor)
    # sid de b, mas código gerado com o segredo de a
    with pytest.raises(AttendanceError) as exc:
        record_scan(db, codec, student, codec.issue(b.id, a.qr_secret))
    assert exc.value.code == "INVALID_QR"


def test_sid_inside_envelope_must_match_resolved_session(db, codec, professor, student, course, monkeypatch):
    a = class_session_crud.start(db, codec, course=course, professor=professor)
    b = class_session_crud.start(db, codec, course=course, professor=professor)
    # lookup devolve a, código válido para a, mas o envelope carrega o sid de b
    monkeypatch.setattr(class_session_crud, "get_active", lambda db, id: a)
    with pytest.raises(AttendanceError) as exc:
        record_scan(db, codec, student, codec.issue(b.id, a.qr_secret))
    assert exc.value.code == "INVALID_QR"
    assert exc.value.reason is VerifyReason.SESSION_ID_MISMATCH
    assert exc.value.message == "invalid or expired code"


def test_session_past_auto_end_rejects_fresh_envelope(db, codec, professor, student, course):
    now = utcnow()
    cs = class_session_crud.start(db, codec, course=course, professor=professor, now=now - dt.timedelta(hours=10))
    cfg = Settings(AUTO_END_SESSIONS=True, AUTO_END_HOURS=4)
    with pytest.raises(AttendanceError) as exc:
        record_scan(db, codec, student, codec.issue(cs.id, cs.qr_secret, now), now=now, cfg=cfg)
    assert exc.value.code == "INVALID_QR"
    db.refresh(cs)
    assert cs.is_active is False
    assert cs.ended_at is not None


def test_old_session_still_accepts_scans_when_auto_end_disabled(db, codec, professor, student, course):
    now = utcnow()
    cs = class_session_crud.start(db, codec, course=course, professor=professor, now=now - dt.timedelta(hours=10))
    cfg = Settings(AUTO_END_SESSIONS=False)
    outcome = record_scan(db, codec, student, codec.issue(cs.id, cs.qr_secret, now), now=now, cfg=cfg)
    assert outcome.record.status == AttendanceStatus.late
