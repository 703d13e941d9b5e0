from app.core.security_password import verify_and_maybe_upgrade
from app.core.timeutil import utcnow
from app.crud.class_session import class_session_crud
from app.models.attendance import AttendanceRecord
from app.models.course import Course
from app.models.enrollment import Enrollment
from app.models.user import User


def _create_user(client, auth, admin, **body):
    payload = {"name": "Carla", "email": "carla@uni.edu", "password": "carla-pass-1", "role": "student"}
    payload.update(body)
    return client.post("/api/v1/admin/users/", json=payload, headers=auth(admin))


# ---------------------------------------------------------------------- users

def test_admin_creates_user_with_hashed_password(client, db, auth, admin):
    r = _create_user(client, auth, admin, email="Carla@Uni.EDU")
    assert r.status_code == 201, r.text
    body = r.json()
    assert body["email"] == "carla@uni.edu"
    assert body["role"] == "student"
    assert "password" not in body and "hashed_password" not in body

    u = db.get(User, body["id"])
    ok, _ = verify_and_maybe_upgrade("carla-pass-1", u.hashed_password)
    assert ok


def test_new_user_can_log_in(client, auth, admin):
    _create_user(client, auth, admin, role="professor")
    r = client.post("/api/v1/auth/login", json={"email": "carla@uni.edu", "password": "carla-pass-1"})
    assert r.status_code == 200
    assert r.json()["user"]["role"] == "professor"


def test_duplicate_email_is_conflict(client, auth, admin, student):
    r = _create_user(client, auth, admin, email=student.email)
    assert r.status_code == 409


def test_create_user_validates_body(client, auth, admin):
    assert _create_user(client, auth, admin, password="short").status_code == 422
    assert _create_user(client, auth, admin, email="not-an-email").status_code == 422
    assert _create_user(client, auth, admin, role="janitor").status_code == 422


def test_user_admin_requires_admin_role(client, auth, professor, student):
    assert _create_user(client, auth, professor).status_code == 403
    assert client.get("/api/v1/admin/users/", headers=auth(student)).status_code == 403
    assert client.get("/api/v1/admin/users/").status_code == 401


def test_list_and_filter_users(client, auth, admin, professor, student, outsider):
    r = client.get("/api/v1/admin/users/", headers=auth(admin))
    assert {u["email"] for u in r.json()} == {admin.email, professor.email, student.email, outsider.email}

    r = client.get("/api/v1/admin/users/", params={"role": "student"}, headers=auth(admin))
    assert {u["id"] for u in r.json()} == {student.id, outsider.id}

    r = client.get("/api/v1/admin/users/", params={"q": "ANA"}, headers=auth(admin))
    assert [u["id"] for u in r.json()] == [student.id]


def test_get_user(client, auth, admin, student):
    r = client.get(f"/api/v1/admin/users/{student.id}", headers=auth(admin))
    assert r.status_code == 200
    assert r.json()["email"] == student.email
    assert client.get("/api/v1/admin/users/9999", headers=auth(admin)).status_code == 404


def test_patch_user(client, db, auth, admin, student, outsider):
    r = client.patch(f"/api/v1/admin/users/{student.id}",
                     json={"name": "Ana Maria", "role": "professor", "password": "new-pass-123"},
                     headers=auth(admin))
    assert r.status_code == 200
    assert r.json()["name"] == "Ana Maria"
    assert r.json()["role"] == "professor"
    db.refresh(student)
    assert verify_and_maybe_upgrade("new-pass-123", student.hashed_password)[0]

    r = client.patch(f"/api/v1/admin/users/{student.id}", json={"email": outsider.email}, headers=auth(admin))
    assert r.status_code == 409
    # o próprio e-mail não conflita
    r = client.patch(f"/api/v1/admin/users/{student.id}", json={"email": student.email}, headers=auth(admin))
    assert r.status_code == 200


def test_delete_student_removes_enrollments_and_records(client, db, codec, auth, admin, professor, student, course):
    cs = class_session_crud.start(db, codec, course=course, professor=professor)
    db.add(AttendanceRecord(session_id=cs.id, student_id=student.id, marked_at=utcnow()))
    db.commit()
    student_id = student.id

    r = client.delete(f"/api/v1/admin/users/{student_id}", headers=auth(admin))
    assert r.status_code == 204
    db.expire_all()
    assert db.get(User, student_id) is None
    assert db.query(Enrollment).filter_by(student_id=student_id).count() == 0
    assert db.query(AttendanceRecord).filter_by(student_id=student_id).count() == 0


def test_delete_guards(client, auth, admin, professor, course):
    assert client.delete(f"/api/v1/admin/users/{admin.id}", headers=auth(admin)).status_code == 400
    assert client.delete(f"/api/v1/admin/users/{professor.id}", headers=auth(admin)).status_code == 409
    assert client.delete("/api/v1/admin/users/9999", headers=auth(admin)).status_code == 404


# -------------------------------------------------------------------- courses

def test_admin_creates_course(client, auth, admin, professor):
    r = client.post("/api/v1/admin/courses/", headers=auth(admin), json={
        "name": "Sistemas Operacionais", "code": "SO-201", "professor_id": professor.id,
        "location": "Sala 12", "latitude": -12.05, "longitude": -77.04,
    })
    assert r.status_code == 201, r.text
    assert r.json()["code"] == "SO-201"
    assert r.json()["professor_id"] == professor.id


def test_course_professor_must_be_a_professor(client, auth, admin, student):
    r = client.post("/api/v1/admin/courses/", headers=auth(admin),
                    json={"name": "X", "code": "X-1", "professor_id": student.id})
    assert r.status_code == 422


def test_course_code_is_unique(client, auth, admin, professor, course):
    r = client.post("/api/v1/admin/courses/", headers=auth(admin),
                    json={"name": "Outra", "code": course.code, "professor_id": professor.id})
    assert r.status_code == 409


def test_course_admin_requires_admin_role(client, auth, professor, course):
    assert client.get("/api/v1/admin/courses/", headers=auth(professor)).status_code == 403
    r = client.patch(f"/api/v1/admin/courses/{course.id}", json={"name": "Y"}, headers=auth(professor))
    assert r.status_code == 403


def test_patch_course_reassigns_professor(client, auth, admin, other_professor, course):
    r = client.patch(f"/api/v1/admin/courses/{course.id}",
                     json={"professor_id": other_professor.id, "location": "Lab 3"}, headers=auth(admin))
    assert r.status_code == 200
    assert r.json()["professor_id"] == other_professor.id
    assert r.json()["location"] == "Lab 3"
    assert r.json()["name"] == course.name

    r = client.patch("/api/v1/admin/courses/9999", json={"name": "Y"}, headers=auth(admin))
    assert r.status_code == 404


def test_delete_course_cascades_sessions(client, db, codec, auth, admin, professor, course):
    cs = class_session_crud.start(db, codec, course=course, professor=professor)
    course_id, session_id = course.id, cs.id
    assert client.delete(f"/api/v1/admin/courses/{course_id}", headers=auth(admin)).status_code == 204
    db.expire_all()
    assert db.get(Course, course_id) is None
    assert class_session_crud.get(db, session_id) is None
    assert db.query(Enrollment).filter_by(course_id=course_id).count() == 0


# ---------------------------------------------------------------- enrollments

def test_list_enrollments(client, auth, admin, student, course):
    r = client.get(f"/api/v1/admin/courses/{course.id}/enrollments", headers=auth(admin))
    assert r.status_code == 200
    assert [(e["student_id"], e["active"]) for e in r.json()] == [(student.id, True)]


def test_put_enrollments_replaces_the_list(client, db, auth, admin, student, outsider, course):
    url = f"/api/v1/admin/courses/{course.id}/enrollments"
    r = client.put(url, json={"student_ids": [outsider.id, outsider.id]}, headers=auth(admin))
    assert r.status_code == 200, r.text
    assert [e["student_id"] for e in r.json()] == [outsider.id]

    r = client.put(url, json={"student_ids": [student.id, outsider.id]}, headers=auth(admin))
    assert sorted(e["student_id"] for e in r.json()) == sorted([student.id, outsider.id])

    r = client.put(url, json={"student_ids": []}, headers=auth(admin))
    assert r.json() == []
    assert db.query(Enrollment).filter_by(course_id=course.id).count() == 0


def test_put_enrollments_reactivates_inactive_row(client, db, auth, admin, student, course):
    enr = db.query(Enrollment).filter_by(student_id=student.id, course_id=course.id).one()
    enr.active = False
    db.commit()
    r = client.put(f"/api/v1/admin/courses/{course.id}/enrollments",
                   json={"student_ids": [student.id]}, headers=auth(admin))
    assert [(e["student_id"], e["active"]) for e in r.json()] == [(student.id, True)]


def test_put_enrollments_rejects_non_students(client, auth, admin, professor, student, course):
    r = client.put(f"/api/v1/admin/courses/{course.id}/enrollments",
                   json={"student_ids": [student.id, professor.id, 9999]}, headers=auth(admin))
    assert r.status_code == 422
    assert r.json()["detail"]["student_ids"] == sorted([professor.id, 9999])
