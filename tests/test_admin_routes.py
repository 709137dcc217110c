from datetime import timedelta

import pytest

from dental_portal.models.certificate import Certificate, CertificateStatus
from dental_portal.models.classroom import Classroom
from dental_portal.models.course import Course
from dental_portal.models.user import Role, User


@pytest.fixture
def admin_headers(make_user, auth_headers):
    return auth_headers(make_user(Role.admin, email="admin@example.com"))


def test_user_update_and_delete(client, db, make_user, make_course, make_certificate, admin_headers):
    user = make_user(email="c1@example.com")
    make_user(email="taken@example.com")
    make_certificate(user, make_course())

    res = client.put(f"/api/admin/users/{user.id}", headers=admin_headers, json={"name": "Renamed", "role": "admin"})
    assert res.status_code == 200
    assert res.json()["data"]["name"] == "Renamed"
    assert res.json()["data"]["role"] == "admin"

    clash = client.put(f"/api/admin/users/{user.id}", headers=admin_headers, json={"email": "taken@example.com"})
    assert clash.status_code == 409

    bad_role = client.put(f"/api/admin/users/{user.id}", headers=admin_headers, json={"role": "superuser"})
    assert bad_role.status_code == 422

    assert client.delete(f"/api/admin/users/{user.id}", headers=admin_headers).status_code == 200
    assert db.query(Certificate).filter(Certificate.user_id == user.id).count() == 0
    assert client.delete(f"/api/admin/users/{user.id}", headers=admin_headers).status_code == 404


def test_admin_profile(client, admin_headers):
    res = client.put("/api/admin/profile", headers=admin_headers, json={"name": "Head Admin", "password": "brand-new"})
    assert res.status_code == 200

    profile = client.get("/api/admin/profile", headers=admin_headers).json()["data"]
    assert profile["name"] == "Head Admin"

    login = client.post("/api/auth/login", json={"email": "admin@example.com", "password": "brand-new"})
    assert login.status_code == 200


def test_specialties(client, admin_headers):
    for name in ("Orthodontics", "Endodontics"):
        assert client.post("/api/admin/specialties", headers=admin_headers, json={"name": name}).status_code == 200

    dup = client.post("/api/admin/specialties", headers=admin_headers, json={"name": "orthodontics"})
    assert dup.status_code == 409

    names = [s["name"] for s in client.get("/api/admin/specialties", headers=admin_headers).json()["data"]]
    assert names == ["Endodontics", "Orthodontics"]


def test_course_lifecycle(client, db, make_user, make_classroom, make_certificate, admin_headers):
    spec = client.post("/api/admin/specialties", headers=admin_headers, json={"name": "Implantology"}).json()["data"]

    created = client.post(
        "/api/admin/courses",
        headers=admin_headers,
        json={"title": "Zygomatic Implants", "author": "Dr Lee", "category": "Surgery", "specialty_id": spec["id"]},
    )
    assert created.status_code == 200
    course = created.json()["data"]
    assert course["specialty_name"] == "Implantology"
    assert course["classroom_count"] == 0

    missing_specialty = client.post("/api/admin/courses", headers=admin_headers, json={"title": "X", "specialty_id": 999})
    assert missing_specialty.status_code == 404

    updated = client.put(f"/api/admin/courses/{course['id']}", headers=admin_headers, json={"category": "Implants"})
    assert updated.json()["data"]["category"] == "Implants"
    assert updated.json()["data"]["title"] == "Zygomatic Implants"

    hits = client.get("/api/admin/courses/search", headers=admin_headers, params={"q": "implant"}).json()["data"]
    assert [c["id"] for c in hits] == [course["id"]]
    assert client.get("/api/admin/courses/search", headers=admin_headers, params={"q": "  "}).json()["data"] == []

    row = db.get(Course, course["id"])
    make_classroom(row)
    make_certificate(make_user(), row)
    assert client.get(f"/api/admin/courses/{course['id']}", headers=admin_headers).json()["data"]["classroom_count"] == 1

    assert client.delete(f"/api/admin/courses/{course['id']}", headers=admin_headers).status_code == 200
    assert db.query(Classroom).count() == 0
    assert db.query(Certificate).count() == 0
    assert client.get(f"/api/admin/courses/{course['id']}", headers=admin_headers).status_code == 404


def test_search_is_capped_at_ten(client, make_course, admin_headers):
    for i in range(12):
        make_course(f"Perio module {i}")
    hits = client.get("/api/admin/courses/search", headers=admin_headers, params={"q": "perio"}).json()["data"]
    assert len(hits) == 10


def test_classroom_crud(client, make_course, admin_headers):
    course = make_course("Prosthodontics")

    created = client.post(
        "/api/admin/classrooms",
        headers=admin_headers,
        json={
            "course_id": course.id,
            "title": "Crowns",
            "published_date": "2020-01-01T00:00:00Z",
            "assessment_link": "https://quiz/crowns",
            "ce_credits": 2,
        },
    )
    assert created.status_code == 200
    room = created.json()["data"]
    assert room["status"] == "active"
    assert room["assessment_links"] == ["https://quiz/crowns"]

    bad_dates = client.post(
        "/api/admin/classrooms",
        headers=admin_headers,
        json={"course_id": course.id, "title": "Bad", "published_date": "2020-02-01T00:00:00Z", "expiration_date": "2020-01-01T00:00:00Z"},
    )
    assert bad_dates.status_code == 422

    updated = client.put(
        f"/api/admin/classrooms/{room['id']}",
        headers=admin_headers,
        json={"expiration_date": "2021-01-01T00:00:00Z", "discussion_enabled": False},
    )
    assert updated.json()["data"]["status"] == "expired"
    assert updated.json()["data"]["discussion_enabled"] is False

    listed = client.get("/api/admin/classrooms", headers=admin_headers).json()["data"]
    assert [(r["title"], r["course_title"]) for r in listed] == [("Crowns", "Prosthodontics")]
    by_course = client.get(f"/api/admin/classrooms/course/{course.id}", headers=admin_headers).json()["data"]
    assert [r["id"] for r in by_course] == [room["id"]]

    assert client.get(f"/api/admin/classrooms/{room['id']}", headers=admin_headers).status_code == 200
    assert client.delete(f"/api/admin/classrooms/{room['id']}", headers=admin_headers).status_code == 200
    assert client.get(f"/api/admin/classrooms/{room['id']}", headers=admin_headers).status_code == 404


def test_classroom_for_missing_course(client, admin_headers):
    res = client.post("/api/admin/classrooms", headers=admin_headers, json={"course_id": 999, "title": "Orphan"})
    assert res.status_code == 404


def test_certificate_admin_flow(client, make_user, make_course, admin_headers):
    user = make_user(name="Ana")
    course = make_course("Sedation")

    created = client.post(
        "/api/admin/certificates",
        headers=admin_headers,
        json={"user_id": user.id, "course_id": course.id, "status": "pending"},
    )
    assert created.status_code == 200
    cert = created.json()["data"]
    assert cert["status"] == "pending"
    assert cert["username"] == "Ana"

    dup = client.post("/api/admin/certificates", headers=admin_headers, json={"user_id": user.id, "course_id": course.id})
    assert dup.status_code == 409

    approved = client.put(
        f"/api/admin/certificates/{cert['id']}",
        headers=admin_headers,
        json={"status": "approved", "issued_at": "2024-01-01T00:00:00Z"},
    )
    assert approved.status_code == 200
    assert approved.json()["data"]["issued_at"] == "2024-01-01T00:00:00+00:00"

    bad_date = client.put(
        f"/api/admin/certificates/{cert['id']}",
        headers=admin_headers,
        json={"status": "approved", "issued_at": "yesterday-ish"},
    )
    assert bad_date.status_code == 400
    assert bad_date.json()["error"]["message"] == "Invalid date format"

    bad_status = client.put(f"/api/admin/certificates/{cert['id']}", headers=admin_headers, json={"status": "void"})
    assert bad_status.status_code == 400
    assert bad_status.json()["error"]["message"] == "Valid status is required"

    reverted = client.put(f"/api/admin/certificates/{cert['id']}", headers=admin_headers, json={"status": "pending"})
    assert reverted.json()["data"] == {**cert, "status": "pending", "issued_at": None}

    listed = client.get("/api/admin/certificates", headers=admin_headers).json()["data"]
    assert [c["id"] for c in listed] == [cert["id"]]

    assert client.delete(f"/api/admin/certificates/{cert['id']}", headers=admin_headers).status_code == 200
    assert client.get(f"/api/admin/certificates/{cert['id']}", headers=admin_headers).status_code == 404


def test_statistics(client, make_user, make_course, make_classroom, make_certificate, admin_headers):
    a = make_course("A", author="Dr Lee", category="Surgery")
    b = make_course("B", author="Dr Lee", category="Ortho")
    make_course("C", author="Dr Kim", category="Surgery")
    make_classroom(a, assessment_link="https://quiz")
    make_classroom(a, published_in=timedelta(days=3), discussion_enabled=False)
    make_classroom(b, published_in=timedelta(days=-10), expires_in=timedelta(days=-1))
    user = make_user()
    make_certificate(user, a, status=CertificateStatus.approved)
    make_certificate(user, b)

    stats = client.get("/api/admin/statistics", headers=admin_headers).json()["data"]

    assert stats["total_courses"] == 3
    assert stats["total_categories"] == 2
    assert stats["total_authors"] == 2
    assert stats["total_classrooms"] == 3
    assert stats["courses_with_classrooms"] == 2
    assert stats["classrooms"] == {
        "active": 1,
        "expired": 1,
        "upcoming": 1,
        "discussion_enabled": 2,
        "with_assessment": 1,
    }
    assert stats["certificates"] == {"pending": 1, "approved": 1}
    assert stats["last_updated"]


def test_admin_logout_clears_cookie(client, admin_headers):
    res = client.post("/api/admin/logout", headers=admin_headers)
    assert res.status_code == 200
    assert "Max-Age=0" in res.headers["set-cookie"]


def test_user_email_cannot_be_blanked(client, db, make_user, admin_headers):
    user = make_user(email="keep@example.com")

    res = client.put(f"/api/admin/users/{user.id}", headers=admin_headers, json={"email": "   "})

    assert res.status_code == 400
    assert res.json()["error"] == {"code": "INVALID_INPUT", "message": "Email is required"}
    db.expire_all()
    assert db.get(User, user.id).email == "keep@example.com"


def test_classroom_update_rejects_expiry_before_publish(client, make_course, admin_headers):
    course = make_course()
    room = client.post(
        "/api/admin/classrooms",
        headers=admin_headers,
        json={"course_id": course.id, "title": "Veneers", "published_date": "2030-06-01T00:00:00Z"},
    ).json()["data"]

    res = client.put(
        f"/api/admin/classrooms/{room['id']}",
        headers=admin_headers,
        json={"expiration_date": "2030-01-01T00:00:00Z"},
    )

    assert res.status_code == 400
    assert res.json()["error"]["code"] == "INVALID_INPUT"
    stored = client.get(f"/api/admin/classrooms/{room['id']}", headers=admin_headers).json()["data"]
    assert stored["expiration_date"] is None
