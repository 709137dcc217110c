"""Administrative CRUD for users, catalog, classrooms and certificates.

Every route here sits behind ``require_admin`` at the router level, on top
of the access guard middleware that already covers ``/api/admin``.
"""

from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, Request, Response
from sqlalchemy.orm import Session

from dental_portal.api.deps import get_db, get_settings, require_admin
from dental_portal.api.routes.auth import clear_session_cookie
from dental_portal.core.config import Settings
from dental_portal.core.security import SessionClaim
from dental_portal.schemas.certificates import CertificateCreate, CertificateStatusUpdate
from dental_portal.schemas.classrooms import ClassroomCreate, ClassroomUpdate
from dental_portal.schemas.courses import CourseCreate, CourseUpdate, SpecialtyCreate
from dental_portal.schemas.users import AdminProfileUpdate, AdminUserUpdate
from dental_portal.services import certificate_service, classroom_service, course_service, statistics_service, user_service


router = APIRouter(tags=["admin"], dependencies=[Depends(require_admin)])


def _ok(request: Request, data=None):
    return {"request_id": request.state.request_id, "data": data, "error": None}


# ===== Users =====


@router.get("/admin/users")
def admin_list_users(request: Request, db: Session = Depends(get_db)):
    return _ok(request, user_service.list_users(db))


@router.put("/admin/users/{user_id}")
def admin_update_user(request: Request, user_id: int, payload: AdminUserUpdate, db: Session = Depends(get_db)):
    user = user_service.admin_update_user(db, user_id, name=payload.name, email=payload.email, role=payload.role)
    return _ok(request, user_service.user_out(user))


@router.delete("/admin/users/{user_id}")
def admin_delete_user(request: Request, user_id: int, db: Session = Depends(get_db)):
    user_service.delete_user(db, user_id)
    return _ok(request, {"deleted": True, "id": user_id})


# ===== Own profile =====


@router.get("/admin/profile")
def admin_read_profile(request: Request, claim: SessionClaim = Depends(require_admin), db: Session = Depends(get_db)):
    return _ok(request, user_service.user_out(user_service.get_user(db, claim.id)))


@router.put("/admin/profile")
def admin_write_profile(
    request: Request,
    payload: AdminProfileUpdate,
    claim: SessionClaim = Depends(require_admin),
    db: Session = Depends(get_db),
):
    user = user_service.update_admin_profile(db, claim.id, name=payload.name, password=payload.password)
    return _ok(request, user_service.user_out(user))


# ===== Specialties =====


@router.get("/admin/specialties")
def admin_list_specialties(request: Request, db: Session = Depends(get_db)):
    return _ok(request, course_service.list_specialties(db))


@router.post("/admin/specialties")
def admin_create_specialty(request: Request, payload: SpecialtyCreate, db: Session = Depends(get_db)):
    row = course_service.create_specialty(db, payload.name)
    return _ok(request, {"id": int(row.id), "name": row.name})


# ===== Courses =====


@router.get("/admin/courses")
def admin_list_courses(request: Request, db: Session = Depends(get_db)):
    return _ok(request, course_service.list_courses(db))


@router.get("/admin/courses/search")
def admin_search_courses(request: Request, q: Optional[str] = None, db: Session = Depends(get_db)):
    return _ok(request, course_service.search_courses(db, q or ""))


@router.post("/admin/courses")
def admin_create_course(request: Request, payload: CourseCreate, db: Session = Depends(get_db)):
    row = course_service.create_course(db, payload.model_dump())
    return _ok(request, course_service.get_course_detail(db, row.id))


@router.get("/admin/courses/{course_id}")
def admin_get_course(request: Request, course_id: int, db: Session = Depends(get_db)):
    return _ok(request, course_service.get_course_detail(db, course_id))


@router.put("/admin/courses/{course_id}")
def admin_update_course(request: Request, course_id: int, payload: CourseUpdate, db: Session = Depends(get_db)):
    course_service.update_course(db, course_id, payload.model_dump(exclude_unset=True))
    return _ok(request, course_service.get_course_detail(db, course_id))


@router.delete("/admin/courses/{course_id}")
def admin_delete_course(request: Request, course_id: int, db: Session = Depends(get_db)):
    course_service.delete_course(db, course_id)
    return _ok(request, {"deleted": True, "id": course_id})


# ===== Classrooms =====


@router.get("/admin/classrooms")
def admin_list_classrooms(request: Request, db: Session = Depends(get_db)):
    return _ok(request, classroom_service.list_classrooms(db))


@router.get("/admin/classrooms/course/{course_id}")
def admin_course_classrooms(request: Request, course_id: int, db: Session = Depends(get_db)):
    return _ok(request, classroom_service.list_classrooms(db, course_id=course_id))


@router.post("/admin/classrooms")
def admin_create_classroom(request: Request, payload: ClassroomCreate, db: Session = Depends(get_db)):
    row = classroom_service.create_classroom(db, payload.model_dump())
    return _ok(request, classroom_service.classroom_out(row))


@router.get("/admin/classrooms/{classroom_id}")
def admin_get_classroom(request: Request, classroom_id: int, db: Session = Depends(get_db)):
    return _ok(request, classroom_service.classroom_out(classroom_service.get_classroom(db, classroom_id)))


@router.put("/admin/classrooms/{classroom_id}")
def admin_update_classroom(request: Request, classroom_id: int, payload: ClassroomUpdate, db: Session = Depends(get_db)):
    row = classroom_service.update_classroom(db, classroom_id, payload.model_dump(exclude_unset=True))
    return _ok(request, classroom_service.classroom_out(row))


@router.delete("/admin/classrooms/{classroom_id}")
def admin_delete_classroom(request: Request, classroom_id: int, db: Session = Depends(get_db)):
    classroom_service.delete_classroom(db, classroom_id)
    return _ok(request, {"deleted": True, "id": classroom_id})


# ===== Certificates =====


@router.get("/admin/certificates")
def admin_list_certificates(request: Request, db: Session = Depends(get_db)):
    return _ok(request, certificate_service.list_certificates(db))


@router.post("/admin/certificates")
def admin_create_certificate(request: Request, payload: CertificateCreate, db: Session = Depends(get_db)):
    row = certificate_service.create_certificate(
        db, user_id=payload.user_id, course_id=payload.course_id, status=payload.status
    )
    return _ok(request, certificate_service.get_certificate(db, row.id))


@router.get("/admin/certificates/{certificate_id}")
def admin_get_certificate(request: Request, certificate_id: int, db: Session = Depends(get_db)):
    return _ok(request, certificate_service.get_certificate(db, certificate_id))


@router.put("/admin/certificates/{certificate_id}")
def admin_update_certificate(
    request: Request,
    certificate_id: int,
    payload: CertificateStatusUpdate,
    db: Session = Depends(get_db),
):
    certificate_service.update_certificate_status(db, certificate_id, status=payload.status, issued_at=payload.issued_at)
    return _ok(request, certificate_service.get_certificate(db, certificate_id))


@router.delete("/admin/certificates/{certificate_id}")
def admin_delete_certificate(request: Request, certificate_id: int, db: Session = Depends(get_db)):
    certificate_service.delete_certificate(db, certificate_id)
    return _ok(request, {"deleted": True, "id": certificate_id})


# ===== Statistics / session =====


@router.get("/admin/statistics")
def admin_statistics(request: Request, db: Session = Depends(get_db)):
    return _ok(request, statistics_service.collect_statistics(db))


@router.post("/admin/logout")
def admin_logout(request: Request, response: Response, settings: Settings = Depends(get_settings)):
    clear_session_cookie(response, settings=settings)
    return _ok(request, {"success": True})
