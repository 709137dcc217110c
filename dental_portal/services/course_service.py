from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

from sqlalchemy import func, or_
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from dental_portal.core.exceptions import ConflictError, InvalidInputError, NotFoundError
from dental_portal.core.timeutils import isoformat, utcnow
from dental_portal.models.certificate import Certificate
from dental_portal.models.classroom import Classroom
from dental_portal.models.course import Course
from dental_portal.models.specialty import Specialty
from dental_portal.services.classroom_service import classroom_out

logger = logging.getLogger(__name__)

EDITABLE_FIELDS = (
    "title",
    "author",
    "author_description",
    "cover_image",
    "overview",
    "description",
    "category",
    "specialty_id",
)

SEARCH_LIMIT = 10


def course_out(c: Course, *, specialty_name: Optional[str] = None) -> Dict[str, Any]:
    return {
        "id": int(c.id),
        "title": c.title,
        "author": c.author,
        "author_description": c.author_description,
        "cover_image": c.cover_image,
        "overview": c.overview,
        "description": c.description,
        "category": c.category,
        "specialty_id": int(c.specialty_id) if c.specialty_id is not None else None,
        "specialty_name": specialty_name,
        "created_at": isoformat(c.created_at),
        "updated_at": isoformat(c.updated_at),
    }


def _base_query(db: Session):
    return db.query(Course, Specialty.name).outerjoin(Specialty, Course.specialty_id == Specialty.id)


def list_courses(db: Session, *, q: Optional[str] = None, limit: Optional[int] = None) -> List[Dict[str, Any]]:
    query = _base_query(db)
    term = (q or "").strip()
    if term:
        like = f"%{term}%"
        query = query.filter(
            or_(
                Course.title.ilike(like),
                Course.author.ilike(like),
                Course.category.ilike(like),
                Course.overview.ilike(like),
                Course.description.ilike(like),
                Specialty.name.ilike(like),
            )
        )
    query = query.order_by(Course.id.desc())
    if limit:
        query = query.limit(int(limit))
    return [course_out(c, specialty_name=name) for c, name in query.all()]


def search_courses(db: Session, q: str) -> List[Dict[str, Any]]:
    if not (q or "").strip():
        return []
    return list_courses(db, q=q, limit=SEARCH_LIMIT)


def get_course(db: Session, course_id: int) -> Course:
    row = db.query(Course).filter(Course.id == int(course_id)).first()
    if not row:
        raise NotFoundError("Course", course_id)
    return row


def get_course_detail(db: Session, course_id: int, *, with_classrooms: bool = False) -> Dict[str, Any]:
    row = _base_query(db).filter(Course.id == int(course_id)).first()
    if not row:
        raise NotFoundError("Course", course_id)
    course, specialty_name = row
    out = course_out(course, specialty_name=specialty_name)

    classrooms = (
        db.query(Classroom)
        .filter(Classroom.course_id == int(course.id))
        .order_by(Classroom.created_at.asc(), Classroom.id.asc())
        .all()
    )
    out["classroom_count"] = len(classrooms)
    if with_classrooms:
        now = utcnow()
        out["classrooms"] = [classroom_out(c, course_title=course.title, now=now) for c in classrooms]
    return out


def _check_specialty(db: Session, specialty_id: Optional[int]) -> None:
    if specialty_id is None:
        return
    if not db.query(Specialty).filter(Specialty.id == int(specialty_id)).first():
        raise NotFoundError("Specialty", specialty_id)


def create_course(db: Session, data: Dict[str, Any]) -> Course:
    if not (data.get("title") or "").strip():
        raise InvalidInputError("Title is required")
    _check_specialty(db, data.get("specialty_id"))
    row = Course(**{k: v for k, v in data.items() if k in EDITABLE_FIELDS})
    db.add(row)
    db.commit()
    db.refresh(row)
    logger.info("Created course id=%s", row.id)
    return row


def update_course(db: Session, course_id: int, data: Dict[str, Any]) -> Course:
    row = get_course(db, course_id)
    if "specialty_id" in data:
        _check_specialty(db, data["specialty_id"])
    for field, value in data.items():
        if field not in EDITABLE_FIELDS:
            continue
        if field == "title" and not (value or "").strip():
            continue
        setattr(row, field, value)
    db.commit()
    db.refresh(row)
    return row


def delete_course(db: Session, course_id: int) -> None:
    row = get_course(db, course_id)
    db.query(Classroom).filter(Classroom.course_id == int(row.id)).delete(synchronize_session=False)
    db.query(Certificate).filter(Certificate.course_id == int(row.id)).delete(synchronize_session=False)
    db.delete(row)
    db.commit()
    logger.info("Deleted course id=%s with its classrooms and certificates", course_id)


def list_specialties(db: Session) -> List[Dict[str, Any]]:
    rows = db.query(Specialty).order_by(Specialty.name.asc()).all()
    return [{"id": int(s.id), "name": s.name} for s in rows]


def create_specialty(db: Session, name: str) -> Specialty:
    name = (name or "").strip()
    if not name:
        raise InvalidInputError("Name is required")
    if db.query(Specialty).filter(func.lower(Specialty.name) == name.lower()).first():
        raise ConflictError("Specialty already exists")
    row = Specialty(name=name)
    db.add(row)
    try:
        db.commit()
    except IntegrityError as exc:
        db.rollback()
        raise ConflictError("Specialty already exists") from exc
    db.refresh(row)
    return row
