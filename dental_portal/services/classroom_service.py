from __future__ import annotations

import logging
from datetime import datetime
from typing import Any, Dict, List, Optional

from sqlalchemy.orm import Session

from dental_portal.core.exceptions import InvalidInputError, NotFoundError
from dental_portal.core.timeutils import as_utc, isoformat, utcnow
from dental_portal.models.classroom import Classroom, ClassroomStatus
from dental_portal.models.course import Course

logger = logging.getLogger(__name__)

# Fields an admin may set on create/update
EDITABLE_FIELDS = (
    "course_id",
    "title",
    "speaker",
    "video_url",
    "description",
    "author_description",
    "learning_objectives",
    "published_date",
    "expiration_date",
    "discussion_enabled",
    "assessment_link",
    "assessment_link_2",
    "assessment_link_3",
    "ce_credits",
)


def classroom_status(
    published_date: Optional[datetime],
    expiration_date: Optional[datetime],
    now: Optional[datetime] = None,
) -> ClassroomStatus:
    """Lifecycle status of a classroom at ``now``.

    Expiration is checked first, so a classroom whose publish and expiry
    dates are both in the past is ``expired``.
    """
    now = as_utc(now) or utcnow()
    expires = as_utc(expiration_date)
    if expires is not None and expires < now:
        return ClassroomStatus.expired
    published = as_utc(published_date)
    if published is not None and published <= now:
        return ClassroomStatus.active
    return ClassroomStatus.upcoming


def classroom_out(c: Classroom, *, course_title: Optional[str] = None, now: Optional[datetime] = None) -> Dict[str, Any]:
    return {
        "id": int(c.id),
        "course_id": int(c.course_id),
        "course_title": course_title,
        "title": c.title,
        "speaker": c.speaker,
        "video_url": c.video_url,
        "description": c.description,
        "author_description": c.author_description,
        "learning_objectives": c.learning_objectives,
        "published_date": isoformat(c.published_date),
        "expiration_date": isoformat(c.expiration_date),
        "discussion_enabled": bool(c.discussion_enabled),
        "assessment_links": [link for link in (c.assessment_link, c.assessment_link_2, c.assessment_link_3) if link],
        "ce_credits": float(c.ce_credits) if c.ce_credits is not None else None,
        "status": classroom_status(c.published_date, c.expiration_date, now).value,
        "created_at": isoformat(c.created_at),
        "updated_at": isoformat(c.updated_at),
    }


def _require_course(db: Session, course_id: int) -> Course:
    course = db.query(Course).filter(Course.id == int(course_id)).first()
    if not course:
        raise NotFoundError("Course", course_id)
    return course


def list_classrooms(db: Session, *, course_id: Optional[int] = None) -> List[Dict[str, Any]]:
    q = db.query(Classroom, Course.title).join(Course, Classroom.course_id == Course.id)
    if course_id is not None:
        _require_course(db, course_id)
        q = q.filter(Classroom.course_id == int(course_id)).order_by(Classroom.created_at.asc(), Classroom.id.asc())
    else:
        q = q.order_by(Classroom.created_at.desc(), Classroom.id.desc())
    now = utcnow()
    return [classroom_out(c, course_title=title, now=now) for c, title in q.all()]


def get_classroom(db: Session, classroom_id: int) -> Classroom:
    row = db.query(Classroom).filter(Classroom.id == int(classroom_id)).first()
    if not row:
        raise NotFoundError("Classroom", classroom_id)
    return row


def _clean(data: Dict[str, Any]) -> Dict[str, Any]:
    out = {k: v for k, v in data.items() if k in EDITABLE_FIELDS}
    # stored as UTC so SQL comparisons against now() line up
    for field in ("published_date", "expiration_date"):
        if out.get(field) is not None:
            out[field] = as_utc(out[field])
    return out


def _check_date_order(published: Optional[datetime], expires: Optional[datetime]) -> None:
    if published is not None and expires is not None and expires < published:
        raise InvalidInputError("Expiration date must not be before published date")


def create_classroom(db: Session, data: Dict[str, Any]) -> Classroom:
    _require_course(db, data["course_id"])
    cleaned = _clean(data)
    _check_date_order(cleaned.get("published_date"), cleaned.get("expiration_date"))
    row = Classroom(**cleaned)
    db.add(row)
    db.commit()
    db.refresh(row)
    logger.info("Created classroom id=%s course_id=%s", row.id, row.course_id)
    return row


def update_classroom(db: Session, classroom_id: int, data: Dict[str, Any]) -> Classroom:
    row = get_classroom(db, classroom_id)
    if "course_id" in data and data["course_id"] is not None:
        _require_course(db, data["course_id"])
    # required columns are only ever replaced, never cleared
    changes = {
        field: value
        for field, value in _clean(data).items()
        if not (field in ("course_id", "title", "discussion_enabled") and value is None)
    }
    published = changes["published_date"] if "published_date" in changes else as_utc(row.published_date)
    expires = changes["expiration_date"] if "expiration_date" in changes else as_utc(row.expiration_date)
    _check_date_order(published, expires)

    for field, value in changes.items():
        setattr(row, field, value)
    db.commit()
    db.refresh(row)
    return row


def delete_classroom(db: Session, classroom_id: int) -> None:
    row = get_classroom(db, classroom_id)
    db.delete(row)
    db.commit()
    logger.info("Deleted classroom id=%s", classroom_id)
