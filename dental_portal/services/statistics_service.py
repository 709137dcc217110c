from __future__ import annotations

from typing import Any, Dict

from sqlalchemy import and_, func, or_
from sqlalchemy.orm import Session

from dental_portal.core.timeutils import utcnow
from dental_portal.models.certificate import Certificate, CertificateStatus
from dental_portal.models.classroom import Classroom
from dental_portal.models.course import Course


def _count(db: Session, *columns, filters=()) -> int:
    q = db.query(*columns)
    for f in filters:
        q = q.filter(f)
    return int(q.scalar() or 0)


def collect_statistics(db: Session) -> Dict[str, Any]:
    now = utcnow()

    active_filter = and_(
        Classroom.published_date.is_not(None),
        Classroom.published_date <= now,
        or_(Classroom.expiration_date.is_(None), Classroom.expiration_date >= now),
    )
    expired_filter = and_(Classroom.expiration_date.is_not(None), Classroom.expiration_date < now)

    total_classrooms = _count(db, func.count(Classroom.id))
    active = _count(db, func.count(Classroom.id), filters=(active_filter,))
    expired = _count(db, func.count(Classroom.id), filters=(expired_filter,))

    return {
        "total_courses": _count(db, func.count(Course.id)),
        "total_categories": _count(
            db, func.count(func.distinct(Course.category)), filters=(Course.category.is_not(None), Course.category != "")
        ),
        "total_authors": _count(
            db, func.count(func.distinct(Course.author)), filters=(Course.author.is_not(None), Course.author != "")
        ),
        "total_classrooms": total_classrooms,
        "courses_with_classrooms": _count(db, func.count(func.distinct(Classroom.course_id))),
        "classrooms": {
            "active": active,
            "expired": expired,
            "upcoming": max(total_classrooms - active - expired, 0),
            "discussion_enabled": _count(db, func.count(Classroom.id), filters=(Classroom.discussion_enabled.is_(True),)),
            "with_assessment": _count(
                db,
                func.count(Classroom.id),
                filters=(Classroom.assessment_link.is_not(None), Classroom.assessment_link != ""),
            ),
        },
        "certificates": {
            status.value: _count(db, func.count(Certificate.id), filters=(Certificate.status == status,))
            for status in CertificateStatus
        },
        "last_updated": now.isoformat(),
    }
