"""Certificate workflow.

A certificate is one row per (user, course) pair with two states:

    pending  --approve-->  approved
    approved --revert--->  pending

Rows are created lazily the first time a user asks for their certificate.
Two first-time requests can race; the unique constraint on
``(user_id, course_id)`` decides the winner and the loser re-reads the row.
"""

from __future__ import annotations

import logging
import re
from datetime import datetime
from typing import Any, Dict, List, Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from dental_portal.core.exceptions import ConflictError, InvalidInputError, NotFoundError
from dental_portal.core.timeutils import as_utc, isoformat, parse_datetime, utcnow
from dental_portal.models.certificate import Certificate, CertificateStatus
from dental_portal.models.course import Course
from dental_portal.models.user import User

logger = logging.getLogger(__name__)


def _find_certificate(db: Session, user_id: int, course_id: int) -> Optional[Certificate]:
    return (
        db.query(Certificate)
        .filter(Certificate.user_id == int(user_id), Certificate.course_id == int(course_id))
        .first()
    )


def _require_certificate(db: Session, certificate_id: int) -> Certificate:
    row = db.query(Certificate).filter(Certificate.id == int(certificate_id)).first()
    if not row:
        raise NotFoundError("Certificate", certificate_id)
    return row


def _require_user(db: Session, user_id: int) -> User:
    user = db.query(User).filter(User.id == int(user_id)).first()
    if not user:
        raise NotFoundError("User", user_id)
    return user


def _require_course(db: Session, course_id: int) -> Course:
    course = db.query(Course).filter(Course.id == int(course_id)).first()
    if not course:
        raise NotFoundError("Course", course_id)
    return course


def get_or_create_certificate(db: Session, *, user_id: int, course_id: int) -> Certificate:
    """Return the pair's certificate, inserting a ``pending`` row if absent."""
    existing = _find_certificate(db, user_id, course_id)
    if existing:
        return existing

    row = Certificate(user_id=int(user_id), course_id=int(course_id), status=CertificateStatus.pending, issued_at=None)
    db.add(row)
    try:
        db.commit()
    except IntegrityError:
        # Lost the race to a concurrent first request for the same pair
        db.rollback()
        winner = _find_certificate(db, user_id, course_id)
        if winner is None:
            raise
        logger.info("Certificate for user_id=%s course_id=%s created concurrently, re-read id=%s", user_id, course_id, winner.id)
        return winner

    db.refresh(row)
    logger.info("Created pending certificate id=%s user_id=%s course_id=%s", row.id, user_id, course_id)
    return row


def request_certificate(db: Session, *, user_id: int, course_id: int) -> Certificate:
    _require_user(db, user_id)
    _require_course(db, course_id)
    return get_or_create_certificate(db, user_id=user_id, course_id=course_id)


def certificate_out(cert: Certificate, user: User, course: Course) -> Dict[str, Any]:
    status = cert.status.value if hasattr(cert.status, "value") else str(cert.status)
    return {
        "id": int(cert.id),
        "user_id": int(cert.user_id),
        "course_id": int(cert.course_id),
        "status": status,
        "issued_at": isoformat(cert.issued_at),
        "username": user.name,
        "email": user.email,
        "course_title": course.title,
    }


def get_certificate_details(db: Session, *, user_id: int, course_id: int) -> Dict[str, Any]:
    """The caller's certificate view for a course, provisioning it on first access."""
    cert = request_certificate(db, user_id=user_id, course_id=course_id)
    return certificate_out(cert, _require_user(db, user_id), _require_course(db, course_id))


def approve_certificate(db: Session, certificate_id: int, issued_at: Any = None) -> Certificate:
    """Mark approved; issued_at resolves to explicit value, then stored value, then now."""
    cert = _require_certificate(db, certificate_id)

    if issued_at is not None and issued_at != "":
        resolved: datetime = parse_datetime(issued_at)
    elif cert.issued_at is not None:
        resolved = as_utc(cert.issued_at)
    else:
        resolved = utcnow()

    cert.status = CertificateStatus.approved
    cert.issued_at = resolved
    db.commit()
    db.refresh(cert)
    logger.info("Approved certificate id=%s issued_at=%s", cert.id, resolved.isoformat())
    return cert


def revert_certificate(db: Session, certificate_id: int) -> Certificate:
    cert = _require_certificate(db, certificate_id)
    cert.status = CertificateStatus.pending
    cert.issued_at = None
    db.commit()
    db.refresh(cert)
    logger.info("Reverted certificate id=%s to pending", cert.id)
    return cert


def update_certificate_status(db: Session, certificate_id: int, *, status: Any, issued_at: Any = None) -> Certificate:
    try:
        target = CertificateStatus(status)
    except ValueError as exc:
        raise InvalidInputError("Valid status is required") from exc

    if target is CertificateStatus.approved:
        return approve_certificate(db, certificate_id, issued_at)
    return revert_certificate(db, certificate_id)


def create_certificate(
    db: Session,
    *,
    user_id: int,
    course_id: int,
    status: Any = CertificateStatus.approved,
) -> Certificate:
    """Admin creation of a certificate for a pair that has none yet."""
    try:
        target = CertificateStatus(status)
    except ValueError as exc:
        raise InvalidInputError("Valid status is required") from exc

    _require_user(db, user_id)
    _require_course(db, course_id)
    if _find_certificate(db, user_id, course_id):
        raise ConflictError("Certificate already exists for this user and course")

    row = Certificate(
        user_id=int(user_id),
        course_id=int(course_id),
        status=target,
        issued_at=utcnow() if target is CertificateStatus.approved else None,
    )
    db.add(row)
    try:
        db.commit()
    except IntegrityError as exc:
        db.rollback()
        raise ConflictError("Certificate already exists for this user and course") from exc
    db.refresh(row)
    logger.info("Admin created certificate id=%s user_id=%s course_id=%s status=%s", row.id, user_id, course_id, target.value)
    return row


def delete_certificate(db: Session, certificate_id: int) -> None:
    cert = _require_certificate(db, certificate_id)
    db.delete(cert)
    db.commit()
    logger.info("Deleted certificate id=%s", certificate_id)


def _joined_query(db: Session):
    return (
        db.query(Certificate, User, Course)
        .join(User, User.id == Certificate.user_id)
        .join(Course, Course.id == Certificate.course_id)
    )


def list_certificates(db: Session) -> List[Dict[str, Any]]:
    rows = _joined_query(db).order_by(Certificate.id.desc()).all()
    return [certificate_out(cert, user, course) for cert, user, course in rows]


def get_certificate(db: Session, certificate_id: int) -> Dict[str, Any]:
    row = _joined_query(db).filter(Certificate.id == int(certificate_id)).first()
    if not row:
        raise NotFoundError("Certificate", certificate_id)
    cert, user, course = row
    return certificate_out(cert, user, course)


def certificate_filename(username: str, course_title: str) -> str:
    title = re.sub(r"\s+", "_", course_title)
    return f"Certificate_{username}_{title}.pdf"


def prepare_download(db: Session, *, user_id: int, course_id: int) -> Dict[str, Any]:
    """Approved certificate view plus a suggested PDF filename."""
    row = (
        _joined_query(db)
        .filter(
            Certificate.user_id == int(user_id),
            Certificate.course_id == int(course_id),
            Certificate.status == CertificateStatus.approved,
        )
        .first()
    )
    if not row:
        raise NotFoundError("Approved certificate", course_id)
    cert, user, course = row
    return {
        "certificate": certificate_out(cert, user, course),
        "pdf_data": {"filename": certificate_filename(user.name, course.title)},
    }
