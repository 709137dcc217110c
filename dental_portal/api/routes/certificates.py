from __future__ import annotations

from fastapi import APIRouter, Depends, Request
from sqlalchemy.orm import Session

from dental_portal.api.deps import get_db, require_user
from dental_portal.core.exceptions import InvalidInputError
from dental_portal.core.security import SessionClaim
from dental_portal.schemas.certificates import CertificateAction
from dental_portal.services import certificate_service


router = APIRouter(tags=["certificates"])


@router.get("/certificates/{course_id}")
def certificate_details(
    request: Request,
    course_id: int,
    claim: SessionClaim = Depends(require_user),
    db: Session = Depends(get_db),
):
    """The caller's certificate for a course; a pending one is created on first access."""
    data = certificate_service.get_certificate_details(db, user_id=claim.id, course_id=course_id)
    return {"request_id": request.state.request_id, "data": data, "error": None}


@router.post("/certificates/{course_id}")
def certificate_action(
    request: Request,
    course_id: int,
    payload: CertificateAction,
    claim: SessionClaim = Depends(require_user),
    db: Session = Depends(get_db),
):
    if payload.action != "download":
        raise InvalidInputError("Invalid action")
    data = certificate_service.prepare_download(db, user_id=claim.id, course_id=course_id)
    return {"request_id": request.state.request_id, "data": data, "error": None}
