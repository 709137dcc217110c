from __future__ import annotations

from fastapi import APIRouter, Depends, Request
from sqlalchemy.orm import Session

from dental_portal.api.deps import get_db, require_user
from dental_portal.core.security import SessionClaim
from dental_portal.schemas.users import ProfileUpdate
from dental_portal.services.user_service import get_user, update_profile, user_out


router = APIRouter(tags=["profile"])


@router.get("/user/profile")
def read_profile(request: Request, claim: SessionClaim = Depends(require_user), db: Session = Depends(get_db)):
    user = get_user(db, claim.id)
    return {"request_id": request.state.request_id, "data": user_out(user, with_profile=True), "error": None}


@router.put("/user/profile")
def write_profile(
    request: Request,
    payload: ProfileUpdate,
    claim: SessionClaim = Depends(require_user),
    db: Session = Depends(get_db),
):
    user = update_profile(db, claim.id, payload.model_dump(exclude_unset=True))
    return {"request_id": request.state.request_id, "data": user_out(user, with_profile=True), "error": None}
