from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, BackgroundTasks, Depends, Request, Response
from sqlalchemy.orm import Session

from dental_portal.api.deps import SESSION_COOKIE, get_db, get_mailer, get_settings, get_token_service, identify
from dental_portal.core.config import Settings
from dental_portal.core.security import SessionClaim, TokenService
from dental_portal.models.user import Role, User
from dental_portal.schemas.auth import ForgotPasswordRequest, LoginRequest, ResetPasswordRequest, SignupRequest, TokenResponse
from dental_portal.services import password_reset_service, user_service


router = APIRouter(tags=["auth"])


def set_session_cookie(response: Response, token: str, *, settings: Settings, max_age: int) -> None:
    response.set_cookie(
        key=SESSION_COOKIE,
        value=token,
        max_age=max_age,
        path="/",
        httponly=True,
        secure=settings.COOKIE_SECURE,
        samesite="lax",
    )


def clear_session_cookie(response: Response, *, settings: Settings) -> None:
    response.delete_cookie(
        key=SESSION_COOKIE,
        path="/",
        httponly=True,
        secure=settings.COOKIE_SECURE,
        samesite="lax",
    )


def _start_session(response: Response, user: User, *, tokens: TokenService, settings: Settings) -> TokenResponse:
    claim = SessionClaim(id=int(user.id), email=user.email, role=Role(user.role))
    token = tokens.issue_session_token(claim)
    set_session_cookie(response, token, settings=settings, max_age=tokens.session_max_age)
    return TokenResponse(role=claim.role.value, token=token)


@router.post("/auth/signup")
def signup(
    request: Request,
    response: Response,
    payload: SignupRequest,
    db: Session = Depends(get_db),
    tokens: TokenService = Depends(get_token_service),
    settings: Settings = Depends(get_settings),
):
    # Self-service accounts are always clients; admins are created by admins
    user = user_service.create_user(db, name=payload.name, email=payload.email, password=payload.password, role=Role.client)
    out = _start_session(response, user, tokens=tokens, settings=settings).model_dump()
    return {"request_id": request.state.request_id, "data": out, "error": None}


@router.post("/auth/login")
def login(
    request: Request,
    response: Response,
    payload: LoginRequest,
    db: Session = Depends(get_db),
    tokens: TokenService = Depends(get_token_service),
    settings: Settings = Depends(get_settings),
):
    user = user_service.authenticate(db, email=payload.email, password=payload.password)
    out = _start_session(response, user, tokens=tokens, settings=settings).model_dump()
    return {"request_id": request.state.request_id, "data": out, "error": None}


@router.post("/auth/logout")
def logout(request: Request, response: Response, settings: Settings = Depends(get_settings)):
    clear_session_cookie(response, settings=settings)
    return {"request_id": request.state.request_id, "data": {"success": True}, "error": None}


@router.get("/auth/me")
def me(request: Request, claim: Optional[SessionClaim] = Depends(identify)):
    if claim is None:
        out = {"logged_in": False, "user": None}
    else:
        out = {"logged_in": True, "user": {"id": claim.id, "email": claim.email, "role": claim.role.value}}
    return {"request_id": request.state.request_id, "data": out, "error": None}


@router.post("/auth/forgot-password")
def forgot_password(
    request: Request,
    payload: ForgotPasswordRequest,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db),
    tokens: TokenService = Depends(get_token_service),
    mailer=Depends(get_mailer),
    settings: Settings = Depends(get_settings),
):
    message = password_reset_service.request_password_reset(
        db,
        email=payload.email or "",
        tokens=tokens,
        mailer=mailer,
        app_url=settings.APP_URL,
        background=background_tasks,
    )
    return {"request_id": request.state.request_id, "data": {"message": message}, "error": None}


@router.post("/auth/reset-password")
def reset_password(
    request: Request,
    payload: ResetPasswordRequest,
    db: Session = Depends(get_db),
    tokens: TokenService = Depends(get_token_service),
):
    message = password_reset_service.redeem_password_reset(
        db,
        token=payload.token or "",
        new_password=payload.password or "",
        tokens=tokens,
    )
    return {"request_id": request.state.request_id, "data": {"message": message}, "error": None}
