"""Common FastAPI dependencies.

Sessions are stateless JWTs carried in the ``token`` cookie (browser) or an
``Authorization: Bearer`` header (API clients). ``identify`` never raises;
``require_user`` and ``require_admin`` turn a missing or insufficient
claim into ``UnauthorizedError`` / ``ForbiddenError``.
"""

from __future__ import annotations

import logging
from typing import List, Optional

from fastapi import Depends, Request

from dental_portal.core.config import Settings
from dental_portal.core.exceptions import ForbiddenError, InvalidTokenError, UnauthorizedError
from dental_portal.core.security import SessionClaim, TokenService
from dental_portal.db.session import get_db
from dental_portal.models.user import Role

logger = logging.getLogger(__name__)

SESSION_COOKIE = "token"

__all__ = [
    "SESSION_COOKIE",
    "get_db",
    "get_settings",
    "get_token_service",
    "get_mailer",
    "read_tokens",
    "identify_request",
    "identify",
    "require_user",
    "require_admin",
]


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_token_service(request: Request) -> TokenService:
    return request.app.state.tokens


def get_mailer(request: Request):
    return request.app.state.mailer


def read_tokens(request: Request) -> List[str]:
    """Candidate session tokens, cookie first, then the bearer header."""
    found = []
    cookie = request.cookies.get(SESSION_COOKIE)
    if cookie:
        found.append(cookie)
    auth = request.headers.get("Authorization") or ""
    scheme, _, credentials = auth.partition(" ")
    if scheme.lower() == "bearer" and credentials.strip():
        found.append(credentials.strip())
    return found


def identify_request(request: Request, tokens: TokenService) -> Optional[SessionClaim]:
    # A stale cookie must not hide a valid bearer token
    for token in read_tokens(request):
        try:
            return tokens.verify_session_token(token)
        except InvalidTokenError:
            continue
    return None


def identify(request: Request, tokens: TokenService = Depends(get_token_service)) -> Optional[SessionClaim]:
    return identify_request(request, tokens)


def require_user(claim: Optional[SessionClaim] = Depends(identify)) -> SessionClaim:
    if claim is None:
        raise UnauthorizedError("Unauthorized")
    return claim


def require_admin(claim: SessionClaim = Depends(require_user)) -> SessionClaim:
    if claim.role is Role.admin:
        return claim
    logger.info("Rejected admin access for user id=%s role=%s", claim.id, claim.role.value)
    raise ForbiddenError("Admin role required")
