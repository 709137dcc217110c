from __future__ import annotations

import logging
from urllib.parse import urlencode

from sqlalchemy.orm import Session

from dental_portal.core.exceptions import InvalidInputError, InvalidTokenError
from dental_portal.core.security import TokenService, fingerprint_token, get_password_hash
from dental_portal.core.timeutils import as_utc, utcnow
from dental_portal.models.user import User
from dental_portal.services.user_service import get_user_by_email

logger = logging.getLogger(__name__)

# Same answer whether or not the email is registered
RESET_REQUESTED_MESSAGE = "If the email exists, a reset link has been sent"
RESET_DONE_MESSAGE = "Password reset successful"


def build_reset_link(app_url: str, token: str) -> str:
    return f"{app_url.rstrip('/')}/client/reset-password?{urlencode({'token': token})}"


def _deliver_reset_link(mailer, email: str, link: str, user_id: int) -> None:
    try:
        mailer.send(email, link)
    except Exception:
        # A delivery failure must not be observable by the caller
        logger.exception("Failed to send password reset email to user id=%s", user_id)


def request_password_reset(
    db: Session, *, email: str, tokens: TokenService, mailer, app_url: str, background=None
) -> str:
    """Store a fresh reset token for the account and mail its link.

    With ``background`` (FastAPI's ``BackgroundTasks``) the mail is sent after
    the response, so known and unknown emails answer in the same time.
    """
    if not (email or "").strip():
        raise InvalidInputError("Email is required")

    user = get_user_by_email(db, email)
    if not user:
        logger.info("Password reset requested for unknown email")
        return RESET_REQUESTED_MESSAGE

    now = utcnow()
    token = tokens.issue_reset_token(int(user.id), now=now)
    user.reset_token_hash = fingerprint_token(token)
    user.reset_token_expiry = tokens.reset_expiry(now)
    db.commit()

    link = build_reset_link(app_url, token)
    if background is not None:
        background.add_task(_deliver_reset_link, mailer, user.email, link, int(user.id))
    else:
        _deliver_reset_link(mailer, user.email, link, int(user.id))

    return RESET_REQUESTED_MESSAGE


def redeem_password_reset(db: Session, *, token: str, new_password: str, tokens: TokenService) -> str:
    if not token or not new_password:
        raise InvalidInputError("Invalid request")

    claim = tokens.verify_reset_token(token)

    user = db.query(User).filter(User.id == int(claim.user_id)).first()
    if (
        not user
        or not user.reset_token_hash
        or user.reset_token_hash != fingerprint_token(token)
        or user.reset_token_expiry is None
        or as_utc(user.reset_token_expiry) <= utcnow()
    ):
        raise InvalidTokenError("Invalid or expired token")

    user.password_hash = get_password_hash(new_password)
    user.reset_token_hash = None
    user.reset_token_expiry = None
    db.commit()
    logger.info("Password reset completed for user id=%s", user.id)
    return RESET_DONE_MESSAGE
