from __future__ import annotations

import hashlib
import logging
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional

from jose import JWTError, jwt
from passlib.context import CryptContext

from dental_portal.core.config import Settings
from dental_portal.core.exceptions import ConfigurationError, InvalidTokenError
from dental_portal.models.user import Role

logger = logging.getLogger(__name__)

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")

SESSION_PURPOSE = "session"
RESET_PURPOSE = "reset"


def get_password_hash(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    try:
        return pwd_context.verify(plain_password, hashed_password)
    except (ValueError, TypeError):
        # unknown or corrupt hash format
        return False


def fingerprint_token(token: str) -> str:
    return hashlib.sha256(token.encode("utf-8")).hexdigest()


@dataclass(frozen=True)
class SessionClaim:
    id: int
    email: str
    role: Role


@dataclass(frozen=True)
class ResetClaim:
    user_id: int


class TokenService:
    """Issues and verifies signed tokens for sessions and password resets.

    Each purpose has its own secret and lifetime, and every token carries a
    ``typ`` marker, so a reset token is never accepted as a session token and
    vice versa.
    """

    def __init__(
        self,
        *,
        session_secret: Optional[str],
        reset_secret: Optional[str],
        algorithm: str = "HS256",
        session_ttl: timedelta = timedelta(hours=1),
        reset_ttl: timedelta = timedelta(hours=1),
    ):
        if not session_secret:
            raise ConfigurationError("JWT_SECRET_KEY is not set")
        if not reset_secret:
            raise ConfigurationError("RESET_PASSWORD_SECRET is not set")
        if session_secret == reset_secret:
            raise ConfigurationError("RESET_PASSWORD_SECRET must differ from JWT_SECRET_KEY")

        self._session_secret = session_secret
        self._reset_secret = reset_secret
        self.algorithm = algorithm
        self.session_ttl = session_ttl
        self.reset_ttl = reset_ttl

    @classmethod
    def from_settings(cls, settings: Settings) -> "TokenService":
        return cls(
            session_secret=settings.JWT_SECRET_KEY,
            reset_secret=settings.RESET_PASSWORD_SECRET,
            algorithm=settings.JWT_ALGORITHM,
            session_ttl=timedelta(minutes=int(settings.ACCESS_TOKEN_EXPIRE_MINUTES)),
            reset_ttl=timedelta(minutes=int(settings.RESET_TOKEN_EXPIRE_MINUTES)),
        )

    @property
    def session_max_age(self) -> int:
        return int(self.session_ttl.total_seconds())

    # ----- session -----

    def issue_session_token(self, claim: SessionClaim, *, now: Optional[datetime] = None) -> str:
        extra = {"id": int(claim.id), "email": str(claim.email), "role": Role(claim.role).value}
        return self._encode(
            subject=str(claim.id),
            purpose=SESSION_PURPOSE,
            secret=self._session_secret,
            ttl=self.session_ttl,
            extra=extra,
            now=now,
        )

    def verify_session_token(self, token: str) -> SessionClaim:
        payload = self._decode(token, secret=self._session_secret, purpose=SESSION_PURPOSE)
        try:
            return SessionClaim(id=int(payload["id"]), email=str(payload["email"]), role=Role(payload["role"]))
        except (KeyError, TypeError, ValueError) as exc:
            raise InvalidTokenError("Malformed session claims") from exc

    # ----- password reset -----

    def issue_reset_token(self, user_id: int, *, now: Optional[datetime] = None) -> str:
        return self._encode(
            subject=str(user_id),
            purpose=RESET_PURPOSE,
            secret=self._reset_secret,
            ttl=self.reset_ttl,
            extra={"user_id": int(user_id)},
            now=now,
        )

    def verify_reset_token(self, token: str) -> ResetClaim:
        payload = self._decode(token, secret=self._reset_secret, purpose=RESET_PURPOSE)
        try:
            return ResetClaim(user_id=int(payload["user_id"]))
        except (KeyError, TypeError, ValueError) as exc:
            raise InvalidTokenError("Malformed reset claims") from exc

    def reset_expiry(self, now: Optional[datetime] = None) -> datetime:
        return (now or datetime.now(timezone.utc)) + self.reset_ttl

    # ----- internals -----

    def _encode(
        self,
        *,
        subject: str,
        purpose: str,
        secret: str,
        ttl: timedelta,
        extra: Dict[str, Any],
        now: Optional[datetime],
    ) -> str:
        issued = now or datetime.now(timezone.utc)
        to_encode: Dict[str, Any] = {
            "sub": subject,
            "typ": purpose,
            "iat": int(issued.timestamp()),
            "exp": int((issued + ttl).timestamp()),
        }
        to_encode.update(extra)
        return jwt.encode(to_encode, secret, algorithm=self.algorithm)

    def _decode(self, token: str, *, secret: str, purpose: str) -> Dict[str, Any]:
        if not token:
            raise InvalidTokenError("Token is missing")
        try:
            payload = jwt.decode(token, secret, algorithms=[self.algorithm])
        except JWTError as exc:
            logger.debug("%s token rejected: %s", purpose, exc)
            raise InvalidTokenError("Invalid or expired token") from exc
        if payload.get("typ") != purpose:
            logger.debug("token purpose mismatch: expected %s, got %s", purpose, payload.get("typ"))
            raise InvalidTokenError("Invalid or expired token")
        return payload
