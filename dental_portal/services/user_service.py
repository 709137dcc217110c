from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from dental_portal.core.exceptions import ConflictError, InvalidInputError, NotFoundError, UnauthorizedError
from dental_portal.core.security import get_password_hash, verify_password
from dental_portal.core.timeutils import isoformat
from dental_portal.models.certificate import Certificate
from dental_portal.models.user import Role, User

logger = logging.getLogger(__name__)

PROFILE_FIELDS = ("name", "phone", "specialty", "college", "city", "bio")


def normalize_email(email: str) -> str:
    return (email or "").strip().lower()


def user_out(u: User, *, with_profile: bool = False) -> Dict[str, Any]:
    out: Dict[str, Any] = {
        "id": int(u.id),
        "name": u.name,
        "email": u.email,
        "role": Role(u.role).value,
        "created_at": isoformat(u.created_at),
    }
    if with_profile:
        out.update(
            {
                "phone": u.phone,
                "specialty": u.specialty,
                "college": u.college,
                "city": u.city,
                "bio": u.bio,
                "updated_at": isoformat(u.updated_at),
            }
        )
    return out


def get_user_by_email(db: Session, email: str) -> Optional[User]:
    return db.query(User).filter(User.email == normalize_email(email)).first()


def get_user(db: Session, user_id: int) -> User:
    user = db.query(User).filter(User.id == int(user_id)).first()
    if not user:
        raise NotFoundError("User", user_id)
    return user


def create_user(db: Session, *, name: str, email: str, password: str, role: Role = Role.client) -> User:
    email = normalize_email(email)
    if not (name or "").strip() or not email or not password:
        raise InvalidInputError("Missing fields")
    if get_user_by_email(db, email):
        raise ConflictError("Email already exists")

    user = User(name=name.strip(), email=email, password_hash=get_password_hash(password), role=Role(role))
    db.add(user)
    try:
        db.commit()
    except IntegrityError as exc:
        db.rollback()
        raise ConflictError("Email already exists") from exc
    db.refresh(user)
    logger.info("Created %s user id=%s", user.role.value, user.id)
    return user


def authenticate(db: Session, *, email: str, password: str) -> User:
    user = get_user_by_email(db, email)
    if not user or not verify_password(password, user.password_hash):
        raise UnauthorizedError("Invalid credentials")
    return user


def ensure_admin_user(db: Session, *, email: str, password: str, name: str = "Administrator") -> User:
    """Make sure a bootstrap admin account exists (safe to run repeatedly)."""
    user = get_user_by_email(db, email)
    if user:
        if user.role is not Role.admin:
            user.role = Role.admin
            db.commit()
            logger.info("Promoted user id=%s to admin", user.id)
        return user
    return create_user(db, name=name, email=email, password=password, role=Role.admin)


def update_profile(db: Session, user_id: int, data: Dict[str, Any]) -> User:
    user = get_user(db, user_id)
    changes = {k: v for k, v in data.items() if k in PROFILE_FIELDS}
    if "name" in changes and not (changes["name"] or "").strip():
        changes.pop("name")
    if not changes:
        raise InvalidInputError("No fields to update")
    for field, value in changes.items():
        setattr(user, field, value)
    db.commit()
    db.refresh(user)
    return user


def update_admin_profile(db: Session, user_id: int, *, name: Optional[str], password: Optional[str]) -> User:
    user = get_user(db, user_id)
    if name and name.strip():
        user.name = name.strip()
    if password:
        user.password_hash = get_password_hash(password)
    db.commit()
    db.refresh(user)
    return user


def list_users(db: Session) -> List[Dict[str, Any]]:
    return [user_out(u) for u in db.query(User).order_by(User.id.asc()).all()]


def admin_update_user(db: Session, user_id: int, *, name: Optional[str], email: Optional[str], role: Optional[Role]) -> User:
    user = get_user(db, user_id)
    if email is not None:
        new_email = normalize_email(email)
        if not new_email:
            raise InvalidInputError("Email is required")
        other = get_user_by_email(db, new_email)
        if other and int(other.id) != int(user.id):
            raise ConflictError("Email already exists")
        user.email = new_email
    if name is not None and name.strip():
        user.name = name.strip()
    if role is not None:
        user.role = Role(role)
    db.commit()
    db.refresh(user)
    logger.info("Admin updated user id=%s", user.id)
    return user


def delete_user(db: Session, user_id: int) -> None:
    user = get_user(db, user_id)
    db.query(Certificate).filter(Certificate.user_id == int(user.id)).delete(synchronize_session=False)
    db.delete(user)
    db.commit()
    logger.info("Deleted user id=%s", user_id)
