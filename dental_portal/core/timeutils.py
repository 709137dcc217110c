from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Optional

from pydantic import TypeAdapter, ValidationError

from dental_portal.core.exceptions import InvalidInputError

_datetime_adapter = TypeAdapter(datetime)


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def as_utc(value: Optional[datetime]) -> Optional[datetime]:
    """Attach UTC to naive datetimes (SQLite drops tzinfo on the way back)."""
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def parse_datetime(value: Any) -> datetime:
    """Parse an ISO-8601 string (or pass a datetime through) as aware UTC.

    Raises InvalidInputError("Invalid date format") when it does not parse.
    """
    if isinstance(value, datetime):
        return as_utc(value)
    if not isinstance(value, str) or not value.strip():
        raise InvalidInputError("Invalid date format")
    try:
        parsed = _datetime_adapter.validate_python(value.strip())
    except ValidationError as exc:
        raise InvalidInputError("Invalid date format") from exc
    return as_utc(parsed)


def isoformat(value: Optional[datetime]) -> Optional[str]:
    value = as_utc(value)
    return value.isoformat() if value else None
