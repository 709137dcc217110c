from __future__ import annotations

from typing import Optional

from pydantic import BaseModel


class CertificateAction(BaseModel):
    action: str


class CertificateCreate(BaseModel):
    user_id: int
    course_id: int
    status: str = "approved"


class CertificateStatusUpdate(BaseModel):
    status: Optional[str] = None
    # ISO-8601 string; parsed by the workflow so bad input maps to "Invalid date format"
    issued_at: Optional[str] = None
