from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, Field

from dental_portal.models.user import Role


class ProfileUpdate(BaseModel):
    name: Optional[str] = Field(default=None, max_length=255)
    phone: Optional[str] = Field(default=None, max_length=32)
    specialty: Optional[str] = Field(default=None, max_length=120)
    college: Optional[str] = Field(default=None, max_length=255)
    city: Optional[str] = Field(default=None, max_length=120)
    bio: Optional[str] = None


class AdminProfileUpdate(BaseModel):
    name: Optional[str] = Field(default=None, max_length=255)
    password: Optional[str] = Field(default=None, min_length=6, max_length=72)


class AdminUserUpdate(BaseModel):
    name: Optional[str] = Field(default=None, max_length=255)
    email: Optional[str] = Field(default=None, max_length=255)
    role: Optional[Role] = None
