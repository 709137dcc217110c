from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, Field


class CourseCreate(BaseModel):
    title: str = Field(min_length=1, max_length=255)
    author: Optional[str] = None
    author_description: Optional[str] = None
    cover_image: Optional[str] = None
    overview: Optional[str] = None
    description: Optional[str] = None
    category: Optional[str] = None
    specialty_id: Optional[int] = None


class CourseUpdate(BaseModel):
    title: Optional[str] = Field(default=None, max_length=255)
    author: Optional[str] = None
    author_description: Optional[str] = None
    cover_image: Optional[str] = None
    overview: Optional[str] = None
    description: Optional[str] = None
    category: Optional[str] = None
    specialty_id: Optional[int] = None


class SpecialtyCreate(BaseModel):
    name: str = Field(min_length=1, max_length=120)
