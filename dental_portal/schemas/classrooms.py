from __future__ import annotations

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field, model_validator


class ClassroomCreate(BaseModel):
    course_id: int
    title: str = Field(min_length=1, max_length=255)
    speaker: Optional[str] = None
    video_url: Optional[str] = None
    description: Optional[str] = None
    author_description: Optional[str] = None
    learning_objectives: Optional[str] = None
    published_date: Optional[datetime] = None
    expiration_date: Optional[datetime] = None
    discussion_enabled: bool = True
    assessment_link: Optional[str] = None
    assessment_link_2: Optional[str] = None
    assessment_link_3: Optional[str] = None
    ce_credits: Optional[float] = Field(default=None, ge=0)

    @model_validator(mode="after")
    def _check_dates(self):
        if self.published_date and self.expiration_date and self.expiration_date < self.published_date:
            raise ValueError("expiration_date must not be before published_date")
        return self


class ClassroomUpdate(BaseModel):
    course_id: Optional[int] = None
    title: Optional[str] = Field(default=None, max_length=255)
    speaker: Optional[str] = None
    video_url: Optional[str] = None
    description: Optional[str] = None
    author_description: Optional[str] = None
    learning_objectives: Optional[str] = None
    published_date: Optional[datetime] = None
    expiration_date: Optional[datetime] = None
    discussion_enabled: Optional[bool] = None
    assessment_link: Optional[str] = None
    assessment_link_2: Optional[str] = None
    assessment_link_3: Optional[str] = None
    ce_credits: Optional[float] = Field(default=None, ge=0)
