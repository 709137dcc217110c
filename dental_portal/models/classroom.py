from __future__ import annotations

from datetime import datetime
from enum import Enum

from sqlalchemy import Boolean, DateTime, ForeignKey, Float, Integer, String, Text, func, true
from sqlalchemy.orm import Mapped, mapped_column

from dental_portal.db.base_class import Base


class ClassroomStatus(str, Enum):
    upcoming = "upcoming"
    active = "active"
    expired = "expired"


class Classroom(Base):
    __tablename__ = "classrooms"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    course_id: Mapped[int] = mapped_column(Integer, ForeignKey("courses.id"), nullable=False, index=True)
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    speaker: Mapped[str | None] = mapped_column(String(255), nullable=True)
    video_url: Mapped[str | None] = mapped_column(String(1024), nullable=True)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    author_description: Mapped[str | None] = mapped_column(Text, nullable=True)
    learning_objectives: Mapped[str | None] = mapped_column(Text, nullable=True)

    # Status is derived from these two, never stored
    published_date: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    expiration_date: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    discussion_enabled: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True, server_default=true())
    assessment_link: Mapped[str | None] = mapped_column(String(1024), nullable=True)
    assessment_link_2: Mapped[str | None] = mapped_column(String(1024), nullable=True)
    assessment_link_3: Mapped[str | None] = mapped_column(String(1024), nullable=True)
    ce_credits: Mapped[float | None] = mapped_column(Float, nullable=True)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now(), index=True)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())
