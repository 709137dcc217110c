from __future__ import annotations

from datetime import datetime
from enum import Enum

from sqlalchemy import DateTime, Enum as SQLEnum, ForeignKey, Integer, UniqueConstraint, func
from sqlalchemy.orm import Mapped, mapped_column

from dental_portal.db.base_class import Base


class CertificateStatus(str, Enum):
    pending = "pending"
    approved = "approved"


class Certificate(Base):
    __tablename__ = "certificates"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    user_id: Mapped[int] = mapped_column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    course_id: Mapped[int] = mapped_column(Integer, ForeignKey("courses.id"), nullable=False, index=True)
    status: Mapped[CertificateStatus] = mapped_column(
        SQLEnum(CertificateStatus, name="certificate_status", native_enum=False),
        nullable=False,
        default=CertificateStatus.pending,
        server_default=CertificateStatus.pending.value,
    )
    # Null unless approved
    issued_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    # The store, not application code, guarantees one row per pair
    __table_args__ = (UniqueConstraint("user_id", "course_id", name="uq_certificate_user_course"),)
