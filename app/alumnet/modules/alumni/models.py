from __future__ import annotations

from datetime import datetime
from typing import TYPE_CHECKING

from sqlalchemy import DateTime, ForeignKey, Index, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.alumnet.models import Base

if TYPE_CHECKING:
    from app.alumnet.models import User


class AlumniProfile(Base):
    __tablename__ = "alumni_profiles"
    __table_args__ = (
        Index("idx_alumni_department", "department"),
        Index("idx_alumni_graduation_year", "graduation_year"),
        Index("idx_alumni_status", "status"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    user_id: Mapped[int] = mapped_column(ForeignKey("users.id", ondelete="CASCADE"), nullable=False, unique=True)

    # Required
    matric_no: Mapped[str] = mapped_column(String(60), nullable=False, unique=True)
    department: Mapped[str] = mapped_column(String(120), nullable=False)
    graduation_year: Mapped[int] = mapped_column(Integer, nullable=False)
    status: Mapped[str] = mapped_column(String(16), nullable=False, default="ACTIVE")  # ACTIVE, SUSPENDED, INACTIVE

    # Career (optional, self-maintained)
    employer: Mapped[str | None] = mapped_column(String(160), nullable=True)
    job_title: Mapped[str | None] = mapped_column(String(160), nullable=True)
    current_city: Mapped[str | None] = mapped_column(String(120), nullable=True)
    skills: Mapped[str | None] = mapped_column(Text, nullable=True)  # comma separated

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=False), nullable=False, default=datetime.utcnow)

    user: Mapped["User"] = relationship("User", back_populates="alumni", lazy="selectin")
