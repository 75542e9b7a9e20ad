from __future__ import annotations

import datetime as dt
from typing import TYPE_CHECKING

from sqlalchemy import Boolean, Date, DateTime, ForeignKey, Index, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.alumnet.models import Base

if TYPE_CHECKING:
    from app.alumnet.modules.alumni.models import AlumniProfile


class Accomplishment(Base):
    __tablename__ = "accomplishments"
    __table_args__ = (
        Index("idx_accomplishments_approved", "is_approved"),
        Index("idx_accomplishments_alumni", "alumni_id"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    alumni_id: Mapped[int] = mapped_column(ForeignKey("alumni_profiles.id", ondelete="CASCADE"), nullable=False)

    type: Mapped[str] = mapped_column(String(32), nullable=False)  # WEDDING, PROMOTION, NEW_EMPLOYMENT, BIRTH, OTHER
    title: Mapped[str] = mapped_column(String(180), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    image_url: Mapped[str | None] = mapped_column(String(1000), nullable=True)
    date: Mapped[dt.date | None] = mapped_column(Date, nullable=True)

    is_approved: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    approved_by_id: Mapped[int | None] = mapped_column(ForeignKey("users.id", ondelete="SET NULL"), nullable=True)

    created_at: Mapped[dt.datetime] = mapped_column(DateTime(timezone=False), nullable=False, default=dt.datetime.utcnow)

    alumni: Mapped["AlumniProfile"] = relationship("AlumniProfile", lazy="selectin")
