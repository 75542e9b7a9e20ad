from __future__ import annotations

from datetime import datetime

from sqlalchemy import DateTime, ForeignKey, Index, Integer, String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.alumnet.models import Base


class Event(Base):
    __tablename__ = "events"
    __table_args__ = (
        Index("idx_events_start_at", "start_at"),
        Index("idx_events_city", "city"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True)

    title: Mapped[str] = mapped_column(String(180), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    location: Mapped[str | None] = mapped_column(String(180), nullable=True)
    city: Mapped[str | None] = mapped_column(String(120), nullable=True)
    start_at: Mapped[datetime] = mapped_column(DateTime(timezone=False), nullable=False)
    end_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=False), nullable=True)
    capacity: Mapped[int | None] = mapped_column(Integer, nullable=True)  # None = unlimited
    status: Mapped[str] = mapped_column(String(16), nullable=False, default="OPEN")  # OPEN, CLOSED, CANCELLED

    created_by_id: Mapped[int | None] = mapped_column(ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=False), nullable=False, default=datetime.utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=False), nullable=False, default=datetime.utcnow)

    rsvps: Mapped[list["EventRsvp"]] = relationship(
        "EventRsvp",
        back_populates="event",
        cascade="all, delete-orphan",
        lazy="select",
    )


class EventRsvp(Base):
    __tablename__ = "event_rsvps"
    __table_args__ = (
        UniqueConstraint("event_id", "alumni_id", name="uq_event_rsvps_event_alumni"),
        Index("idx_event_rsvps_event_id", "event_id"),
        Index("idx_event_rsvps_alumni_id", "alumni_id"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    event_id: Mapped[int] = mapped_column(ForeignKey("events.id", ondelete="CASCADE"), nullable=False)
    alumni_id: Mapped[int] = mapped_column(ForeignKey("alumni_profiles.id", ondelete="CASCADE"), nullable=False)
    status: Mapped[str] = mapped_column(String(16), nullable=False, default="GOING")
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=False), nullable=False, default=datetime.utcnow)

    event: Mapped[Event] = relationship("Event", back_populates="rsvps")
