"""Scheduling ORM models."""

from __future__ import annotations

from datetime import time
from uuid import UUID

from sqlalchemy import CheckConstraint, ForeignKey, SmallInteger, Time, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from app.core.database import Base, BaseModelMixin


class TutorAvailability(BaseModelMixin, Base):
    """Recurring weekly availability slot (0=Sunday ... 6=Saturday)."""

    __tablename__ = "tutor_availability"
    __table_args__ = (
        CheckConstraint("day_of_week BETWEEN 0 AND 6", name="day_of_week_range"),
        UniqueConstraint("tutor_id", "day_of_week", "start_time_local", name="uq_tutor_availability_slot"),
    )

    tutor_id: Mapped[UUID] = mapped_column(
        ForeignKey("tutors.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    day_of_week: Mapped[int] = mapped_column(SmallInteger, nullable=False)
    start_time_local: Mapped[time] = mapped_column(Time, nullable=False)
    end_time_local: Mapped[time] = mapped_column(Time, nullable=False)
