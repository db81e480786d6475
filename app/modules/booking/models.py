"""Booking lifecycle ORM models."""

from __future__ import annotations

from datetime import datetime
from uuid import UUID

from sqlalchemy import Boolean, CheckConstraint, DateTime, Enum as SAEnum, ForeignKey, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from app.core.database import Base, BaseModelMixin, CreatedAtMixin, UUIDMixin, utc_now
from app.core.enums import ActorEnum, RescheduleStatusEnum


class RescheduleRequest(BaseModelMixin, Base):
    """Proposal to move a confirmed lesson to another start time."""

    __tablename__ = "reschedule_requests"

    lesson_id: Mapped[UUID] = mapped_column(
        ForeignKey("lessons.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    requested_by: Mapped[ActorEnum] = mapped_column(
        SAEnum(ActorEnum, name="reschedule_actor_enum", native_enum=False),
        nullable=False,
    )
    status: Mapped[RescheduleStatusEnum] = mapped_column(
        SAEnum(RescheduleStatusEnum, name="reschedule_status_enum", native_enum=False),
        default=RescheduleStatusEnum.PENDING,
        nullable=False,
        index=True,
    )
    proposed_start_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    reason: Mapped[str | None] = mapped_column(String(512), nullable=True)


class LessonCancellation(UUIDMixin, Base):
    """Cancellation record; at most one per lesson."""

    __tablename__ = "lesson_cancellations"

    lesson_id: Mapped[UUID] = mapped_column(
        ForeignKey("lessons.id", ondelete="CASCADE"),
        unique=True,
        nullable=False,
    )
    canceled_by: Mapped[ActorEnum] = mapped_column(
        SAEnum(ActorEnum, name="cancellation_actor_enum", native_enum=False),
        nullable=False,
    )
    is_late: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    note: Mapped[str | None] = mapped_column(Text, nullable=True)
    canceled_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utc_now, nullable=False)


class Rating(UUIDMixin, CreatedAtMixin, Base):
    """Parent rating of a completed lesson."""

    __tablename__ = "ratings"
    __table_args__ = (CheckConstraint("stars BETWEEN 1 AND 5", name="stars_range"),)

    lesson_id: Mapped[UUID] = mapped_column(
        ForeignKey("lessons.id", ondelete="CASCADE"),
        unique=True,
        nullable=False,
    )
    tutor_id: Mapped[UUID] = mapped_column(
        ForeignKey("tutors.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    stars: Mapped[int] = mapped_column(Integer, nullable=False)
    comment: Mapped[str | None] = mapped_column(String(140), nullable=True)
