"""Lessons ORM models."""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from uuid import UUID

from sqlalchemy import DateTime, Enum as SAEnum, ForeignKey, Integer, Numeric, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from app.core.database import Base, BaseModelMixin, CreatedAtMixin, TimestampMixin, UUIDMixin
from app.core.enums import ActorEnum, LessonStatusEnum, PaymentStatusEnum


class Lesson(BaseModelMixin, Base):
    """Lesson requested by a parent and driven through its lifecycle by the tutor."""

    __tablename__ = "lessons"

    tutor_id: Mapped[UUID] = mapped_column(
        ForeignKey("tutors.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    lesson_type_id: Mapped[UUID] = mapped_column(
        ForeignKey("lesson_types.id", ondelete="RESTRICT"),
        nullable=False,
    )
    student_name: Mapped[str] = mapped_column(String(128), nullable=False)
    duration_minutes: Mapped[int] = mapped_column(Integer, nullable=False)
    price_amount: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)
    status: Mapped[LessonStatusEnum] = mapped_column(
        SAEnum(LessonStatusEnum, name="lesson_status_enum", native_enum=False),
        default=LessonStatusEnum.REQUESTED,
        nullable=False,
        index=True,
    )
    requested_start_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    confirmed_start_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    level: Mapped[str | None] = mapped_column(String(64), nullable=True)
    note: Mapped[str | None] = mapped_column(Text, nullable=True)
    district: Mapped[str | None] = mapped_column(String(128), nullable=True)


class LessonPayment(TimestampMixin, Base):
    """Payment bookkeeping row, created unpaid with its lesson."""

    __tablename__ = "lesson_payments"

    lesson_id: Mapped[UUID] = mapped_column(
        ForeignKey("lessons.id", ondelete="CASCADE"),
        primary_key=True,
    )
    payment_status: Mapped[PaymentStatusEnum] = mapped_column(
        SAEnum(PaymentStatusEnum, name="payment_status_enum", native_enum=False),
        default=PaymentStatusEnum.UNPAID,
        nullable=False,
    )


class LessonMessage(UUIDMixin, CreatedAtMixin, Base):
    """Chat message attached to a lesson."""

    __tablename__ = "lesson_messages"

    lesson_id: Mapped[UUID] = mapped_column(
        ForeignKey("lessons.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    sender: Mapped[ActorEnum] = mapped_column(
        SAEnum(ActorEnum, name="message_sender_enum", native_enum=False),
        nullable=False,
    )
    body: Mapped[str] = mapped_column(Text, nullable=False)
