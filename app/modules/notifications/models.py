"""Notifications ORM models."""

from __future__ import annotations

from uuid import UUID

from sqlalchemy import Boolean, Enum as SAEnum, ForeignKey, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from app.core.database import Base, CreatedAtMixin, UUIDMixin
from app.core.enums import NotificationTypeEnum


class TutorNotification(UUIDMixin, CreatedAtMixin, Base):
    """In-app notification shown in the tutor inbox."""

    __tablename__ = "tutor_notifications"

    tutor_id: Mapped[UUID] = mapped_column(ForeignKey("tutors.id", ondelete="CASCADE"), nullable=False, index=True)
    type: Mapped[NotificationTypeEnum] = mapped_column(
        SAEnum(NotificationTypeEnum, name="notification_type_enum", native_enum=False),
        nullable=False,
    )
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    body: Mapped[str] = mapped_column(Text, default="", nullable=False)
    lesson_id: Mapped[UUID | None] = mapped_column(
        ForeignKey("lessons.id", ondelete="SET NULL"),
        nullable=True,
    )
    read: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False, index=True)
