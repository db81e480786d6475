"""Tutors ORM models."""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from uuid import UUID

from sqlalchemy import (
    Boolean,
    DateTime,
    Enum as SAEnum,
    Float,
    ForeignKey,
    Integer,
    Numeric,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.dialects.postgresql import ARRAY
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.core.database import Base, BaseModelMixin, utc_now
from app.core.enums import LessonCategoryEnum


class Tutor(BaseModelMixin, Base):
    """Tutor account identified by phone number."""

    __tablename__ = "tutors"

    phone: Mapped[str] = mapped_column(String(32), unique=True, index=True, nullable=False)
    name: Mapped[str] = mapped_column(String(128), nullable=False)
    slug: Mapped[str] = mapped_column(String(128), unique=True, index=True, nullable=False)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    latitude: Mapped[float | None] = mapped_column(Float, nullable=True)
    longitude: Mapped[float | None] = mapped_column(Float, nullable=True)

    profile: Mapped["TutorProfile | None"] = relationship(back_populates="tutor", uselist=False)


class TutorProfile(Base):
    """Public profile text of a tutor."""

    __tablename__ = "tutor_profiles"

    tutor_id: Mapped[UUID] = mapped_column(
        ForeignKey("tutors.id", ondelete="CASCADE"),
        primary_key=True,
    )
    bio: Mapped[str] = mapped_column(Text, default="", nullable=False)
    lesson_formats: Mapped[list[str]] = mapped_column(ARRAY(String(32)), default=list, nullable=False)
    levels_supported: Mapped[list[str]] = mapped_column(ARRAY(String(32)), default=list, nullable=False)

    tutor: Mapped[Tutor] = relationship(back_populates="profile")


class LessonType(BaseModelMixin, Base):
    """Subject a tutor teaches."""

    __tablename__ = "lesson_types"

    tutor_id: Mapped[UUID] = mapped_column(
        ForeignKey("tutors.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    category: Mapped[LessonCategoryEnum] = mapped_column(
        SAEnum(LessonCategoryEnum, name="lesson_category_enum", native_enum=False),
        nullable=False,
    )
    label: Mapped[str] = mapped_column(String(255), nullable=False)
    is_group_allowed: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)

    pricing: Mapped[list["LessonPricing"]] = relationship(back_populates="lesson_type")


class LessonPricing(BaseModelMixin, Base):
    """Price of a lesson type for one duration."""

    __tablename__ = "lesson_pricing"

    lesson_type_id: Mapped[UUID] = mapped_column(
        ForeignKey("lesson_types.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    duration_minutes: Mapped[int] = mapped_column(Integer, nullable=False)
    price_amount: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)
    currency: Mapped[str] = mapped_column(String(3), default="USD", nullable=False)
    active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)

    lesson_type: Mapped[LessonType] = relationship(back_populates="pricing")


class TutorServiceArea(BaseModelMixin, Base):
    """District where a tutor travels for lessons."""

    __tablename__ = "tutor_service_areas"
    __table_args__ = (UniqueConstraint("tutor_id", "district_id", name="uq_tutor_service_areas_tutor_district"),)

    tutor_id: Mapped[UUID] = mapped_column(
        ForeignKey("tutors.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    district_id: Mapped[str] = mapped_column(String(64), nullable=False)
    district_label: Mapped[str] = mapped_column(String(128), nullable=False)
    latitude: Mapped[float | None] = mapped_column(Float, nullable=True)
    longitude: Mapped[float | None] = mapped_column(Float, nullable=True)


class CancellationPolicy(Base):
    """Per-tutor late cancellation cutoff."""

    __tablename__ = "cancellation_policies"

    tutor_id: Mapped[UUID] = mapped_column(
        ForeignKey("tutors.id", ondelete="CASCADE"),
        primary_key=True,
    )
    cutoff_hours: Mapped[int] = mapped_column(Integer, default=24, nullable=False)
    late_cancel_payable: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)


class TutorRatingSummary(Base):
    """Denormalized rating aggregate, recomputed on every new rating."""

    __tablename__ = "tutor_rating_summaries"

    tutor_id: Mapped[UUID] = mapped_column(
        ForeignKey("tutors.id", ondelete="CASCADE"),
        primary_key=True,
    )
    avg_stars: Mapped[Decimal] = mapped_column(Numeric(3, 2), default=Decimal("0"), nullable=False)
    rating_count: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utc_now,
        onupdate=utc_now,
        nullable=False,
    )
