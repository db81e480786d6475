"""Tutors schemas."""

from __future__ import annotations

from decimal import Decimal
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, field_validator

from app.core.enums import LessonCategoryEnum


class LessonTypeInput(BaseModel):
    """Subject declared during onboarding."""

    category: LessonCategoryEnum
    label: str = Field(min_length=1, max_length=255)
    is_group_allowed: bool = False

    @field_validator("label")
    @classmethod
    def strip_label(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("label must not be blank")
        return value


class ServiceAreaInput(BaseModel):
    """District where the tutor teaches."""

    district_id: str = Field(min_length=1, max_length=64)
    district_label: str = Field(min_length=1, max_length=128)
    latitude: float | None = Field(default=None, ge=-90, le=90)
    longitude: float | None = Field(default=None, ge=-180, le=180)


class OnboardingRequest(BaseModel):
    """Tutor onboarding wizard payload."""

    name: str = Field(min_length=2, max_length=128)
    lesson_types: list[LessonTypeInput] = Field(min_length=1, max_length=50)
    service_areas: list[ServiceAreaInput] = Field(default_factory=list, max_length=50)

    @field_validator("name")
    @classmethod
    def strip_name(cls, value: str) -> str:
        value = value.strip()
        if len(value) < 2:
            raise ValueError("name must have at least 2 characters")
        return value


class OnboardingResult(BaseModel):
    """Onboarding outcome."""

    success: bool = True
    expertise_count: int


class PriceInput(BaseModel):
    """Price for one lesson type and duration."""

    lesson_type_id: UUID
    duration_minutes: int = Field(gt=0, le=240)
    amount: Decimal = Field(max_digits=10, decimal_places=2)


class PricingReplaceRequest(BaseModel):
    """Replace pricing of the listed lesson types."""

    prices: list[PriceInput] = Field(max_length=200)


class PricingReplaceResult(BaseModel):
    """Pricing outcome."""

    success: bool = True
    count: int


class CancellationPolicyRead(BaseModel):
    """Tutor cancellation policy."""

    model_config = ConfigDict(from_attributes=True)

    cutoff_hours: int
    late_cancel_payable: bool


class CancellationPolicyUpdate(BaseModel):
    """Cancellation policy update."""

    cutoff_hours: int = Field(ge=0, le=168)
    late_cancel_payable: bool = True


class ExpertiseRead(BaseModel):
    """Lesson type as shown in the tutor profile."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    label: str
    category: LessonCategoryEnum


class TutorProfileRead(BaseModel):
    """Tutor's own profile."""

    name: str
    bio: str
    expertise: list[ExpertiseRead]


class PriceRead(BaseModel):
    """Public price entry."""

    duration_minutes: int
    price_amount: Decimal
    currency: str


class PublicExpertiseRead(ExpertiseRead):
    """Lesson type with its active prices."""

    pricing: list[PriceRead] = Field(default_factory=list)


class PublicTutorRead(BaseModel):
    """Tutor identity on the public profile."""

    id: UUID
    name: str
    slug: str
    bio: str
    avg_stars: Decimal
    rating_count: int


class DistrictRead(BaseModel):
    """Public service district."""

    model_config = ConfigDict(from_attributes=True)

    district_id: str
    district_label: str


class PublicTutorProfile(BaseModel):
    """Public profile with weekly slots and this week's bookings."""

    tutor: PublicTutorRead
    expertise: list[PublicExpertiseRead]
    slots: dict[str, bool]
    booked: dict[str, str]
    districts: list[DistrictRead]
