"""Booking schemas."""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import Literal
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from app.core.enums import ActorEnum, LessonStatusEnum, RescheduleStatusEnum


class LessonRequestCreate(BaseModel):
    """Parent lesson request.

    Accepts the camelCase keys sent by the booking page as well as field names.
    """

    model_config = ConfigDict(populate_by_name=True)

    tutor_id: UUID = Field(alias="tutorId")
    student_name: str = Field(alias="studentName", min_length=1, max_length=128)
    lesson_type_id: UUID = Field(alias="lessonTypeId")
    duration_minutes: int = Field(alias="duration", gt=0, le=240)
    requested_start_at: datetime = Field(alias="requestedStartAt")
    level: str | None = Field(default=None, max_length=64)
    note: str | None = Field(default=None, max_length=1000)
    district: str | None = Field(default=None, max_length=128)


class LessonRequestCreated(BaseModel):
    """Created lesson request."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    status: LessonStatusEnum
    price_amount: Decimal
    requested_start_at: datetime


class TutorRequestDecision(BaseModel):
    """Tutor answer to a lesson request."""

    action: Literal["accept", "reject"]


class RescheduleDecision(BaseModel):
    """Tutor answer to a reschedule request."""

    action: Literal["approve", "decline"]


class ParentCancelRequest(BaseModel):
    """Cancel through a parent link."""

    token: str
    note: str | None = Field(default=None, max_length=500)


class ParentCancelResult(BaseModel):
    """Outcome of a parent cancellation."""

    lesson_id: UUID
    status: LessonStatusEnum
    is_late: bool


class ParentRescheduleRequest(BaseModel):
    """Propose a new time through a parent link."""

    model_config = ConfigDict(populate_by_name=True)

    token: str
    proposed_start_at: datetime = Field(alias="proposedTime")
    reason: str | None = Field(default=None, max_length=512)


class RescheduleRequestRead(BaseModel):
    """Reschedule request response schema."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    lesson_id: UUID
    requested_by: ActorEnum
    status: RescheduleStatusEnum
    proposed_start_at: datetime
    reason: str | None
    created_at: datetime


class PendingRescheduleRead(BaseModel):
    """Pending reschedule as shown to the tutor."""

    id: UUID
    lesson_id: UUID
    student_name: str
    lesson_label: str
    current_start_at: datetime | None
    proposed_start_at: datetime
    reason: str | None
    created_at: datetime


class ParentRatingRequest(BaseModel):
    """Rate a completed lesson through a parent link."""

    token: str
    stars: int = Field(ge=1, le=5)
    comment: str | None = Field(default=None, max_length=140)


class RatingResult(BaseModel):
    """Stored rating and refreshed tutor aggregate."""

    lesson_id: UUID
    stars: int
    avg_stars: Decimal
    rating_count: int
