"""Lessons schemas."""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, field_validator

from app.core.enums import ActorEnum, LessonStatusEnum


class LessonRead(BaseModel):
    """Lesson response schema."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    tutor_id: UUID
    lesson_type_id: UUID
    student_name: str
    duration_minutes: int
    price_amount: Decimal
    status: LessonStatusEnum
    requested_start_at: datetime
    confirmed_start_at: datetime | None
    level: str | None
    note: str | None
    district: str | None
    created_at: datetime
    updated_at: datetime


class TutorLessonRead(LessonRead):
    """Lesson as listed in tutor views."""

    lesson_label: str


class LessonMessageCreate(BaseModel):
    """Post a chat message."""

    body: str = Field(min_length=1, max_length=2000)

    @field_validator("body")
    @classmethod
    def strip_body(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("Message body required")
        return value


class LessonMessageRead(BaseModel):
    """Chat message response schema."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    lesson_id: UUID
    sender: ActorEnum
    body: str
    created_at: datetime


def to_tutor_lesson(lesson, lesson_label: str) -> TutorLessonRead:
    """Merge lesson row and its label into a response."""
    data = LessonRead.model_validate(lesson).model_dump()
    return TutorLessonRead(**data, lesson_label=lesson_label)
