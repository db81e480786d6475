"""Link token schemas."""

from __future__ import annotations

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel

from app.core.enums import LessonStatusEnum, LinkTokenPurposeEnum


class LessonLinkDetails(BaseModel):
    """What a parent sees when opening a cancel/reschedule/rate link."""

    lesson_id: UUID
    purpose: LinkTokenPurposeEnum
    status: LessonStatusEnum
    student_name: str
    lesson_label: str
    tutor_name: str
    duration_minutes: int
    confirmed_start_at: datetime | None
    cutoff_hours: int
