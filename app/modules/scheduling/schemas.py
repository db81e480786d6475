"""Scheduling schemas."""

from __future__ import annotations

from datetime import datetime, time
from typing import Literal
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

TIME_PATTERN = r"^([01]?\d|2[0-3]):[0-5]\d$"


class AvailabilitySlotInput(BaseModel):
    """One weekly slot; end defaults to start + 1 hour."""

    day_of_week: int = Field(ge=0, le=6)
    start_time: str = Field(pattern=TIME_PATTERN)
    end_time: str | None = Field(default=None, pattern=TIME_PATTERN)


class AvailabilityReplaceRequest(BaseModel):
    """Replace the whole weekly template."""

    slots: list[AvailabilitySlotInput] = Field(default_factory=list, max_length=7 * 24)


class AvailabilitySlotRead(BaseModel):
    """Stored weekly slot."""

    model_config = ConfigDict(from_attributes=True)

    day_of_week: int
    start_time_local: time
    end_time_local: time


class AvailabilityReplaceResult(BaseModel):
    """Replace outcome."""

    success: bool = True
    count: int


class WeekSession(BaseModel):
    """Lesson occupying a grid cell."""

    lesson_id: UUID
    status: Literal["confirmed", "pending"]
    label: str


class WeekSummary(BaseModel):
    """Counters for the week view."""

    confirmed: int
    pending: int
    available: int


class WeekView(BaseModel):
    """Template slots merged with live lessons for one week."""

    week_start: datetime
    slots: dict[str, bool]
    sessions: dict[str, WeekSession]
    summary: WeekSummary


class AvailabilityOverview(BaseModel):
    """Weekly template plus the requested week grid."""

    template: list[AvailabilitySlotRead]
    week: WeekView
