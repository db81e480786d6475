"""Scheduling business logic layer."""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from datetime import datetime, time, timedelta
from uuid import UUID

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import get_db_session
from app.core.enums import LessonStatusEnum
from app.modules.lessons.models import Lesson
from app.modules.lessons.repository import LessonsRepository
from app.modules.scheduling.models import TutorAvailability
from app.modules.scheduling.repository import SchedulingRepository
from app.modules.scheduling.schemas import AvailabilitySlotInput, WeekSession, WeekSummary, WeekView
from app.shared.exceptions import BadRequestException
from app.shared.utils import day_of_week, ensure_utc, slot_key, start_of_week, utc_now

SLOT_LENGTH = timedelta(hours=1)


def parse_slot_time(value: str) -> time:
    """Parse ``H:MM`` or ``HH:MM`` into time."""
    hours, minutes = value.split(":")
    return time(int(hours), int(minutes))


def normalize_slots(slots: Sequence[AvailabilitySlotInput]) -> list[tuple[int, time, time]]:
    """Validate slots and fill default end times."""
    normalized: list[tuple[int, time, time]] = []
    seen: set[tuple[int, time]] = set()
    for slot in slots:
        start = parse_slot_time(slot.start_time)
        if slot.end_time is not None:
            end = parse_slot_time(slot.end_time)
        else:
            end_of_slot = datetime.combine(datetime.min, start) + SLOT_LENGTH
            if end_of_slot.date() != datetime.min.date():
                raise BadRequestException("Slot must end on the same day")
            end = end_of_slot.time()

        if end <= start:
            raise BadRequestException("Slot end must be after its start")
        if (slot.day_of_week, start) in seen:
            raise BadRequestException("Duplicate availability slot")
        seen.add((slot.day_of_week, start))
        normalized.append((slot.day_of_week, start, end))
    return normalized


def expand_template(template: Iterable[TutorAvailability]) -> dict[str, bool]:
    """Map every hourly cell covered by the template to True."""
    cells: dict[str, bool] = {}
    for row in template:
        cursor = datetime.combine(datetime.min, row.start_time_local)
        end = datetime.combine(datetime.min, row.end_time_local)
        while cursor < end:
            cells[slot_key(row.day_of_week, cursor.hour, cursor.minute)] = True
            cursor += SLOT_LENGTH
    return cells


def build_week_view(
    template: Iterable[TutorAvailability],
    lessons: Iterable[tuple[Lesson, str]],
    week_start: datetime,
) -> WeekView:
    """Merge weekly template with the week's lessons; sessions win over free slots."""
    slots = expand_template(template)
    sessions: dict[str, WeekSession] = {}
    for lesson, label in lessons:
        starts_at = ensure_utc(lesson.confirmed_start_at or lesson.requested_start_at)
        state = "pending" if lesson.status == LessonStatusEnum.REQUESTED else "confirmed"
        sessions[slot_key(day_of_week(starts_at), starts_at.hour, starts_at.minute)] = WeekSession(
            lesson_id=lesson.id,
            status=state,
            label=f"{label} - {lesson.student_name}",
        )

    confirmed = sum(1 for item in sessions.values() if item.status == "confirmed")
    pending = sum(1 for item in sessions.values() if item.status == "pending")
    available = sum(1 for key in slots if key not in sessions)
    return WeekView(
        week_start=week_start,
        slots=slots,
        sessions=sessions,
        summary=WeekSummary(confirmed=confirmed, pending=pending, available=available),
    )


class SchedulingService:
    """Weekly availability template and week view."""

    def __init__(
        self,
        repository: SchedulingRepository,
        lessons_repository: LessonsRepository,
    ) -> None:
        self.repository = repository
        self.lessons_repository = lessons_repository

    async def get_weekly_template(self, tutor_id: UUID) -> list[TutorAvailability]:
        return await self.repository.list_template(tutor_id)

    async def replace_weekly_template(
        self,
        tutor_id: UUID,
        slots: Sequence[AvailabilitySlotInput],
    ) -> list[TutorAvailability]:
        """Validate all slots, then swap the template in one transaction."""
        normalized = normalize_slots(slots)
        return await self.repository.replace_template(tutor_id, normalized)

    async def get_week_view(self, tutor_id: UUID, week_start: datetime | None = None) -> WeekView:
        """Template merged with live lessons of the week starting at week_start."""
        start = ensure_utc(week_start) if week_start is not None else start_of_week(utc_now())
        end = start + timedelta(days=7)
        template = await self.repository.list_template(tutor_id)
        lessons = await self.lessons_repository.list_lessons_in_window(tutor_id, start, end)
        return build_week_view(template, lessons, start)

    async def is_available_today(self, tutor_id: UUID) -> bool:
        return await self.repository.has_slots_on_day(tutor_id, day_of_week(utc_now()))


async def get_scheduling_service(session: AsyncSession = Depends(get_db_session)) -> SchedulingService:
    """Dependency provider for scheduling service."""
    return SchedulingService(SchedulingRepository(session), LessonsRepository(session))
