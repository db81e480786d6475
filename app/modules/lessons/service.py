"""Lessons business logic layer."""

from __future__ import annotations

from uuid import UUID

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import get_db_session
from app.core.enums import ActorEnum, LessonStatusEnum
from app.modules.lessons.models import Lesson, LessonMessage
from app.modules.lessons.repository import LessonsRepository
from app.shared.exceptions import NotFoundException


class LessonsService:
    """Tutor-facing lesson queries and lesson chat storage."""

    def __init__(self, repository: LessonsRepository) -> None:
        self.repository = repository

    async def list_requests(self, tutor_id: UUID) -> list[tuple[Lesson, str]]:
        """Incoming requests, soonest first."""
        return await self.repository.list_requests(tutor_id)

    async def list_log(self, tutor_id: UUID) -> list[tuple[Lesson, str]]:
        """Confirmed and completed lessons, newest first."""
        return await self.repository.list_log(tutor_id)

    async def list_lessons(
        self,
        tutor_id: UUID,
        status: LessonStatusEnum | None,
        limit: int,
        offset: int,
    ) -> tuple[list[tuple[Lesson, str]], int]:
        return await self.repository.list_lessons(tutor_id, status, limit, offset)

    async def get_lesson(self, lesson_id: UUID, tutor_id: UUID) -> tuple[Lesson, str]:
        row = await self.repository.get_lesson_with_label(lesson_id, tutor_id)
        if row is None:
            raise NotFoundException("Lesson not found")
        return row

    async def _ensure_owned(self, lesson_id: UUID, tutor_id: UUID) -> Lesson:
        lesson = await self.repository.get_lesson_for_tutor(lesson_id, tutor_id)
        if lesson is None:
            raise NotFoundException("Lesson not found")
        return lesson

    async def list_messages(self, lesson_id: UUID, tutor_id: UUID) -> list[LessonMessage]:
        """Chat history of an owned lesson, oldest first."""
        await self._ensure_owned(lesson_id, tutor_id)
        return await self.repository.list_messages(lesson_id)

    async def post_message(self, lesson_id: UUID, tutor_id: UUID, body: str) -> LessonMessage:
        """Store tutor message on an owned lesson."""
        await self._ensure_owned(lesson_id, tutor_id)
        return await self.repository.create_message(lesson_id, ActorEnum.TUTOR, body)


async def get_lessons_service(session: AsyncSession = Depends(get_db_session)) -> LessonsService:
    """Dependency provider for lessons service."""
    return LessonsService(LessonsRepository(session))
