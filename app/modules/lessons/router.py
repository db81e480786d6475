"""Lessons API router."""

from __future__ import annotations

from uuid import UUID

from fastapi import APIRouter, Depends, Query, status

from app.core.enums import LessonStatusEnum
from app.modules.identity.schemas import SessionPrincipal
from app.modules.identity.service import get_current_tutor
from app.modules.lessons.schemas import (
    LessonMessageCreate,
    LessonMessageRead,
    TutorLessonRead,
    to_tutor_lesson,
)
from app.modules.lessons.service import LessonsService, get_lessons_service
from app.shared.pagination import Page, build_page, get_pagination_params

router = APIRouter(prefix="/tutor", tags=["lessons"])


@router.get("/requests", response_model=list[TutorLessonRead])
async def list_lesson_requests(
    service: LessonsService = Depends(get_lessons_service),
    tutor: SessionPrincipal = Depends(get_current_tutor),
) -> list[TutorLessonRead]:
    """Lesson requests waiting for an answer."""
    rows = await service.list_requests(tutor.tutor_id)
    return [to_tutor_lesson(lesson, label) for lesson, label in rows]


@router.get("/lessons", response_model=Page[TutorLessonRead])
async def list_lessons(
    status_filter: LessonStatusEnum | None = Query(default=None, alias="status"),
    pagination=Depends(get_pagination_params),
    service: LessonsService = Depends(get_lessons_service),
    tutor: SessionPrincipal = Depends(get_current_tutor),
) -> Page[TutorLessonRead]:
    """List lessons of the current tutor."""
    rows, total = await service.list_lessons(
        tutor.tutor_id,
        status_filter,
        pagination.limit,
        pagination.offset,
    )
    serialized = [to_tutor_lesson(lesson, label) for lesson, label in rows]
    return build_page(serialized, total, pagination)


@router.get("/lessons/log", response_model=list[TutorLessonRead])
async def lesson_log(
    service: LessonsService = Depends(get_lessons_service),
    tutor: SessionPrincipal = Depends(get_current_tutor),
) -> list[TutorLessonRead]:
    """Confirmed and completed lessons."""
    rows = await service.list_log(tutor.tutor_id)
    return [to_tutor_lesson(lesson, label) for lesson, label in rows]


@router.get("/lessons/{lesson_id}", response_model=TutorLessonRead)
async def get_lesson(
    lesson_id: UUID,
    service: LessonsService = Depends(get_lessons_service),
    tutor: SessionPrincipal = Depends(get_current_tutor),
) -> TutorLessonRead:
    """Lesson details."""
    lesson, label = await service.get_lesson(lesson_id, tutor.tutor_id)
    return to_tutor_lesson(lesson, label)


@router.get("/messages/{lesson_id}", response_model=list[LessonMessageRead])
async def list_messages(
    lesson_id: UUID,
    service: LessonsService = Depends(get_lessons_service),
    tutor: SessionPrincipal = Depends(get_current_tutor),
) -> list[LessonMessageRead]:
    """Chat history of a lesson."""
    messages = await service.list_messages(lesson_id, tutor.tutor_id)
    return [LessonMessageRead.model_validate(item) for item in messages]


@router.post(
    "/messages/{lesson_id}",
    response_model=LessonMessageRead,
    status_code=status.HTTP_201_CREATED,
)
async def post_message(
    lesson_id: UUID,
    payload: LessonMessageCreate,
    service: LessonsService = Depends(get_lessons_service),
    tutor: SessionPrincipal = Depends(get_current_tutor),
) -> LessonMessageRead:
    """Send a chat message on a lesson."""
    message = await service.post_message(lesson_id, tutor.tutor_id, payload.body)
    return LessonMessageRead.model_validate(message)
