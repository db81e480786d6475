"""Booking lifecycle API router."""

from __future__ import annotations

from uuid import UUID

from fastapi import APIRouter, Depends, status

from app.modules.booking.rate_limit import enforce_lesson_request_rate_limit, enforce_rating_rate_limit
from app.modules.booking.schemas import (
    LessonRequestCreate,
    LessonRequestCreated,
    ParentCancelRequest,
    ParentCancelResult,
    ParentRatingRequest,
    ParentRescheduleRequest,
    PendingRescheduleRead,
    RatingResult,
    RescheduleDecision,
    RescheduleRequestRead,
    TutorRequestDecision,
)
from app.modules.booking.service import BookingService, get_booking_service
from app.modules.identity.schemas import SessionPrincipal
from app.modules.identity.service import get_current_tutor
from app.modules.lessons.schemas import LessonRead

router = APIRouter(tags=["booking"])


@router.post(
    "/public/lesson-requests",
    response_model=LessonRequestCreated,
    status_code=status.HTTP_201_CREATED,
)
async def create_lesson_request(
    payload: LessonRequestCreate,
    service: BookingService = Depends(get_booking_service),
) -> LessonRequestCreated:
    """Request a lesson from a tutor."""
    await enforce_lesson_request_rate_limit(payload.tutor_id)
    lesson = await service.create_lesson_request(payload)
    return LessonRequestCreated.model_validate(lesson)


@router.post("/public/lessons/{lesson_id}/cancel", response_model=ParentCancelResult)
async def cancel_lesson(
    lesson_id: UUID,
    payload: ParentCancelRequest,
    service: BookingService = Depends(get_booking_service),
) -> ParentCancelResult:
    """Cancel a confirmed lesson with a cancel link."""
    lesson, is_late = await service.cancel_by_parent(lesson_id, payload.token, payload.note)
    return ParentCancelResult(lesson_id=lesson.id, status=lesson.status, is_late=is_late)


@router.post("/public/lessons/{lesson_id}/reschedule", response_model=RescheduleRequestRead)
async def reschedule_lesson(
    lesson_id: UUID,
    payload: ParentRescheduleRequest,
    service: BookingService = Depends(get_booking_service),
) -> RescheduleRequestRead:
    """Propose a new time with a reschedule link."""
    request = await service.request_reschedule(
        lesson_id,
        payload.token,
        payload.proposed_start_at,
        payload.reason,
    )
    return RescheduleRequestRead.model_validate(request)


@router.post("/public/lessons/{lesson_id}/rate", response_model=RatingResult)
async def rate_lesson(
    lesson_id: UUID,
    payload: ParentRatingRequest,
    service: BookingService = Depends(get_booking_service),
) -> RatingResult:
    """Rate a completed lesson with a rate link."""
    await enforce_rating_rate_limit(lesson_id)
    rating, avg_stars, rating_count = await service.rate_lesson(
        lesson_id,
        payload.token,
        payload.stars,
        payload.comment,
    )
    return RatingResult(
        lesson_id=rating.lesson_id,
        stars=rating.stars,
        avg_stars=avg_stars,
        rating_count=rating_count,
    )


@router.post("/tutor/requests/{lesson_id}", response_model=LessonRead)
async def decide_lesson_request(
    lesson_id: UUID,
    payload: TutorRequestDecision,
    service: BookingService = Depends(get_booking_service),
    tutor: SessionPrincipal = Depends(get_current_tutor),
) -> LessonRead:
    """Accept or reject a lesson request."""
    lesson = await service.decide_request(lesson_id, tutor.tutor_id, payload.action)
    return LessonRead.model_validate(lesson)


@router.get("/tutor/reschedules", response_model=list[PendingRescheduleRead])
async def list_pending_reschedules(
    service: BookingService = Depends(get_booking_service),
    tutor: SessionPrincipal = Depends(get_current_tutor),
) -> list[PendingRescheduleRead]:
    """Pending reschedule requests, oldest first."""
    rows = await service.list_pending_reschedules(tutor.tutor_id)
    return [
        PendingRescheduleRead(
            id=request.id,
            lesson_id=lesson.id,
            student_name=lesson.student_name,
            lesson_label=label,
            current_start_at=lesson.confirmed_start_at,
            proposed_start_at=request.proposed_start_at,
            reason=request.reason,
            created_at=request.created_at,
        )
        for request, lesson, label in rows
    ]


@router.post("/tutor/reschedules/{request_id}", response_model=LessonRead)
async def decide_reschedule(
    request_id: UUID,
    payload: RescheduleDecision,
    service: BookingService = Depends(get_booking_service),
    tutor: SessionPrincipal = Depends(get_current_tutor),
) -> LessonRead:
    """Approve or decline a reschedule request."""
    lesson = await service.decide_reschedule(request_id, tutor.tutor_id, payload.action)
    return LessonRead.model_validate(lesson)


@router.post("/tutor/lessons/{lesson_id}/complete", response_model=LessonRead)
async def complete_lesson(
    lesson_id: UUID,
    service: BookingService = Depends(get_booking_service),
    tutor: SessionPrincipal = Depends(get_current_tutor),
) -> LessonRead:
    """Mark a confirmed lesson as completed."""
    lesson = await service.complete_lesson(lesson_id, tutor.tutor_id)
    return LessonRead.model_validate(lesson)
