"""Booking lifecycle repository layer."""

from __future__ import annotations

from datetime import datetime
from uuid import UUID

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import utc_now
from app.core.enums import ActorEnum, LessonStatusEnum, RescheduleStatusEnum
from app.modules.booking.models import LessonCancellation, Rating, RescheduleRequest
from app.modules.lessons.models import Lesson
from app.modules.tutors.models import LessonType


class BookingRepository:
    """DB operations for reschedules, cancellations and ratings."""

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def create_reschedule_request(
        self,
        lesson_id: UUID,
        requested_by: ActorEnum,
        proposed_start_at: datetime,
        reason: str | None,
    ) -> RescheduleRequest:
        request = RescheduleRequest(
            lesson_id=lesson_id,
            requested_by=requested_by,
            status=RescheduleStatusEnum.PENDING,
            proposed_start_at=proposed_start_at,
            reason=reason,
        )
        self.session.add(request)
        await self.session.flush()
        return request

    async def get_pending_reschedule_for_tutor(
        self,
        request_id: UUID,
        tutor_id: UUID,
    ) -> RescheduleRequest | None:
        stmt = (
            select(RescheduleRequest)
            .join(Lesson, Lesson.id == RescheduleRequest.lesson_id)
            .where(
                RescheduleRequest.id == request_id,
                RescheduleRequest.status == RescheduleStatusEnum.PENDING,
                Lesson.tutor_id == tutor_id,
            )
        )
        return await self.session.scalar(stmt)

    async def resolve_reschedule_request(self, request_id: UUID, status: RescheduleStatusEnum) -> bool:
        """Move request out of pending; False if it was already resolved."""
        result = await self.session.execute(
            update(RescheduleRequest)
            .where(
                RescheduleRequest.id == request_id,
                RescheduleRequest.status == RescheduleStatusEnum.PENDING,
            )
            .values(status=status, updated_at=utc_now())
            .execution_options(synchronize_session=False),
        )
        return getattr(result, "rowcount", 0) == 1

    async def list_pending_reschedules(
        self,
        tutor_id: UUID,
    ) -> list[tuple[RescheduleRequest, Lesson, str]]:
        stmt = (
            select(RescheduleRequest, Lesson, LessonType.label)
            .join(Lesson, Lesson.id == RescheduleRequest.lesson_id)
            .join(LessonType, LessonType.id == Lesson.lesson_type_id)
            .where(
                Lesson.tutor_id == tutor_id,
                Lesson.status == LessonStatusEnum.RESCHEDULE_REQUESTED,
                RescheduleRequest.status == RescheduleStatusEnum.PENDING,
            )
            .order_by(RescheduleRequest.created_at.asc())
        )
        return [tuple(row) for row in (await self.session.execute(stmt)).all()]

    async def create_cancellation(
        self,
        lesson_id: UUID,
        canceled_by: ActorEnum,
        is_late: bool,
        note: str | None,
        canceled_at: datetime,
    ) -> LessonCancellation:
        cancellation = LessonCancellation(
            lesson_id=lesson_id,
            canceled_by=canceled_by,
            is_late=is_late,
            note=note,
            canceled_at=canceled_at,
        )
        self.session.add(cancellation)
        await self.session.flush()
        return cancellation

    async def create_rating(
        self,
        lesson_id: UUID,
        tutor_id: UUID,
        stars: int,
        comment: str | None,
    ) -> Rating:
        rating = Rating(lesson_id=lesson_id, tutor_id=tutor_id, stars=stars, comment=comment)
        self.session.add(rating)
        await self.session.flush()
        return rating
