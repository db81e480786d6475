"""Lessons repository layer."""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import Any
from uuid import UUID

from sqlalchemy import Select, func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import utc_now
from app.core.enums import ActorEnum, LessonStatusEnum, PaymentStatusEnum
from app.modules.lessons.models import Lesson, LessonMessage, LessonPayment
from app.modules.tutors.models import CancellationPolicy, LessonType, Tutor

BLOCKING_STATUSES = (LessonStatusEnum.CONFIRMED, LessonStatusEnum.RESCHEDULE_REQUESTED)
WEEK_VIEW_STATUSES = (
    LessonStatusEnum.REQUESTED,
    LessonStatusEnum.CONFIRMED,
    LessonStatusEnum.RESCHEDULE_REQUESTED,
)
LOG_STATUSES = (LessonStatusEnum.CONFIRMED, LessonStatusEnum.COMPLETED)


def effective_start():
    """Confirmed start when set, requested start otherwise."""
    return func.coalesce(Lesson.confirmed_start_at, Lesson.requested_start_at)


class LessonsRepository:
    """DB operations for lessons domain."""

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def create_lesson(
        self,
        tutor_id: UUID,
        lesson_type_id: UUID,
        student_name: str,
        duration_minutes: int,
        price_amount: Decimal,
        requested_start_at: datetime,
        level: str | None = None,
        note: str | None = None,
        district: str | None = None,
    ) -> Lesson:
        lesson = Lesson(
            tutor_id=tutor_id,
            lesson_type_id=lesson_type_id,
            student_name=student_name,
            duration_minutes=duration_minutes,
            price_amount=price_amount,
            status=LessonStatusEnum.REQUESTED,
            requested_start_at=requested_start_at,
            level=level,
            note=note,
            district=district,
        )
        self.session.add(lesson)
        await self.session.flush()
        return lesson

    async def create_payment(self, lesson_id: UUID) -> LessonPayment:
        payment = LessonPayment(lesson_id=lesson_id, payment_status=PaymentStatusEnum.UNPAID)
        self.session.add(payment)
        await self.session.flush()
        return payment

    async def get_lesson_by_id(self, lesson_id: UUID) -> Lesson | None:
        stmt = select(Lesson).where(Lesson.id == lesson_id).execution_options(populate_existing=True)
        return await self.session.scalar(stmt)

    async def get_lesson_for_tutor(self, lesson_id: UUID, tutor_id: UUID) -> Lesson | None:
        stmt = (
            select(Lesson)
            .where(Lesson.id == lesson_id, Lesson.tutor_id == tutor_id)
            .execution_options(populate_existing=True)
        )
        return await self.session.scalar(stmt)

    async def transition(
        self,
        lesson_id: UUID,
        *,
        source: LessonStatusEnum,
        target: LessonStatusEnum,
        tutor_id: UUID | None = None,
        **values: Any,
    ) -> bool:
        """Move lesson from source to target status in one guarded UPDATE.

        Returns False when no row matched: the lesson is missing, owned by
        another tutor, or no longer in the source status.
        """
        stmt = update(Lesson).where(Lesson.id == lesson_id, Lesson.status == source)
        if tutor_id is not None:
            stmt = stmt.where(Lesson.tutor_id == tutor_id)
        stmt = stmt.values(status=target, updated_at=utc_now(), **values)
        result = await self.session.execute(stmt.execution_options(synchronize_session=False))
        return getattr(result, "rowcount", 0) == 1

    async def list_blocking_lessons(self, tutor_id: UUID) -> list[Lesson]:
        """Lessons that occupy the tutor's calendar."""
        stmt = select(Lesson).where(
            Lesson.tutor_id == tutor_id,
            Lesson.status.in_(BLOCKING_STATUSES),
        )
        return list((await self.session.scalars(stmt)).all())

    def _with_label(self) -> Select[tuple[Lesson, str]]:
        return select(Lesson, LessonType.label).join(LessonType, LessonType.id == Lesson.lesson_type_id)

    async def list_requests(self, tutor_id: UUID) -> list[tuple[Lesson, str]]:
        stmt = (
            self._with_label()
            .where(Lesson.tutor_id == tutor_id, Lesson.status == LessonStatusEnum.REQUESTED)
            .order_by(Lesson.requested_start_at.asc())
        )
        return [tuple(row) for row in (await self.session.execute(stmt)).all()]

    async def list_log(self, tutor_id: UUID) -> list[tuple[Lesson, str]]:
        stmt = (
            self._with_label()
            .where(Lesson.tutor_id == tutor_id, Lesson.status.in_(LOG_STATUSES))
            .order_by(effective_start().desc())
        )
        return [tuple(row) for row in (await self.session.execute(stmt)).all()]

    async def list_lessons(
        self,
        tutor_id: UUID,
        status: LessonStatusEnum | None,
        limit: int,
        offset: int,
    ) -> tuple[list[tuple[Lesson, str]], int]:
        base_stmt = self._with_label().where(Lesson.tutor_id == tutor_id)
        if status is not None:
            base_stmt = base_stmt.where(Lesson.status == status)

        count_stmt = select(func.count()).select_from(base_stmt.subquery())
        total = int((await self.session.scalar(count_stmt)) or 0)

        stmt = base_stmt.order_by(effective_start().desc()).limit(limit).offset(offset)
        items = [tuple(row) for row in (await self.session.execute(stmt)).all()]
        return items, total

    async def get_lesson_with_label(self, lesson_id: UUID, tutor_id: UUID) -> tuple[Lesson, str] | None:
        stmt = self._with_label().where(Lesson.id == lesson_id, Lesson.tutor_id == tutor_id)
        row = (await self.session.execute(stmt)).first()
        return tuple(row) if row is not None else None

    async def list_lessons_in_window(
        self,
        tutor_id: UUID,
        start: datetime,
        end: datetime,
    ) -> list[tuple[Lesson, str]]:
        """Live lessons whose effective start falls into [start, end)."""
        starts_at = effective_start()
        stmt = (
            self._with_label()
            .where(
                Lesson.tutor_id == tutor_id,
                Lesson.status.in_(WEEK_VIEW_STATUSES),
                starts_at >= start,
                starts_at < end,
            )
            .order_by(starts_at)
        )
        return [tuple(row) for row in (await self.session.execute(stmt)).all()]

    async def get_lesson_card(self, lesson_id: UUID) -> tuple[Lesson, str, str, int | None] | None:
        """Lesson with its label, tutor name and cutoff hours."""
        stmt = (
            select(Lesson, LessonType.label, Tutor.name, CancellationPolicy.cutoff_hours)
            .join(LessonType, LessonType.id == Lesson.lesson_type_id)
            .join(Tutor, Tutor.id == Lesson.tutor_id)
            .outerjoin(CancellationPolicy, CancellationPolicy.tutor_id == Lesson.tutor_id)
            .where(Lesson.id == lesson_id)
        )
        row = (await self.session.execute(stmt)).first()
        return tuple(row) if row is not None else None

    async def list_messages(self, lesson_id: UUID) -> list[LessonMessage]:
        stmt = (
            select(LessonMessage)
            .where(LessonMessage.lesson_id == lesson_id)
            .order_by(LessonMessage.created_at.asc())
        )
        return list((await self.session.scalars(stmt)).all())

    async def create_message(self, lesson_id: UUID, sender: ActorEnum, body: str) -> LessonMessage:
        message = LessonMessage(lesson_id=lesson_id, sender=sender, body=body)
        self.session.add(message)
        await self.session.flush()
        return message

