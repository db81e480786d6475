"""Tutors repository layer."""

from __future__ import annotations

from collections.abc import Sequence
from decimal import Decimal
from uuid import UUID

from sqlalchemy import delete, func, select, update
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import utc_now
from app.core.enums import LessonCategoryEnum
from app.modules.booking.models import LessonCancellation, Rating, RescheduleRequest
from app.modules.lessons.models import Lesson, LessonMessage, LessonPayment
from app.modules.links.models import LinkToken
from app.modules.notifications.models import TutorNotification
from app.modules.scheduling.models import TutorAvailability
from app.modules.tutors.models import (
    CancellationPolicy,
    LessonPricing,
    LessonType,
    Tutor,
    TutorProfile,
    TutorRatingSummary,
    TutorServiceArea,
)


class TutorsRepository:
    """DB operations for tutors domain."""

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def get_tutor_by_id(self, tutor_id: UUID) -> Tutor | None:
        return await self.session.get(Tutor, tutor_id)

    async def get_tutor_by_phone(self, phone: str) -> Tutor | None:
        stmt = select(Tutor).where(Tutor.phone == phone)
        return await self.session.scalar(stmt)

    async def get_tutor_by_slug(self, slug: str) -> Tutor | None:
        stmt = select(Tutor).where(Tutor.slug == slug)
        return await self.session.scalar(stmt)

    async def create_tutor_with_defaults(self, phone: str, name: str, slug: str) -> Tutor:
        """Create tutor together with default policy and empty rating summary."""
        tutor = Tutor(phone=phone, name=name, slug=slug, is_active=True)
        self.session.add(tutor)
        await self.session.flush()
        self.session.add(CancellationPolicy(tutor_id=tutor.id, cutoff_hours=24, late_cancel_payable=True))
        self.session.add(TutorRatingSummary(tutor_id=tutor.id, avg_stars=Decimal("0"), rating_count=0))
        await self.session.flush()
        return tutor

    async def update_tutor_name(self, tutor: Tutor, name: str) -> Tutor:
        tutor.name = name
        await self.session.flush()
        return tutor

    async def get_profile(self, tutor_id: UUID) -> TutorProfile | None:
        return await self.session.get(TutorProfile, tutor_id)

    async def upsert_profile_bio(self, tutor_id: UUID, bio: str) -> None:
        stmt = pg_insert(TutorProfile).values(
            tutor_id=tutor_id,
            bio=bio,
            lesson_formats=["individual"],
            levels_supported=[],
        )
        stmt = stmt.on_conflict_do_update(
            index_elements=[TutorProfile.tutor_id],
            set_={"bio": stmt.excluded.bio},
        )
        await self.session.execute(stmt)

    async def list_lesson_types(self, tutor_id: UUID) -> list[LessonType]:
        stmt = (
            select(LessonType)
            .where(LessonType.tutor_id == tutor_id, LessonType.active.is_(True))
            .order_by(LessonType.label)
        )
        return list((await self.session.scalars(stmt)).all())

    async def get_active_lesson_type(self, lesson_type_id: UUID, tutor_id: UUID) -> LessonType | None:
        stmt = select(LessonType).where(
            LessonType.id == lesson_type_id,
            LessonType.tutor_id == tutor_id,
            LessonType.active.is_(True),
        )
        return await self.session.scalar(stmt)

    async def count_owned_lesson_types(self, lesson_type_ids: Sequence[UUID], tutor_id: UUID) -> int:
        stmt = select(func.count()).where(
            LessonType.id.in_(list(lesson_type_ids)),
            LessonType.tutor_id == tutor_id,
            LessonType.active.is_(True),
        )
        return int(await self.session.scalar(stmt) or 0)

    async def deactivate_lesson_types(self, tutor_id: UUID) -> None:
        """Retire current lesson types and their prices; lessons keep their references."""
        type_ids = select(LessonType.id).where(LessonType.tutor_id == tutor_id)
        await self.session.execute(
            update(LessonPricing)
            .where(LessonPricing.lesson_type_id.in_(type_ids))
            .values(active=False)
            .execution_options(synchronize_session=False),
        )
        await self.session.execute(
            update(LessonType)
            .where(LessonType.tutor_id == tutor_id)
            .values(active=False)
            .execution_options(synchronize_session=False),
        )

    async def create_lesson_type(
        self,
        tutor_id: UUID,
        category: LessonCategoryEnum,
        label: str,
        is_group_allowed: bool = False,
    ) -> LessonType:
        lesson_type = LessonType(
            tutor_id=tutor_id,
            category=category,
            label=label,
            is_group_allowed=is_group_allowed,
            active=True,
        )
        self.session.add(lesson_type)
        await self.session.flush()
        return lesson_type

    async def replace_service_areas(self, tutor_id: UUID, areas: Sequence[dict]) -> None:
        await self.session.execute(delete(TutorServiceArea).where(TutorServiceArea.tutor_id == tutor_id))
        for area in areas:
            self.session.add(TutorServiceArea(tutor_id=tutor_id, **area))
        await self.session.flush()

    async def list_service_areas(self, tutor_id: UUID) -> list[TutorServiceArea]:
        stmt = (
            select(TutorServiceArea)
            .where(TutorServiceArea.tutor_id == tutor_id)
            .order_by(TutorServiceArea.district_label)
        )
        return list((await self.session.scalars(stmt)).all())

    async def get_active_price(
        self,
        lesson_type_id: UUID,
        tutor_id: UUID,
        duration_minutes: int,
    ) -> LessonPricing | None:
        stmt = (
            select(LessonPricing)
            .join(LessonType, LessonType.id == LessonPricing.lesson_type_id)
            .where(
                LessonPricing.lesson_type_id == lesson_type_id,
                LessonPricing.duration_minutes == duration_minutes,
                LessonPricing.active.is_(True),
                LessonType.tutor_id == tutor_id,
                LessonType.active.is_(True),
            )
        )
        return await self.session.scalar(stmt)

    async def list_active_pricing(self, tutor_id: UUID) -> list[LessonPricing]:
        stmt = (
            select(LessonPricing)
            .join(LessonType, LessonType.id == LessonPricing.lesson_type_id)
            .where(
                LessonType.tutor_id == tutor_id,
                LessonType.active.is_(True),
                LessonPricing.active.is_(True),
            )
            .order_by(LessonPricing.duration_minutes)
        )
        return list((await self.session.scalars(stmt)).all())

    async def replace_pricing(
        self,
        lesson_type_ids: Sequence[UUID],
        items: Sequence[tuple[UUID, int, Decimal]],
    ) -> int:
        await self.session.execute(
            delete(LessonPricing).where(LessonPricing.lesson_type_id.in_(list(lesson_type_ids))),
        )
        for lesson_type_id, duration_minutes, price_amount in items:
            self.session.add(
                LessonPricing(
                    lesson_type_id=lesson_type_id,
                    duration_minutes=duration_minutes,
                    price_amount=price_amount,
                    active=True,
                ),
            )
        await self.session.flush()
        return len(items)

    async def get_cancellation_policy(self, tutor_id: UUID) -> CancellationPolicy | None:
        return await self.session.get(CancellationPolicy, tutor_id)

    async def upsert_cancellation_policy(
        self,
        tutor_id: UUID,
        cutoff_hours: int,
        late_cancel_payable: bool,
    ) -> None:
        stmt = pg_insert(CancellationPolicy).values(
            tutor_id=tutor_id,
            cutoff_hours=cutoff_hours,
            late_cancel_payable=late_cancel_payable,
        )
        stmt = stmt.on_conflict_do_update(
            index_elements=[CancellationPolicy.tutor_id],
            set_={
                "cutoff_hours": stmt.excluded.cutoff_hours,
                "late_cancel_payable": stmt.excluded.late_cancel_payable,
            },
        )
        await self.session.execute(stmt)

    async def get_rating_summary(self, tutor_id: UUID) -> TutorRatingSummary | None:
        return await self.session.get(TutorRatingSummary, tutor_id)

    async def rating_stats(self, tutor_id: UUID) -> tuple[Decimal | None, int]:
        """Average and count over every rating of a tutor."""
        stmt = select(func.avg(Rating.stars), func.count(Rating.id)).where(Rating.tutor_id == tutor_id)
        average, count = (await self.session.execute(stmt)).one()
        return average, int(count or 0)

    async def save_rating_summary(self, tutor_id: UUID, avg_stars: Decimal, rating_count: int) -> None:
        stmt = pg_insert(TutorRatingSummary).values(
            tutor_id=tutor_id,
            avg_stars=avg_stars,
            rating_count=rating_count,
            updated_at=utc_now(),
        )
        stmt = stmt.on_conflict_do_update(
            index_elements=[TutorRatingSummary.tutor_id],
            set_={
                "avg_stars": stmt.excluded.avg_stars,
                "rating_count": stmt.excluded.rating_count,
                "updated_at": stmt.excluded.updated_at,
            },
        )
        await self.session.execute(stmt)

    async def erase_tutor(self, tutor_id: UUID) -> None:
        """Delete every row owned by the tutor, children first."""
        lesson_ids = select(Lesson.id).where(Lesson.tutor_id == tutor_id)
        type_ids = select(LessonType.id).where(LessonType.tutor_id == tutor_id)

        statements = (
            delete(TutorServiceArea).where(TutorServiceArea.tutor_id == tutor_id),
            delete(TutorRatingSummary).where(TutorRatingSummary.tutor_id == tutor_id),
            delete(Rating).where(Rating.tutor_id == tutor_id),
            delete(LinkToken).where(LinkToken.lesson_id.in_(lesson_ids)),
            delete(RescheduleRequest).where(RescheduleRequest.lesson_id.in_(lesson_ids)),
            delete(LessonCancellation).where(LessonCancellation.lesson_id.in_(lesson_ids)),
            delete(LessonPayment).where(LessonPayment.lesson_id.in_(lesson_ids)),
            delete(LessonMessage).where(LessonMessage.lesson_id.in_(lesson_ids)),
            delete(TutorNotification).where(TutorNotification.tutor_id == tutor_id),
            delete(Lesson).where(Lesson.tutor_id == tutor_id),
            delete(LessonPricing).where(LessonPricing.lesson_type_id.in_(type_ids)),
            delete(LessonType).where(LessonType.tutor_id == tutor_id),
            delete(TutorAvailability).where(TutorAvailability.tutor_id == tutor_id),
            delete(CancellationPolicy).where(CancellationPolicy.tutor_id == tutor_id),
            delete(TutorProfile).where(TutorProfile.tutor_id == tutor_id),
            delete(Tutor).where(Tutor.id == tutor_id),
        )
        for stmt in statements:
            await self.session.execute(stmt.execution_options(synchronize_session=False))
