"""Tutors business logic layer."""

from __future__ import annotations

import logging
from collections import defaultdict
from datetime import timedelta
from decimal import Decimal
from uuid import UUID

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import get_settings
from app.core.database import get_db_session
from app.modules.lessons.repository import LessonsRepository
from app.modules.scheduling.repository import SchedulingRepository
from app.modules.scheduling.service import build_week_view
from app.modules.tutors.models import Tutor
from app.modules.tutors.repository import TutorsRepository
from app.modules.tutors.schemas import (
    CancellationPolicyRead,
    CancellationPolicyUpdate,
    DistrictRead,
    ExpertiseRead,
    OnboardingRequest,
    PriceInput,
    PriceRead,
    PublicExpertiseRead,
    PublicTutorProfile,
    PublicTutorRead,
    TutorProfileRead,
)
from app.shared.exceptions import ForbiddenException, NotFoundException
from app.shared.utils import start_of_week, utc_now

logger = logging.getLogger(__name__)
settings = get_settings()

BIO_PREFIX = "Expert in: "


class TutorsService:
    """Tutor onboarding, pricing, policy and public profile."""

    def __init__(
        self,
        repository: TutorsRepository,
        scheduling_repository: SchedulingRepository,
        lessons_repository: LessonsRepository,
    ) -> None:
        self.repository = repository
        self.scheduling_repository = scheduling_repository
        self.lessons_repository = lessons_repository

    async def _get_tutor(self, tutor_id: UUID) -> Tutor:
        tutor = await self.repository.get_tutor_by_id(tutor_id)
        if tutor is None:
            raise NotFoundException("Tutor not found")
        return tutor

    async def complete_onboarding(self, tutor_id: UUID, payload: OnboardingRequest) -> int:
        """Set name, replace subjects and districts, rewrite bio."""
        tutor = await self._get_tutor(tutor_id)
        await self.repository.update_tutor_name(tutor, payload.name)
        await self.repository.deactivate_lesson_types(tutor_id)

        labels: list[str] = []
        for item in payload.lesson_types:
            await self.repository.create_lesson_type(
                tutor_id,
                item.category,
                item.label,
                is_group_allowed=item.is_group_allowed,
            )
            labels.append(item.label)

        await self.repository.replace_service_areas(
            tutor_id,
            [area.model_dump() for area in payload.service_areas],
        )
        await self.repository.upsert_profile_bio(tutor_id, BIO_PREFIX + ", ".join(labels))
        logger.info("Tutor %s onboarded with %s lesson types", tutor_id, len(labels))
        return len(labels)

    async def get_profile(self, tutor_id: UUID) -> TutorProfileRead:
        tutor = await self._get_tutor(tutor_id)
        profile = await self.repository.get_profile(tutor_id)
        lesson_types = await self.repository.list_lesson_types(tutor_id)
        return TutorProfileRead(
            name=tutor.name,
            bio=profile.bio if profile is not None else "",
            expertise=[ExpertiseRead.model_validate(item) for item in lesson_types],
        )

    async def replace_pricing(self, tutor_id: UUID, prices: list[PriceInput]) -> int:
        """Replace prices of the listed lesson types; non-positive amounts are dropped."""
        valid = [item for item in prices if item.amount > 0]
        lesson_type_ids = list(dict.fromkeys(item.lesson_type_id for item in valid))
        if not lesson_type_ids:
            return 0

        owned = await self.repository.count_owned_lesson_types(lesson_type_ids, tutor_id)
        if owned != len(lesson_type_ids):
            raise ForbiddenException("Invalid lesson type ID")

        return await self.repository.replace_pricing(
            lesson_type_ids,
            [(item.lesson_type_id, item.duration_minutes, item.amount) for item in valid],
        )

    async def get_cancellation_policy(self, tutor_id: UUID) -> CancellationPolicyRead:
        policy = await self.repository.get_cancellation_policy(tutor_id)
        if policy is None:
            return CancellationPolicyRead(
                cutoff_hours=settings.default_cancellation_cutoff_hours,
                late_cancel_payable=True,
            )
        return CancellationPolicyRead.model_validate(policy)

    async def update_cancellation_policy(
        self,
        tutor_id: UUID,
        payload: CancellationPolicyUpdate,
    ) -> CancellationPolicyRead:
        await self._get_tutor(tutor_id)
        await self.repository.upsert_cancellation_policy(
            tutor_id,
            payload.cutoff_hours,
            payload.late_cancel_payable,
        )
        return CancellationPolicyRead(
            cutoff_hours=payload.cutoff_hours,
            late_cancel_payable=payload.late_cancel_payable,
        )

    async def get_public_profile(self, slug: str) -> PublicTutorProfile:
        """Public profile with this week's grid; 404 for unknown or inactive tutors."""
        tutor = await self.repository.get_tutor_by_slug(slug)
        if tutor is None or not tutor.is_active:
            raise NotFoundException("Tutor not found")

        profile = await self.repository.get_profile(tutor.id)
        summary = await self.repository.get_rating_summary(tutor.id)
        lesson_types = await self.repository.list_lesson_types(tutor.id)
        pricing = await self.repository.list_active_pricing(tutor.id)
        districts = await self.repository.list_service_areas(tutor.id)

        prices_by_type: dict[UUID, list[PriceRead]] = defaultdict(list)
        for price in pricing:
            prices_by_type[price.lesson_type_id].append(
                PriceRead(
                    duration_minutes=price.duration_minutes,
                    price_amount=price.price_amount,
                    currency=price.currency,
                ),
            )

        week_start = start_of_week(utc_now())
        template = await self.scheduling_repository.list_template(tutor.id)
        lessons = await self.lessons_repository.list_lessons_in_window(
            tutor.id,
            week_start,
            week_start + timedelta(days=7),
        )
        week = build_week_view(template, lessons, week_start)

        return PublicTutorProfile(
            tutor=PublicTutorRead(
                id=tutor.id,
                name=tutor.name,
                slug=tutor.slug,
                bio=profile.bio if profile is not None else "",
                avg_stars=summary.avg_stars if summary is not None else Decimal("0.00"),
                rating_count=summary.rating_count if summary is not None else 0,
            ),
            expertise=[
                PublicExpertiseRead(
                    id=item.id,
                    label=item.label,
                    category=item.category,
                    pricing=prices_by_type.get(item.id, []),
                )
                for item in lesson_types
            ],
            slots=week.slots,
            booked={key: session.status for key, session in week.sessions.items()},
            districts=[DistrictRead.model_validate(item) for item in districts],
        )

    async def erase_account(self, tutor_id: UUID) -> None:
        """Delete the tutor and everything attached to it."""
        await self._get_tutor(tutor_id)
        await self.repository.erase_tutor(tutor_id)
        logger.info("Tutor %s erased", tutor_id)


async def get_tutors_service(session: AsyncSession = Depends(get_db_session)) -> TutorsService:
    """Dependency provider for tutors service."""
    return TutorsService(
        TutorsRepository(session),
        SchedulingRepository(session),
        LessonsRepository(session),
    )
