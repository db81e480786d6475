"""Seed idempotent demo data for local/non-production environments."""

from __future__ import annotations

import argparse
import asyncio
from dataclasses import dataclass
from decimal import Decimal

from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import get_settings
from app.core.database import SessionLocal, close_engine
from app.core.enums import LessonCategoryEnum
from app.modules.lessons.repository import LessonsRepository
from app.modules.scheduling.repository import SchedulingRepository
from app.modules.scheduling.schemas import AvailabilitySlotInput
from app.modules.scheduling.service import SchedulingService
from app.modules.tutors.models import Tutor
from app.modules.tutors.repository import TutorsRepository
from app.modules.tutors.schemas import PriceInput
from app.modules.tutors.service import TutorsService

DEMO_TUTOR_NAME = "Farah Al-Fayad"
DEMO_TUTOR_PHONE = "+9613123456"
DEMO_TUTOR_SLUG = "farah-fayad"
DEMO_TUTOR_LOCATION = (33.8938, 35.5018)
DEMO_TUTOR_BIO = "Experienced and patient tutor specializing in Math and Music for all ages."

DEMO_RATING = (Decimal("4.50"), 12)
DEMO_CUTOFF_HOURS = 24

DEMO_LESSON_TYPES = (
    (LessonCategoryEnum.ACADEMIC, "Math", ((45, Decimal("20")), (60, Decimal("25")))),
    (LessonCategoryEnum.MUSIC, "Piano", ((30, Decimal("25")), (60, Decimal("45")))),
)

DEMO_AVAILABILITY = (
    (1, "16:00", "19:00"),
    (3, "15:00", "18:00"),
    (5, "14:00", "17:00"),
)


@dataclass(slots=True)
class SeedStats:
    tutor_created: bool = False
    tutor_id: str | None = None
    lesson_types_created: int = 0
    prices_written: int = 0
    availability_slots: int = 0


async def _ensure_tutor(repository: TutorsRepository) -> tuple[Tutor, bool]:
    tutor = await repository.get_tutor_by_phone(DEMO_TUTOR_PHONE)
    created = False
    if tutor is None:
        tutor = await repository.create_tutor_with_defaults(DEMO_TUTOR_PHONE, DEMO_TUTOR_NAME, DEMO_TUTOR_SLUG)
        created = True
    else:
        await repository.update_tutor_name(tutor, DEMO_TUTOR_NAME)

    tutor.latitude, tutor.longitude = DEMO_TUTOR_LOCATION
    tutor.is_active = True
    await repository.upsert_profile_bio(tutor.id, DEMO_TUTOR_BIO)
    await repository.upsert_cancellation_policy(tutor.id, DEMO_CUTOFF_HOURS, True)
    if created:
        await repository.save_rating_summary(tutor.id, *DEMO_RATING)
    return tutor, created


async def _ensure_lesson_types(repository: TutorsRepository, tutor: Tutor) -> tuple[list[PriceInput], int]:
    existing = {item.label: item for item in await repository.list_lesson_types(tutor.id)}
    prices: list[PriceInput] = []
    created = 0
    for category, label, price_points in DEMO_LESSON_TYPES:
        lesson_type = existing.get(label)
        if lesson_type is None:
            lesson_type = await repository.create_lesson_type(tutor.id, category, label)
            created += 1
        prices.extend(
            PriceInput(lesson_type_id=lesson_type.id, duration_minutes=duration, amount=amount)
            for duration, amount in price_points
        )
    return prices, created


async def _seed(session: AsyncSession, stats: SeedStats) -> None:
    tutors_repository = TutorsRepository(session)
    scheduling_repository = SchedulingRepository(session)
    lessons_repository = LessonsRepository(session)
    tutors_service = TutorsService(tutors_repository, scheduling_repository, lessons_repository)
    scheduling_service = SchedulingService(scheduling_repository, lessons_repository)

    tutor, stats.tutor_created = await _ensure_tutor(tutors_repository)
    stats.tutor_id = str(tutor.id)

    prices, stats.lesson_types_created = await _ensure_lesson_types(tutors_repository, tutor)
    stats.prices_written = await tutors_service.replace_pricing(tutor.id, prices)

    slots = await scheduling_service.replace_weekly_template(
        tutor.id,
        [AvailabilitySlotInput(day_of_week=day, start_time=start, end_time=end) for day, start, end in DEMO_AVAILABILITY],
    )
    stats.availability_slots = len(slots)


async def _run_seed(*, allow_production: bool) -> SeedStats:
    settings = get_settings()
    app_env = settings.app_env.strip().lower()
    if app_env in {"production", "prod"} and not allow_production:
        raise RuntimeError(
            "Refusing to seed demo data in production. "
            "Re-run with --allow-production only if you are absolutely sure.",
        )

    stats = SeedStats()

    async with SessionLocal() as session:
        try:
            await _seed(session, stats)
            await session.commit()
        except Exception:
            await session.rollback()
            raise

    return stats


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description=(
            "Seed idempotent demo data for Rizq (demo tutor, lesson types, "
            "pricing, weekly availability)."
        ),
    )
    parser.add_argument(
        "--allow-production",
        action="store_true",
        help="Allow seeding even when APP_ENV is production/prod.",
    )
    return parser


def _print_summary(stats: SeedStats) -> None:
    print("Demo seed completed.")
    print(f"- Tutor created: {stats.tutor_created}")
    print(f"- Tutor id: {stats.tutor_id}")
    print(f"- Lesson types created: {stats.lesson_types_created}")
    print(f"- Prices written: {stats.prices_written}")
    print(f"- Availability slots: {stats.availability_slots}")
    print("")
    print("Demo tutor (non-production only):")
    print(f"- phone: {DEMO_TUTOR_PHONE}")
    print(f"- public profile slug: {DEMO_TUTOR_SLUG}")


def main() -> int:
    parser = _build_parser()
    args = parser.parse_args()

    try:
        stats = asyncio.run(_run_seed(allow_production=args.allow_production))
    except Exception as exc:
        print(f"Demo seed failed: {exc}")
        return 1
    finally:
        asyncio.run(close_engine())

    _print_summary(stats)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
