from __future__ import annotations

from datetime import UTC, datetime, time
from decimal import Decimal
from types import SimpleNamespace
from uuid import UUID, uuid4

import pytest
from pydantic import ValidationError
from sqlalchemy.dialects import postgresql

import app.modules.tutors.service as tutors_service_module
from app.core.enums import LessonCategoryEnum, LessonStatusEnum
from app.modules.tutors.schemas import (
    CancellationPolicyUpdate,
    LessonTypeInput,
    OnboardingRequest,
    PriceInput,
    ServiceAreaInput,
)
from app.modules.tutors.repository import TutorsRepository
from app.modules.tutors.service import TutorsService
from app.shared.exceptions import ForbiddenException, NotFoundException


class FakeTutorsRepository:
    def __init__(self) -> None:
        self.tutor = SimpleNamespace(id=uuid4(), name="+9613123456", slug="tutor-abc", is_active=True)
        self.lesson_types: list[SimpleNamespace] = []
        self.service_areas: list[dict] = []
        self.bio: str | None = None
        self.policy: SimpleNamespace | None = None
        self.pricing: list[SimpleNamespace] = []
        self.pricing_calls: list[tuple[list[UUID], list[tuple]]] = []
        self.erased: list[UUID] = []

    async def get_tutor_by_id(self, tutor_id: UUID):
        return self.tutor if tutor_id == self.tutor.id else None

    async def get_tutor_by_slug(self, slug: str):
        return self.tutor if slug == self.tutor.slug else None

    async def update_tutor_name(self, tutor, name: str) -> None:
        tutor.name = name

    async def deactivate_lesson_types(self, tutor_id: UUID) -> None:
        for item in self.lesson_types:
            item.active = False

    async def create_lesson_type(self, tutor_id, category, label, is_group_allowed=False):
        item = SimpleNamespace(
            id=uuid4(),
            tutor_id=tutor_id,
            category=category,
            label=label,
            is_group_allowed=is_group_allowed,
            active=True,
        )
        self.lesson_types.append(item)
        return item

    async def list_lesson_types(self, tutor_id: UUID):
        return [item for item in self.lesson_types if item.active]

    async def replace_service_areas(self, tutor_id: UUID, areas: list[dict]) -> None:
        self.service_areas = areas

    async def list_service_areas(self, tutor_id: UUID):
        return [SimpleNamespace(**area) for area in self.service_areas]

    async def upsert_profile_bio(self, tutor_id: UUID, bio: str) -> None:
        self.bio = bio

    async def get_profile(self, tutor_id: UUID):
        return SimpleNamespace(bio=self.bio) if self.bio is not None else None

    async def count_owned_lesson_types(self, lesson_type_ids, tutor_id: UUID) -> int:
        owned = {item.id for item in self.lesson_types if item.active and item.tutor_id == tutor_id}
        return len([item for item in lesson_type_ids if item in owned])

    async def replace_pricing(self, lesson_type_ids, prices) -> int:
        self.pricing_calls.append((list(lesson_type_ids), list(prices)))
        return len(prices)

    async def list_active_pricing(self, tutor_id: UUID):
        return self.pricing

    async def get_cancellation_policy(self, tutor_id: UUID):
        return self.policy

    async def upsert_cancellation_policy(self, tutor_id, cutoff_hours, late_cancel_payable) -> None:
        self.policy = SimpleNamespace(cutoff_hours=cutoff_hours, late_cancel_payable=late_cancel_payable)

    async def get_rating_summary(self, tutor_id: UUID):
        return SimpleNamespace(avg_stars=Decimal("4.50"), rating_count=12)

    async def erase_tutor(self, tutor_id: UUID) -> None:
        self.erased.append(tutor_id)


class FakeSchedulingRepository:
    def __init__(self, rows: list[SimpleNamespace] | None = None) -> None:
        self.rows = rows or []

    async def list_template(self, tutor_id: UUID):
        return self.rows


class FakeLessonsRepository:
    def __init__(self, lessons: list[tuple[SimpleNamespace, str]] | None = None) -> None:
        self.lessons = lessons or []

    async def list_lessons_in_window(self, tutor_id, start, end):
        return self.lessons


def _service(
    repository: FakeTutorsRepository,
    *,
    template: list[SimpleNamespace] | None = None,
    lessons: list[tuple[SimpleNamespace, str]] | None = None,
) -> TutorsService:
    return TutorsService(repository, FakeSchedulingRepository(template), FakeLessonsRepository(lessons))


def _onboarding(*labels: str) -> OnboardingRequest:
    return OnboardingRequest(
        name="  Farah Al-Fayad ",
        lesson_types=[LessonTypeInput(category=LessonCategoryEnum.ACADEMIC, label=label) for label in labels],
        service_areas=[ServiceAreaInput(district_id="beirut-hamra", district_label="Hamra")],
    )


@pytest.mark.asyncio
async def test_onboarding_replaces_subjects_and_writes_bio() -> None:
    repository = FakeTutorsRepository()
    service = _service(repository)
    await service.complete_onboarding(repository.tutor.id, _onboarding("Physics"))

    count = await service.complete_onboarding(repository.tutor.id, _onboarding("Math", "Chemistry"))

    assert count == 2
    assert repository.tutor.name == "Farah Al-Fayad"
    assert repository.bio == "Expert in: Math, Chemistry"
    assert [item.label for item in await repository.list_lesson_types(repository.tutor.id)] == ["Math", "Chemistry"]
    assert repository.service_areas[0]["district_id"] == "beirut-hamra"


def test_onboarding_requires_name_and_subjects() -> None:
    with pytest.raises(ValidationError):
        OnboardingRequest(name=" a ", lesson_types=[LessonTypeInput(category="music", label="Oud")])
    with pytest.raises(ValidationError):
        OnboardingRequest(name="Farah", lesson_types=[])
    with pytest.raises(ValidationError):
        LessonTypeInput(category="music", label="   ")


@pytest.mark.asyncio
async def test_onboarding_unknown_tutor_is_not_found() -> None:
    service = _service(FakeTutorsRepository())

    with pytest.raises(NotFoundException):
        await service.complete_onboarding(uuid4(), _onboarding("Math"))


@pytest.mark.asyncio
async def test_pricing_drops_non_positive_amounts() -> None:
    repository = FakeTutorsRepository()
    service = _service(repository)
    math = await repository.create_lesson_type(repository.tutor.id, LessonCategoryEnum.ACADEMIC, "Math")

    count = await service.replace_pricing(
        repository.tutor.id,
        [
            PriceInput(lesson_type_id=math.id, duration_minutes=45, amount=Decimal("20")),
            PriceInput(lesson_type_id=math.id, duration_minutes=60, amount=Decimal("0")),
        ],
    )

    assert count == 1
    assert repository.pricing_calls == [([math.id], [(math.id, 45, Decimal("20"))])]


@pytest.mark.asyncio
async def test_pricing_with_only_zero_amounts_writes_nothing() -> None:
    repository = FakeTutorsRepository()
    service = _service(repository)

    count = await service.replace_pricing(
        repository.tutor.id,
        [PriceInput(lesson_type_id=uuid4(), duration_minutes=45, amount=Decimal("0"))],
    )

    assert count == 0
    assert repository.pricing_calls == []


@pytest.mark.asyncio
async def test_pricing_for_foreign_lesson_type_is_forbidden() -> None:
    repository = FakeTutorsRepository()
    service = _service(repository)
    math = await repository.create_lesson_type(repository.tutor.id, LessonCategoryEnum.ACADEMIC, "Math")

    with pytest.raises(ForbiddenException):
        await service.replace_pricing(
            repository.tutor.id,
            [
                PriceInput(lesson_type_id=math.id, duration_minutes=45, amount=Decimal("20")),
                PriceInput(lesson_type_id=uuid4(), duration_minutes=45, amount=Decimal("20")),
            ],
        )

    assert repository.pricing_calls == []


@pytest.mark.asyncio
async def test_cancellation_policy_defaults_then_updates() -> None:
    repository = FakeTutorsRepository()
    service = _service(repository)

    default = await service.get_cancellation_policy(repository.tutor.id)
    assert (default.cutoff_hours, default.late_cancel_payable) == (24, True)

    await service.update_cancellation_policy(
        repository.tutor.id,
        CancellationPolicyUpdate(cutoff_hours=12, late_cancel_payable=False),
    )
    updated = await service.get_cancellation_policy(repository.tutor.id)
    assert (updated.cutoff_hours, updated.late_cancel_payable) == (12, False)


def test_cancellation_policy_rejects_out_of_range_cutoff() -> None:
    with pytest.raises(ValidationError):
        CancellationPolicyUpdate(cutoff_hours=169)
    with pytest.raises(ValidationError):
        CancellationPolicyUpdate(cutoff_hours=-1)


@pytest.mark.asyncio
async def test_public_profile_groups_pricing_and_marks_booked_cells(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(tutors_service_module, "utc_now", lambda: datetime(2026, 10, 20, 9, 0, tzinfo=UTC))
    repository = FakeTutorsRepository()
    math = await repository.create_lesson_type(repository.tutor.id, LessonCategoryEnum.ACADEMIC, "Math")
    repository.pricing = [
        SimpleNamespace(lesson_type_id=math.id, duration_minutes=45, price_amount=Decimal("20"), currency="USD"),
        SimpleNamespace(lesson_type_id=math.id, duration_minutes=60, price_amount=Decimal("25"), currency="USD"),
    ]
    lesson = SimpleNamespace(
        id=uuid4(),
        status=LessonStatusEnum.REQUESTED,
        student_name="Maya",
        requested_start_at=datetime(2026, 10, 20, 17, 0, tzinfo=UTC),
        confirmed_start_at=None,
    )
    template = [SimpleNamespace(day_of_week=2, start_time_local=time(16, 0), end_time_local=time(18, 0))]
    service = _service(repository, template=template, lessons=[(lesson, "Math")])

    profile = await service.get_public_profile("tutor-abc")

    assert profile.tutor.avg_stars == Decimal("4.50")
    assert [price.duration_minutes for price in profile.expertise[0].pricing] == [45, 60]
    assert profile.slots == {"2-16:00": True, "2-17:00": True}
    assert profile.booked == {"2-17:00": "pending"}


@pytest.mark.asyncio
async def test_public_profile_of_inactive_tutor_is_not_found() -> None:
    repository = FakeTutorsRepository()
    repository.tutor.is_active = False
    service = _service(repository)

    with pytest.raises(NotFoundException):
        await service.get_public_profile("tutor-abc")
    with pytest.raises(NotFoundException):
        await service.get_public_profile("missing")


@pytest.mark.asyncio
async def test_erase_account_deletes_tutor() -> None:
    repository = FakeTutorsRepository()
    service = _service(repository)

    await service.erase_account(repository.tutor.id)

    assert repository.erased == [repository.tutor.id]


class CapturingSession:
    def __init__(self, row: tuple) -> None:
        self.row = row
        self.statements: list = []

    async def execute(self, stmt):
        self.statements.append(stmt)
        return SimpleNamespace(one=lambda: self.row)


@pytest.mark.asyncio
async def test_rating_stats_averages_every_rating_of_the_tutor() -> None:
    session = CapturingSession((Decimal("4.0000"), 3))
    repository = TutorsRepository(session)
    tutor_id = uuid4()

    average, count = await repository.rating_stats(tutor_id)

    assert (average, count) == (Decimal("4.0000"), 3)
    sql = str(session.statements[0].compile(dialect=postgresql.dialect()))
    assert "avg(ratings.stars)" in sql
    where_clause = sql.split("WHERE", 1)[1]
    assert "ratings.tutor_id =" in where_clause
    assert " AND " not in where_clause
