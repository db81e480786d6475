from __future__ import annotations

from datetime import UTC, datetime
from decimal import Decimal
from uuid import UUID, uuid4

import pytest
from sqlalchemy.dialects import postgresql

import app.modules.discovery.service as discovery_service_module
from app.core.enums import DiscoverySortEnum, LessonCategoryEnum
from app.modules.discovery.repository import build_search_statement
from app.modules.discovery.schemas import DiscoveryFilters
from app.modules.discovery.service import DiscoveryService, build_filters


def _sql(filters: DiscoveryFilters, today_dow: int = 1) -> str:
    return str(build_search_statement(filters, today_dow).compile(dialect=postgresql.dialect()))


def test_build_filters_ignores_unknown_values() -> None:
    filters = build_filters(category="cooking", text="  ", min_rating=0, sort="popularity")

    assert filters == DiscoveryFilters()


def test_build_filters_keeps_known_values() -> None:
    filters = build_filters(
        category="music",
        text=" Farah ",
        min_rating=4.0,
        available_today=True,
        latitude=33.89,
        longitude=35.5,
        sort="distance",
    )

    assert filters.category == LessonCategoryEnum.MUSIC
    assert filters.text == "Farah"
    assert filters.min_rating == 4.0
    assert filters.available_today is True
    assert filters.has_location is True
    assert filters.sort == DiscoverySortEnum.DISTANCE


def test_default_search_only_lists_active_tutors_by_rating() -> None:
    sql = _sql(DiscoveryFilters())

    assert "tutors.is_active IS true" in sql
    assert "acos" not in sql
    order_clause = sql.split("ORDER BY", 1)[1]
    assert "avg_stars" in order_clause
    assert "rating_count" in order_clause
    assert "LIMIT" in sql


def test_location_adds_rounded_distance() -> None:
    sql = _sql(DiscoveryFilters(latitude=33.89, longitude=35.5, sort=DiscoverySortEnum.DISTANCE))

    assert "acos" in sql
    assert "least" in sql
    assert "round(" in sql


def test_distance_sort_without_location_falls_back_to_rating() -> None:
    sql = _sql(DiscoveryFilters(sort=DiscoverySortEnum.DISTANCE))

    assert "acos" not in sql
    order_clause = sql.split("ORDER BY", 1)[1]
    assert "avg_stars" in order_clause
    assert "rating_count" in order_clause


@pytest.mark.parametrize("sort", [DiscoverySortEnum.PRICE_ASC, DiscoverySortEnum.PRICE_DESC])
def test_price_sorts_put_tutors_without_prices_last(sort: DiscoverySortEnum) -> None:
    sql = _sql(DiscoveryFilters(sort=sort))

    assert "min_price" in sql.split("ORDER BY", 1)[1]
    assert "NULLS LAST" in sql


def test_filters_are_combined() -> None:
    sql = _sql(
        DiscoveryFilters(
            category=LessonCategoryEnum.ACADEMIC,
            text="far",
            min_rating=4.0,
            available_today=True,
        ),
    )

    assert "lesson_types.category" in sql
    assert "tutor_availability.day_of_week" in sql
    assert "tutors.name" in sql.split("WHERE", 1)[1]


class FakeDiscoveryRepository:
    def __init__(self, rows: list[dict], subjects: dict[UUID, list[tuple[str, LessonCategoryEnum]]]) -> None:
        self.rows = rows
        self.subjects = subjects
        self.calls: list[tuple[DiscoveryFilters, int]] = []

    async def search(self, filters: DiscoveryFilters, today_dow: int) -> list[dict]:
        self.calls.append((filters, today_dow))
        return self.rows

    async def list_subjects(self, tutor_ids):
        return {tutor_id: self.subjects[tutor_id] for tutor_id in tutor_ids if tutor_id in self.subjects}


@pytest.mark.asyncio
async def test_service_attaches_subjects_and_passes_today(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(discovery_service_module, "utc_now", lambda: datetime(2026, 10, 25, tzinfo=UTC))
    tutor_id = uuid4()
    repository = FakeDiscoveryRepository(
        rows=[
            {
                "id": tutor_id,
                "name": "Farah Al-Fayad",
                "slug": "farah-fayad",
                "bio": "",
                "avg_stars": Decimal("4.50"),
                "rating_count": 12,
                "min_price": Decimal("20.00"),
                "max_price": Decimal("45.00"),
                "distance_km": None,
                "available_today": False,
            },
        ],
        subjects={tutor_id: [("Math", LessonCategoryEnum.ACADEMIC), ("Piano", LessonCategoryEnum.MUSIC)]},
    )

    results = await DiscoveryService(repository).search(DiscoveryFilters())

    assert repository.calls[0][1] == 0
    assert [item.label for item in results[0].subjects] == ["Math", "Piano"]
    assert results[0].min_price == Decimal("20.00")
