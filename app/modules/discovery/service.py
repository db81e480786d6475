"""Discovery business logic layer."""

from __future__ import annotations

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import get_db_session
from app.core.enums import DiscoverySortEnum, LessonCategoryEnum
from app.modules.discovery.repository import DiscoveryRepository
from app.modules.discovery.schemas import DiscoveryFilters, RankedTutor, SubjectRead
from app.shared.utils import day_of_week, utc_now


def build_filters(
    *,
    category: str | None = None,
    text: str | None = None,
    min_rating: float | None = None,
    available_today: bool = False,
    latitude: float | None = None,
    longitude: float | None = None,
    sort: str | None = None,
) -> DiscoveryFilters:
    """Normalize raw query values; unknown category or sort values are ignored."""
    known_categories = {item.value for item in LessonCategoryEnum}
    known_sorts = {item.value for item in DiscoverySortEnum}
    cleaned_text = text.strip() if text else None
    return DiscoveryFilters(
        category=LessonCategoryEnum(category) if category in known_categories else None,
        text=cleaned_text or None,
        min_rating=min_rating if min_rating is not None and min_rating > 0 else None,
        available_today=available_today,
        latitude=latitude,
        longitude=longitude,
        sort=DiscoverySortEnum(sort) if sort in known_sorts else DiscoverySortEnum.RATING,
    )


class DiscoveryService:
    """Public tutor search."""

    def __init__(self, repository: DiscoveryRepository) -> None:
        self.repository = repository

    async def search(self, filters: DiscoveryFilters) -> list[RankedTutor]:
        rows = await self.repository.search(filters, day_of_week(utc_now()))
        subjects = await self.repository.list_subjects([row["id"] for row in rows])
        return [
            RankedTutor(
                **row,
                subjects=[
                    SubjectRead(label=label, category=category) for label, category in subjects.get(row["id"], [])
                ],
            )
            for row in rows
        ]


async def get_discovery_service(session: AsyncSession = Depends(get_db_session)) -> DiscoveryService:
    """Dependency provider for discovery service."""
    return DiscoveryService(DiscoveryRepository(session))
