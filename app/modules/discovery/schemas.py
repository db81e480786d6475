"""Discovery schemas."""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from uuid import UUID

from pydantic import BaseModel, Field

from app.core.enums import DiscoverySortEnum, LessonCategoryEnum


@dataclass(frozen=True, slots=True)
class DiscoveryFilters:
    """Normalized search filters."""

    category: LessonCategoryEnum | None = None
    text: str | None = None
    min_rating: float | None = None
    available_today: bool = False
    latitude: float | None = None
    longitude: float | None = None
    sort: DiscoverySortEnum = DiscoverySortEnum.RATING

    @property
    def has_location(self) -> bool:
        return self.latitude is not None and self.longitude is not None


class SubjectRead(BaseModel):
    """Subject shown on a result card."""

    label: str
    category: LessonCategoryEnum


class RankedTutor(BaseModel):
    """One discovery result."""

    id: UUID
    name: str
    slug: str
    bio: str
    avg_stars: Decimal
    rating_count: int
    min_price: Decimal | None = None
    max_price: Decimal | None = None
    distance_km: Decimal | None = None
    subjects: list[SubjectRead] = Field(default_factory=list)
    available_today: bool


class DiscoveryResult(BaseModel):
    """Discovery response."""

    tutors: list[RankedTutor]
