"""Discovery repository layer."""

from __future__ import annotations

from collections.abc import Sequence
from uuid import UUID

from sqlalchemy import Numeric, Select, and_, case, cast, exists, func, literal, null, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.sql.elements import ColumnElement

from app.core.enums import DiscoverySortEnum, LessonCategoryEnum
from app.modules.discovery.schemas import DiscoveryFilters
from app.modules.scheduling.models import TutorAvailability
from app.modules.tutors.models import LessonPricing, LessonType, Tutor, TutorProfile, TutorRatingSummary

EARTH_RADIUS_KM = 6371
RESULT_LIMIT = 50


def haversine_km(latitude: float, longitude: float) -> ColumnElement:
    """Great-circle distance from the point to the tutor, rounded to 0.1 km; NULL without coordinates."""
    origin_lat = func.radians(literal(latitude))
    tutor_lat = func.radians(Tutor.latitude)
    delta_lng = func.radians(Tutor.longitude) - func.radians(literal(longitude))
    cosine = func.cos(origin_lat) * func.cos(tutor_lat) * func.cos(delta_lng) + func.sin(origin_lat) * func.sin(
        tutor_lat,
    )
    distance = EARTH_RADIUS_KM * func.acos(func.least(literal(1.0), cosine))
    return case(
        (
            and_(Tutor.latitude.is_not(None), Tutor.longitude.is_not(None)),
            func.round(cast(distance, Numeric), 1),
        ),
        else_=None,
    )


def build_search_statement(filters: DiscoveryFilters, today_dow: int) -> Select:
    """Compose the ranked tutor search; filters are AND-ed."""
    price_stats = (
        select(
            LessonType.tutor_id.label("tutor_id"),
            func.min(LessonPricing.price_amount).label("min_price"),
            func.max(LessonPricing.price_amount).label("max_price"),
        )
        .join(LessonPricing, LessonPricing.lesson_type_id == LessonType.id)
        .where(LessonType.active.is_(True), LessonPricing.active.is_(True))
        .group_by(LessonType.tutor_id)
        .subquery()
    )

    avg_stars = func.coalesce(TutorRatingSummary.avg_stars, 0)
    rating_count = func.coalesce(TutorRatingSummary.rating_count, 0)
    available_today = exists().where(
        TutorAvailability.tutor_id == Tutor.id,
        TutorAvailability.day_of_week == today_dow,
    )
    distance = haversine_km(filters.latitude, filters.longitude) if filters.has_location else None

    stmt = (
        select(
            Tutor.id,
            Tutor.name,
            Tutor.slug,
            func.coalesce(TutorProfile.bio, "").label("bio"),
            avg_stars.label("avg_stars"),
            rating_count.label("rating_count"),
            price_stats.c.min_price,
            price_stats.c.max_price,
            (distance if distance is not None else cast(null(), Numeric)).label("distance_km"),
            available_today.label("available_today"),
        )
        .outerjoin(TutorProfile, TutorProfile.tutor_id == Tutor.id)
        .outerjoin(TutorRatingSummary, TutorRatingSummary.tutor_id == Tutor.id)
        .outerjoin(price_stats, price_stats.c.tutor_id == Tutor.id)
        .where(Tutor.is_active.is_(True))
    )

    if filters.category is not None:
        stmt = stmt.where(
            exists().where(
                LessonType.tutor_id == Tutor.id,
                LessonType.active.is_(True),
                LessonType.category == filters.category,
            ),
        )
    if filters.text:
        stmt = stmt.where(Tutor.name.icontains(filters.text, autoescape=True))
    if filters.min_rating is not None and filters.min_rating > 0:
        stmt = stmt.where(avg_stars >= filters.min_rating)
    if filters.available_today:
        stmt = stmt.where(available_today)

    if filters.sort == DiscoverySortEnum.PRICE_ASC:
        stmt = stmt.order_by(price_stats.c.min_price.asc().nulls_last())
    elif filters.sort == DiscoverySortEnum.PRICE_DESC:
        stmt = stmt.order_by(price_stats.c.min_price.desc().nulls_last())
    elif filters.sort == DiscoverySortEnum.DISTANCE and distance is not None:
        stmt = stmt.order_by(distance.asc().nulls_last())
    else:
        stmt = stmt.order_by(avg_stars.desc(), rating_count.desc())

    return stmt.order_by(Tutor.name).limit(RESULT_LIMIT)


class DiscoveryRepository:
    """Read-only tutor search queries."""

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def search(self, filters: DiscoveryFilters, today_dow: int) -> list[dict]:
        result = await self.session.execute(build_search_statement(filters, today_dow))
        return [dict(row) for row in result.mappings().all()]

    async def list_subjects(
        self,
        tutor_ids: Sequence[UUID],
    ) -> dict[UUID, list[tuple[str, LessonCategoryEnum]]]:
        """Active subjects per tutor, ordered by label."""
        if not tutor_ids:
            return {}
        stmt = (
            select(LessonType.tutor_id, LessonType.label, LessonType.category)
            .where(LessonType.tutor_id.in_(list(tutor_ids)), LessonType.active.is_(True))
            .distinct()
            .order_by(LessonType.tutor_id, LessonType.label)
        )
        subjects: dict[UUID, list[tuple[str, LessonCategoryEnum]]] = {}
        for tutor_id, label, category in (await self.session.execute(stmt)).all():
            subjects.setdefault(tutor_id, []).append((label, category))
        return subjects
