"""Discovery API router."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Query

from app.modules.discovery.schemas import DiscoveryResult
from app.modules.discovery.service import DiscoveryService, build_filters, get_discovery_service

router = APIRouter(prefix="/public", tags=["discovery"])


@router.get("/discover", response_model=DiscoveryResult)
async def discover_tutors(
    category: str | None = Query(default=None),
    q: str | None = Query(default=None, max_length=128),
    min_rating: float | None = Query(default=None),
    available_today: bool = Query(default=False),
    lat: float | None = Query(default=None, ge=-90, le=90),
    lng: float | None = Query(default=None, ge=-180, le=180),
    sort: str | None = Query(default=None),
    service: DiscoveryService = Depends(get_discovery_service),
) -> DiscoveryResult:
    """Search active tutors."""
    filters = build_filters(
        category=category,
        text=q,
        min_rating=min_rating,
        available_today=available_today,
        latitude=lat,
        longitude=lng,
        sort=sort,
    )
    return DiscoveryResult(tutors=await service.search(filters))
