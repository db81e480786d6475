"""Scheduling API router."""

from __future__ import annotations

from datetime import datetime

from fastapi import APIRouter, Depends, Query

from app.modules.identity.schemas import SessionPrincipal
from app.modules.identity.service import get_current_tutor
from app.modules.scheduling.schemas import (
    AvailabilityOverview,
    AvailabilityReplaceRequest,
    AvailabilityReplaceResult,
    AvailabilitySlotRead,
)
from app.modules.scheduling.service import SchedulingService, get_scheduling_service

router = APIRouter(prefix="/tutor/availability", tags=["scheduling"])


@router.get("", response_model=AvailabilityOverview)
async def get_availability(
    week_start: datetime | None = Query(default=None),
    service: SchedulingService = Depends(get_scheduling_service),
    tutor: SessionPrincipal = Depends(get_current_tutor),
) -> AvailabilityOverview:
    """Weekly template and the week grid with booked sessions."""
    template = await service.get_weekly_template(tutor.tutor_id)
    week = await service.get_week_view(tutor.tutor_id, week_start)
    return AvailabilityOverview(
        template=[AvailabilitySlotRead.model_validate(item) for item in template],
        week=week,
    )


@router.post("", response_model=AvailabilityReplaceResult)
async def replace_availability(
    payload: AvailabilityReplaceRequest,
    service: SchedulingService = Depends(get_scheduling_service),
    tutor: SessionPrincipal = Depends(get_current_tutor),
) -> AvailabilityReplaceResult:
    """Replace the weekly availability template."""
    rows = await service.replace_weekly_template(tutor.tutor_id, payload.slots)
    return AvailabilityReplaceResult(count=len(rows))
