"""Tutors API router."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Response

from app.modules.identity.router import clear_session_cookies
from app.modules.identity.schemas import SessionPrincipal
from app.modules.identity.service import get_current_tutor
from app.modules.tutors.schemas import (
    CancellationPolicyRead,
    CancellationPolicyUpdate,
    OnboardingRequest,
    OnboardingResult,
    PricingReplaceRequest,
    PricingReplaceResult,
    PublicTutorProfile,
    TutorProfileRead,
)
from app.modules.tutors.service import TutorsService, get_tutors_service

router = APIRouter(tags=["tutors"])


@router.get("/tutor/profile", response_model=TutorProfileRead)
async def get_profile(
    service: TutorsService = Depends(get_tutors_service),
    tutor: SessionPrincipal = Depends(get_current_tutor),
) -> TutorProfileRead:
    """Name, bio and expertise of the current tutor."""
    return await service.get_profile(tutor.tutor_id)


@router.post("/tutor/onboarding", response_model=OnboardingResult)
async def complete_onboarding(
    payload: OnboardingRequest,
    service: TutorsService = Depends(get_tutors_service),
    tutor: SessionPrincipal = Depends(get_current_tutor),
) -> OnboardingResult:
    """Save onboarding wizard answers."""
    count = await service.complete_onboarding(tutor.tutor_id, payload)
    return OnboardingResult(expertise_count=count)


@router.post("/tutor/pricing", response_model=PricingReplaceResult)
async def replace_pricing(
    payload: PricingReplaceRequest,
    service: TutorsService = Depends(get_tutors_service),
    tutor: SessionPrincipal = Depends(get_current_tutor),
) -> PricingReplaceResult:
    """Replace prices of the tutor's lesson types."""
    count = await service.replace_pricing(tutor.tutor_id, payload.prices)
    return PricingReplaceResult(count=count)


@router.get("/tutor/cancellation-policy", response_model=CancellationPolicyRead)
async def get_cancellation_policy(
    service: TutorsService = Depends(get_tutors_service),
    tutor: SessionPrincipal = Depends(get_current_tutor),
) -> CancellationPolicyRead:
    """Current late-cancellation policy."""
    return await service.get_cancellation_policy(tutor.tutor_id)


@router.put("/tutor/cancellation-policy", response_model=CancellationPolicyRead)
async def update_cancellation_policy(
    payload: CancellationPolicyUpdate,
    service: TutorsService = Depends(get_tutors_service),
    tutor: SessionPrincipal = Depends(get_current_tutor),
) -> CancellationPolicyRead:
    """Update late-cancellation policy."""
    return await service.update_cancellation_policy(tutor.tutor_id, payload)


@router.delete("/tutor/account")
async def delete_account(
    response: Response,
    service: TutorsService = Depends(get_tutors_service),
    tutor: SessionPrincipal = Depends(get_current_tutor),
) -> dict[str, bool]:
    """Erase the tutor account and sign out."""
    await service.erase_account(tutor.tutor_id)
    clear_session_cookies(response)
    return {"success": True}


@router.get("/public/tutors/{slug}", response_model=PublicTutorProfile)
async def get_public_profile(
    slug: str,
    service: TutorsService = Depends(get_tutors_service),
) -> PublicTutorProfile:
    """Public tutor profile."""
    return await service.get_public_profile(slug)
