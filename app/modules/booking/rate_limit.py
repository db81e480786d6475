"""Rate-limit guards for public booking endpoints."""

from __future__ import annotations

from uuid import UUID

from app.core.config import get_settings
from app.core.rate_limit import enforce_rate_limit


async def enforce_lesson_request_rate_limit(tutor_id: UUID) -> None:
    """Apply per-tutor limit on incoming lesson requests."""
    settings = get_settings()
    await enforce_rate_limit(
        f"booking:lesson_request:{tutor_id}",
        action="lesson request",
        max_requests=settings.rate_limit_lesson_request_requests,
    )


async def enforce_rating_rate_limit(lesson_id: UUID) -> None:
    """Apply per-lesson limit on rating submissions."""
    settings = get_settings()
    await enforce_rate_limit(
        f"booking:rating:{lesson_id}",
        action="rating",
        max_requests=settings.rate_limit_rating_requests,
    )
