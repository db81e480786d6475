"""Parent link API router."""

from __future__ import annotations

from uuid import UUID

from fastapi import APIRouter, Depends, Query

from app.core.enums import LinkTokenPurposeEnum
from app.modules.links.schemas import LessonLinkDetails
from app.modules.links.service import LessonLinkService, get_lesson_link_service

router = APIRouter(prefix="/public/lessons", tags=["links"])


@router.get("/{lesson_id}/links/{purpose}", response_model=LessonLinkDetails)
async def peek_lesson_link(
    lesson_id: UUID,
    purpose: LinkTokenPurposeEnum,
    token: str = Query(default=""),
    service: LessonLinkService = Depends(get_lesson_link_service),
) -> LessonLinkDetails:
    """Describe the lesson behind a parent link without using the token."""
    return await service.peek(token, purpose, lesson_id)
