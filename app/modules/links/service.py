"""Parent link token service.

A link token is a bearer capability: whoever holds the raw value may
perform exactly one action (its purpose) on exactly one lesson, once,
before it expires, and only while the lesson is in the matching state.
"""

from __future__ import annotations

import logging
from datetime import datetime
from uuid import UUID

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import get_settings
from app.core.database import get_db_session
from app.core.enums import LessonStatusEnum, LinkTokenPurposeEnum
from app.core.metrics import record_link_token_redemption
from app.core.security import generate_link_token, hash_link_token
from app.modules.lessons.repository import LessonsRepository
from app.modules.links.models import LinkToken
from app.modules.links.repository import LinkTokensRepository
from app.modules.links.schemas import LessonLinkDetails
from app.shared.exceptions import InvalidLinkTokenException
from app.shared.utils import utc_now

settings = get_settings()
logger = logging.getLogger(__name__)

PURPOSE_LESSON_STATUS: dict[LinkTokenPurposeEnum, LessonStatusEnum] = {
    LinkTokenPurposeEnum.CANCEL: LessonStatusEnum.CONFIRMED,
    LinkTokenPurposeEnum.RESCHEDULE: LessonStatusEnum.CONFIRMED,
    LinkTokenPurposeEnum.RATE: LessonStatusEnum.COMPLETED,
}


class LinkTokenService:
    """Issue, redeem and consume parent link tokens."""

    def __init__(self, repository: LinkTokensRepository) -> None:
        self.repository = repository

    async def issue(self, lesson_id: UUID, purpose: LinkTokenPurposeEnum, expires_at: datetime) -> str:
        """Persist hash of a fresh token and return the raw value."""
        raw_token = generate_link_token()
        await self.repository.create_token(
            lesson_id=lesson_id,
            token_hash=hash_link_token(raw_token),
            purpose=purpose,
            expires_at=expires_at,
        )
        return raw_token

    async def redeem(self, raw_token: str, purpose: LinkTokenPurposeEnum, lesson_id: UUID) -> LinkToken:
        """Return the matching token row without consuming it."""
        if not raw_token:
            raise InvalidLinkTokenException()

        token = await self.repository.find_redeemable(
            token_hash=hash_link_token(raw_token),
            purpose=purpose,
            lesson_id=lesson_id,
            lesson_status=PURPOSE_LESSON_STATUS[purpose],
            now=utc_now(),
        )
        if token is None:
            record_link_token_redemption(purpose, "rejected")
            raise InvalidLinkTokenException()
        record_link_token_redemption(purpose, "accepted")
        return token

    async def consume(self, token: LinkToken) -> None:
        """Mark token used; a concurrent consumer makes this fail."""
        if not await self.repository.mark_used(token.id, utc_now()):
            record_link_token_redemption(token.purpose, "already_used")
            raise InvalidLinkTokenException()


class ParentLinkDispatcher:
    """Hand raw tokens to the parent as URLs.

    There is no SMS/WhatsApp gateway; links are written to the log.
    """

    def __init__(self, base_url: str | None = None) -> None:
        self.base_url = (base_url or settings.public_base_url).rstrip("/")

    def build_url(self, lesson_id: UUID, purpose: LinkTokenPurposeEnum, raw_token: str) -> str:
        return f"{self.base_url}/l/{lesson_id}/{purpose}/{raw_token}"

    def dispatch(self, lesson_id: UUID, tokens: dict[LinkTokenPurposeEnum, str]) -> dict[LinkTokenPurposeEnum, str]:
        urls = {purpose: self.build_url(lesson_id, purpose, raw) for purpose, raw in tokens.items()}
        for purpose, url in urls.items():
            logger.info("Parent %s link for lesson %s: %s", purpose, lesson_id, url)
        return urls


class LessonLinkService:
    """Read-only lookup behind the parent landing pages."""

    def __init__(self, token_service: LinkTokenService, lessons_repository: LessonsRepository) -> None:
        self.token_service = token_service
        self.lessons_repository = lessons_repository

    async def peek(self, raw_token: str, purpose: LinkTokenPurposeEnum, lesson_id: UUID) -> LessonLinkDetails:
        """Validate token and describe its lesson; the token stays unused."""
        await self.token_service.redeem(raw_token, purpose, lesson_id)
        card = await self.lessons_repository.get_lesson_card(lesson_id)
        if card is None:
            raise InvalidLinkTokenException()

        lesson, lesson_label, tutor_name, cutoff_hours = card
        return LessonLinkDetails(
            lesson_id=lesson.id,
            purpose=purpose,
            status=lesson.status,
            student_name=lesson.student_name,
            lesson_label=lesson_label,
            tutor_name=tutor_name,
            duration_minutes=lesson.duration_minutes,
            confirmed_start_at=lesson.confirmed_start_at,
            cutoff_hours=cutoff_hours if cutoff_hours is not None else settings.default_cancellation_cutoff_hours,
        )


async def get_lesson_link_service(session: AsyncSession = Depends(get_db_session)) -> LessonLinkService:
    """Dependency provider for link lookup service."""
    return LessonLinkService(
        token_service=LinkTokenService(LinkTokensRepository(session)),
        lessons_repository=LessonsRepository(session),
    )
