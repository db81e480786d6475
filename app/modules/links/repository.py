"""Link tokens repository layer."""

from __future__ import annotations

from datetime import datetime
from uuid import UUID

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.enums import LessonStatusEnum, LinkTokenPurposeEnum
from app.modules.lessons.models import Lesson
from app.modules.links.models import LinkToken


class LinkTokensRepository:
    """DB operations for parent link tokens."""

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def create_token(
        self,
        lesson_id: UUID,
        token_hash: str,
        purpose: LinkTokenPurposeEnum,
        expires_at: datetime,
    ) -> LinkToken:
        token = LinkToken(
            lesson_id=lesson_id,
            token_hash=token_hash,
            purpose=purpose,
            expires_at=expires_at,
        )
        self.session.add(token)
        await self.session.flush()
        return token

    async def find_redeemable(
        self,
        token_hash: str,
        purpose: LinkTokenPurposeEnum,
        lesson_id: UUID,
        lesson_status: LessonStatusEnum,
        now: datetime,
    ) -> LinkToken | None:
        stmt = (
            select(LinkToken)
            .join(Lesson, Lesson.id == LinkToken.lesson_id)
            .where(
                LinkToken.token_hash == token_hash,
                LinkToken.purpose == purpose,
                LinkToken.lesson_id == lesson_id,
                LinkToken.used_at.is_(None),
                LinkToken.expires_at > now,
                Lesson.status == lesson_status,
            )
        )
        return await self.session.scalar(stmt)

    async def mark_used(self, token_id: UUID, now: datetime) -> bool:
        """Set used_at only if still unused; False means someone else won."""
        result = await self.session.execute(
            update(LinkToken)
            .where(LinkToken.id == token_id, LinkToken.used_at.is_(None))
            .values(used_at=now)
            .execution_options(synchronize_session=False),
        )
        return getattr(result, "rowcount", 0) == 1
