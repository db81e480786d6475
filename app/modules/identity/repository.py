"""Identity repository layer."""

from __future__ import annotations

from datetime import datetime
from uuid import UUID

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.enums import RoleEnum
from app.modules.identity.models import OtpChallenge


class IdentityRepository:
    """DB operations for identity domain."""

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def create_challenge(
        self,
        phone: str,
        role: RoleEnum,
        code_hash: str,
        expires_at: datetime,
    ) -> OtpChallenge:
        challenge = OtpChallenge(phone=phone, role=role, code_hash=code_hash, expires_at=expires_at)
        self.session.add(challenge)
        await self.session.flush()
        return challenge

    async def get_active_challenge(self, phone: str, role: RoleEnum, now: datetime) -> OtpChallenge | None:
        stmt = (
            select(OtpChallenge)
            .where(
                OtpChallenge.phone == phone,
                OtpChallenge.role == role,
                OtpChallenge.consumed_at.is_(None),
                OtpChallenge.expires_at > now,
            )
            .order_by(OtpChallenge.created_at.desc())
            .limit(1)
        )
        return await self.session.scalar(stmt)

    async def record_failed_attempt(self, challenge_id: UUID) -> None:
        """Increment attempt counter and commit it.

        The caller raises right after, which rolls the request transaction
        back, so the counter is committed on its own first.
        """
        await self.session.execute(
            update(OtpChallenge)
            .where(OtpChallenge.id == challenge_id)
            .values(attempts=OtpChallenge.attempts + 1)
            .execution_options(synchronize_session=False),
        )
        await self.session.commit()

    async def consume_challenge(self, challenge_id: UUID, now: datetime) -> bool:
        result = await self.session.execute(
            update(OtpChallenge)
            .where(OtpChallenge.id == challenge_id, OtpChallenge.consumed_at.is_(None))
            .values(consumed_at=now)
            .execution_options(synchronize_session=False),
        )
        return getattr(result, "rowcount", 0) == 1
