"""Notifications repository layer."""

from __future__ import annotations

from collections.abc import Sequence
from uuid import UUID

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession, AsyncSessionTransaction

from app.core.enums import NotificationTypeEnum
from app.modules.notifications.models import TutorNotification


class NotificationsRepository:
    """DB operations for notifications domain."""

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    def savepoint(self) -> AsyncSessionTransaction:
        """Open a SAVEPOINT so a failed insert does not poison the request transaction."""
        return self.session.begin_nested()

    async def create_notification(
        self,
        tutor_id: UUID,
        notification_type: NotificationTypeEnum,
        title: str,
        body: str,
        lesson_id: UUID | None,
    ) -> TutorNotification:
        notification = TutorNotification(
            tutor_id=tutor_id,
            type=notification_type,
            title=title,
            body=body,
            lesson_id=lesson_id,
        )
        self.session.add(notification)
        await self.session.flush()
        return notification

    async def list_recent_for_tutor(self, tutor_id: UUID, limit: int) -> list[TutorNotification]:
        stmt = (
            select(TutorNotification)
            .where(TutorNotification.tutor_id == tutor_id)
            .order_by(TutorNotification.created_at.desc())
            .limit(limit)
        )
        return list((await self.session.scalars(stmt)).all())

    async def mark_read(self, tutor_id: UUID, notification_ids: Sequence[UUID] | None) -> int:
        """Mark given notifications (or all when ids is None) as read."""
        stmt = update(TutorNotification).where(TutorNotification.tutor_id == tutor_id)
        if notification_ids is not None:
            stmt = stmt.where(TutorNotification.id.in_(list(notification_ids)))
        result = await self.session.execute(
            stmt.values(read=True).execution_options(synchronize_session=False),
        )
        return int(getattr(result, "rowcount", 0) or 0)
