"""Notifications business logic layer."""

from __future__ import annotations

import logging
from uuid import UUID

from fastapi import Depends
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import get_db_session
from app.core.enums import NotificationTypeEnum
from app.core.metrics import record_notification_skipped
from app.modules.notifications.models import TutorNotification
from app.modules.notifications.repository import NotificationsRepository
from app.modules.notifications.schemas import NotificationMarkReadRequest

logger = logging.getLogger(__name__)

INBOX_LIMIT = 50


class NotificationsService:
    """Tutor inbox service."""

    def __init__(self, repository: NotificationsRepository) -> None:
        self.repository = repository

    async def notify_tutor(
        self,
        *,
        tutor_id: UUID,
        notification_type: NotificationTypeEnum,
        title: str,
        body: str,
        lesson_id: UUID | None = None,
    ) -> bool:
        """Store notification without failing the caller's transaction.

        The insert runs inside a savepoint; on database error only the
        savepoint is rolled back and False is returned.
        """
        try:
            async with self.repository.savepoint():
                await self.repository.create_notification(
                    tutor_id=tutor_id,
                    notification_type=notification_type,
                    title=title,
                    body=body,
                    lesson_id=lesson_id,
                )
        except SQLAlchemyError:
            logger.warning(
                "Tutor notification %s skipped for tutor %s",
                notification_type,
                tutor_id,
                exc_info=True,
            )
            record_notification_skipped(notification_type)
            return False
        return True

    async def list_inbox(self, tutor_id: UUID) -> tuple[list[TutorNotification], int]:
        """Return newest notifications and how many of them are unread."""
        items = await self.repository.list_recent_for_tutor(tutor_id, INBOX_LIMIT)
        unread = sum(1 for item in items if not item.read)
        return items, unread

    async def mark_read(self, tutor_id: UUID, payload: NotificationMarkReadRequest) -> int:
        """Mark notifications as read."""
        if payload.all:
            return await self.repository.mark_read(tutor_id, None)
        if not payload.ids:
            return 0
        return await self.repository.mark_read(tutor_id, payload.ids)


async def get_notifications_service(
    session: AsyncSession = Depends(get_db_session),
) -> NotificationsService:
    """Dependency provider for notifications service."""
    return NotificationsService(NotificationsRepository(session))
