"""Notifications API router."""

from __future__ import annotations

from fastapi import APIRouter, Depends

from app.modules.identity.schemas import SessionPrincipal
from app.modules.identity.service import get_current_tutor
from app.modules.notifications.schemas import (
    NotificationInbox,
    NotificationMarkReadRequest,
    NotificationMarkReadResult,
    NotificationRead,
)
from app.modules.notifications.service import NotificationsService, get_notifications_service

router = APIRouter(prefix="/tutor/notifications", tags=["notifications"])


@router.get("", response_model=NotificationInbox)
async def list_notifications(
    service: NotificationsService = Depends(get_notifications_service),
    tutor: SessionPrincipal = Depends(get_current_tutor),
) -> NotificationInbox:
    """Newest notifications of the current tutor."""
    items, unread = await service.list_inbox(tutor.tutor_id)
    return NotificationInbox(
        notifications=[NotificationRead.model_validate(item) for item in items],
        unread_count=unread,
    )


@router.patch("", response_model=NotificationMarkReadResult)
async def mark_notifications_read(
    payload: NotificationMarkReadRequest,
    service: NotificationsService = Depends(get_notifications_service),
    tutor: SessionPrincipal = Depends(get_current_tutor),
) -> NotificationMarkReadResult:
    """Mark notifications as read by ids or all."""
    updated = await service.mark_read(tutor.tutor_id, payload)
    return NotificationMarkReadResult(updated=updated)
