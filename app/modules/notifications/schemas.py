"""Notifications schemas."""

from __future__ import annotations

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from app.core.enums import NotificationTypeEnum


class NotificationRead(BaseModel):
    """Tutor notification response schema."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    type: NotificationTypeEnum
    title: str
    body: str
    lesson_id: UUID | None
    read: bool
    created_at: datetime


class NotificationInbox(BaseModel):
    """Recent notifications plus unread counter."""

    notifications: list[NotificationRead]
    unread_count: int


class NotificationMarkReadRequest(BaseModel):
    """Mark notifications as read, either by ids or all at once."""

    ids: list[UUID] = Field(default_factory=list)
    all: bool = False


class NotificationMarkReadResult(BaseModel):
    """Result of a mark-as-read call."""

    success: bool = True
    updated: int
