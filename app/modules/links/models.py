"""Link token ORM models."""

from __future__ import annotations

from datetime import datetime
from uuid import UUID

from sqlalchemy import DateTime, Enum as SAEnum, ForeignKey, String
from sqlalchemy.orm import Mapped, mapped_column

from app.core.database import Base, CreatedAtMixin, UUIDMixin
from app.core.enums import LinkTokenPurposeEnum


class LinkToken(UUIDMixin, CreatedAtMixin, Base):
    """Single-use parent capability for one lesson and one purpose.

    Only the SHA-256 hash of the raw token is stored.
    """

    __tablename__ = "link_tokens"

    lesson_id: Mapped[UUID] = mapped_column(
        ForeignKey("lessons.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    token_hash: Mapped[str] = mapped_column(String(64), unique=True, index=True, nullable=False)
    purpose: Mapped[LinkTokenPurposeEnum] = mapped_column(
        SAEnum(LinkTokenPurposeEnum, name="link_token_purpose_enum", native_enum=False),
        nullable=False,
    )
    expires_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    used_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
