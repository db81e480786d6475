"""Identity schemas."""

from __future__ import annotations

from dataclasses import dataclass
from uuid import UUID

from pydantic import BaseModel, Field, field_validator

from app.core.enums import RoleEnum

PHONE_PATTERN = r"^\+?[0-9]{8,15}$"


def normalize_phone(value: str) -> str:
    """Strip spaces, dashes and parentheses from a phone number."""
    return "".join(ch for ch in value if ch not in " -()")


class OtpSendRequest(BaseModel):
    """Request a one-time code."""

    phone: str = Field(pattern=PHONE_PATTERN)
    role: RoleEnum = RoleEnum.TUTOR

    @field_validator("phone", mode="before")
    @classmethod
    def clean_phone(cls, value: object) -> object:
        if isinstance(value, str):
            return normalize_phone(value)
        return value


class OtpSendResponse(BaseModel):
    """One-time code issued."""

    success: bool = True
    expires_in_seconds: int


class OtpVerifyRequest(OtpSendRequest):
    """Exchange a one-time code for a session."""

    code: str = Field(pattern=r"^[0-9]{6}$")
    locale: str | None = Field(default=None, max_length=8)


class SessionRead(BaseModel):
    """Current session details."""

    authenticated: bool = True
    user_id: str
    role: RoleEnum
    locale: str


@dataclass(frozen=True)
class SessionPrincipal:
    """Resolved caller identity."""

    user_id: str
    role: RoleEnum
    locale: str

    @property
    def tutor_id(self) -> UUID:
        return UUID(self.user_id)
