"""Identity business logic layer."""

from __future__ import annotations

import logging
from datetime import timedelta
from uuid import UUID

from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import get_settings
from app.core.database import get_db_session
from app.core.enums import RoleEnum
from app.core.security import (
    create_session_token,
    decode_session_token,
    generate_otp_code,
    hash_otp_code,
    verify_otp_code,
)
from app.modules.identity.repository import IdentityRepository
from app.modules.identity.schemas import SessionPrincipal
from app.modules.tutors.models import Tutor
from app.modules.tutors.repository import TutorsRepository
from app.shared.exceptions import NotFoundException, UnauthorizedException
from app.shared.utils import to_base36, utc_now

settings = get_settings()
logger = logging.getLogger(__name__)

NEW_TUTOR_NAME = "New Tutor"


def generate_tutor_slug(phone: str, now_ms: int) -> str:
    """Build slug like ``tutor-123456-lq2x8k0`` from phone tail and time."""
    digits = "".join(ch for ch in phone if ch.isdigit())
    return f"tutor-{digits[-6:]}-{to_base36(now_ms)}"


def student_user_id(phone: str) -> str:
    """Deterministic parent id derived from the last 8 phone digits."""
    digits = "".join(ch for ch in phone if ch.isdigit())
    return f"student_{digits[-8:]}"


def resolve_locale(requested: str | None) -> str:
    """Return requested locale when supported, default otherwise."""
    if requested and requested in settings.supported_locales:
        return requested
    return settings.default_locale


class IdentityService:
    """Phone/OTP sign-in and session resolution."""

    def __init__(
        self,
        repository: IdentityRepository,
        tutors_repository: TutorsRepository,
    ) -> None:
        self.repository = repository
        self.tutors_repository = tutors_repository

    async def _ensure_tutor(self, phone: str) -> Tutor:
        tutor = await self.tutors_repository.get_tutor_by_phone(phone)
        if tutor is not None:
            return tutor

        now = utc_now()
        tutor = await self.tutors_repository.create_tutor_with_defaults(
            phone=phone,
            name=NEW_TUTOR_NAME,
            slug=generate_tutor_slug(phone, int(now.timestamp() * 1000)),
        )
        logger.info("Created tutor %s for new phone sign-in", tutor.id)
        return tutor

    async def send_otp(self, phone: str, role: RoleEnum) -> int:
        """Issue one-time code and return its lifetime in seconds.

        Delivery is stubbed: the code is written to the application log.
        """
        if role == RoleEnum.TUTOR:
            await self._ensure_tutor(phone)

        code = generate_otp_code()
        expires_at = utc_now() + timedelta(minutes=settings.otp_ttl_minutes)
        await self.repository.create_challenge(
            phone=phone,
            role=role,
            code_hash=hash_otp_code(code),
            expires_at=expires_at,
        )
        logger.info("OTP for %s (%s): %s", phone, role, code)
        return settings.otp_ttl_minutes * 60

    async def verify_otp(
        self,
        phone: str,
        code: str,
        role: RoleEnum,
        locale: str | None,
    ) -> tuple[SessionPrincipal, str]:
        """Check code and return principal plus signed session token."""
        now = utc_now()
        challenge = await self.repository.get_active_challenge(phone, role, now)
        if challenge is None or challenge.attempts >= settings.otp_max_attempts:
            raise UnauthorizedException("Invalid or expired code")

        if not verify_otp_code(code, challenge.code_hash):
            await self.repository.record_failed_attempt(challenge.id)
            raise UnauthorizedException("Invalid or expired code")

        if not await self.repository.consume_challenge(challenge.id, now):
            raise UnauthorizedException("Invalid or expired code")

        if role == RoleEnum.TUTOR:
            tutor = await self.tutors_repository.get_tutor_by_phone(phone)
            if tutor is None:
                raise NotFoundException("Tutor not found")
            user_id = str(tutor.id)
        else:
            user_id = student_user_id(phone)

        principal = SessionPrincipal(user_id=user_id, role=role, locale=resolve_locale(locale))
        token = create_session_token(principal.user_id, principal.role, principal.locale)
        return principal, token


def authenticate(credential: str | None) -> SessionPrincipal:
    """Resolve session credential into principal or raise 401."""
    if not credential:
        raise UnauthorizedException("Authentication required")

    payload = decode_session_token(credential)
    user_id = payload.get("sub")
    role = payload.get("role")
    if not user_id or role not in {item.value for item in RoleEnum}:
        raise UnauthorizedException("Invalid session")

    return SessionPrincipal(
        user_id=str(user_id),
        role=RoleEnum(role),
        locale=resolve_locale(payload.get("locale")),
    )


def _extract_credential(request: Request) -> str | None:
    cookie_value = request.cookies.get(settings.session_cookie_name)
    if cookie_value:
        return cookie_value

    authorization = request.headers.get("authorization", "")
    scheme, _, value = authorization.partition(" ")
    if scheme.lower() == "bearer" and value.strip():
        return value.strip()
    return None


async def get_identity_service(session: AsyncSession = Depends(get_db_session)) -> IdentityService:
    """Dependency to provide identity service."""
    return IdentityService(IdentityRepository(session), TutorsRepository(session))


async def get_current_principal(request: Request) -> SessionPrincipal:
    """Resolve caller from session cookie or bearer header."""
    return authenticate(_extract_credential(request))


def require_roles(*roles: RoleEnum):
    """Dependency factory for role-based access."""

    async def _checker(principal: SessionPrincipal = Depends(get_current_principal)) -> SessionPrincipal:
        if principal.role not in roles:
            raise UnauthorizedException("Operation not permitted for your role")
        return principal

    return _checker


async def get_current_tutor(
    principal: SessionPrincipal = Depends(require_roles(RoleEnum.TUTOR)),
) -> SessionPrincipal:
    """Require tutor session with a well-formed tutor id."""
    try:
        UUID(principal.user_id)
    except ValueError as exc:
        raise UnauthorizedException("Invalid session") from exc
    return principal
