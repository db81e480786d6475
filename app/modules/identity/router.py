"""Identity API router."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Response

from app.core.config import get_settings
from app.modules.identity.rate_limit import enforce_otp_send_rate_limit
from app.modules.identity.schemas import (
    OtpSendRequest,
    OtpSendResponse,
    OtpVerifyRequest,
    SessionPrincipal,
    SessionRead,
)
from app.modules.identity.service import IdentityService, get_current_principal, get_identity_service

router = APIRouter(prefix="/auth", tags=["identity"])
settings = get_settings()

LOCALE_COOKIE_MAX_AGE = 365 * 24 * 3600


def _is_secure_cookie() -> bool:
    return settings.app_env.strip().lower() in {"production", "prod"}


def set_session_cookies(response: Response, token: str, locale: str) -> None:
    """Attach session and locale cookies."""
    response.set_cookie(
        settings.session_cookie_name,
        token,
        max_age=settings.session_expire_hours * 3600,
        httponly=True,
        samesite="strict",
        secure=_is_secure_cookie(),
        path="/",
    )
    response.set_cookie(
        settings.locale_cookie_name,
        locale,
        max_age=LOCALE_COOKIE_MAX_AGE,
        samesite="lax",
        secure=_is_secure_cookie(),
        path="/",
    )


def clear_session_cookies(response: Response) -> None:
    """Expire session and locale cookies."""
    response.delete_cookie(settings.session_cookie_name, path="/")
    response.delete_cookie(settings.locale_cookie_name, path="/")


@router.post("/otp/send", response_model=OtpSendResponse)
async def send_otp(
    payload: OtpSendRequest,
    service: IdentityService = Depends(get_identity_service),
) -> OtpSendResponse:
    """Issue a one-time sign-in code for the phone number."""
    await enforce_otp_send_rate_limit(payload.phone)
    expires_in = await service.send_otp(payload.phone, payload.role)
    return OtpSendResponse(expires_in_seconds=expires_in)


@router.post("/otp/verify", response_model=SessionRead)
async def verify_otp(
    payload: OtpVerifyRequest,
    response: Response,
    service: IdentityService = Depends(get_identity_service),
) -> SessionRead:
    """Exchange code for a session cookie."""
    principal, token = await service.verify_otp(
        payload.phone,
        payload.code,
        payload.role,
        payload.locale,
    )
    set_session_cookies(response, token, principal.locale)
    return SessionRead(user_id=principal.user_id, role=principal.role, locale=principal.locale)


@router.get("/session", response_model=SessionRead)
async def read_session(
    response: Response,
    principal: SessionPrincipal = Depends(get_current_principal),
) -> SessionRead:
    """Return the caller's session."""
    response.headers["Cache-Control"] = "no-store"
    return SessionRead(user_id=principal.user_id, role=principal.role, locale=principal.locale)


@router.post("/logout")
async def logout(response: Response) -> dict[str, bool]:
    """Clear session cookies."""
    clear_session_cookies(response)
    return {"success": True}
