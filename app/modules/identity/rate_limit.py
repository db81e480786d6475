"""Rate-limit guards for identity endpoints."""

from __future__ import annotations

from app.core.config import get_settings
from app.core.rate_limit import enforce_rate_limit


async def enforce_otp_send_rate_limit(phone: str) -> None:
    """Apply per-phone rate limit for OTP send."""
    settings = get_settings()
    await enforce_rate_limit(
        f"identity:otp_send:{phone}",
        action="otp send",
        max_requests=settings.rate_limit_otp_send_requests,
    )
