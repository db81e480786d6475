"""Security utilities for session JWT, OTP hashing and link tokens."""

from __future__ import annotations

import hashlib
import secrets
from datetime import UTC, datetime, timedelta
from typing import Any

from jose import JWTError, jwt
from passlib.context import CryptContext

from app.core.config import get_settings
from app.shared.exceptions import UnauthorizedException

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")
settings = get_settings()

SESSION_TOKEN_TYPE = "session"
LINK_TOKEN_BYTES = 32


def hash_otp_code(code: str) -> str:
    """Hash one-time code using bcrypt."""
    return pwd_context.hash(code)


def verify_otp_code(code: str, code_hash: str) -> bool:
    """Verify one-time code against stored hash."""
    return pwd_context.verify(code, code_hash)


def generate_otp_code() -> str:
    """Return configured dev code or a random 6-digit code."""
    if settings.otp_dev_code:
        return settings.otp_dev_code
    return f"{secrets.randbelow(1_000_000):06d}"


def generate_link_token() -> str:
    """Return 256-bit random token as hex."""
    return secrets.token_hex(LINK_TOKEN_BYTES)


def hash_link_token(raw_token: str) -> str:
    """Return SHA-256 hex digest of a raw link token."""
    return hashlib.sha256(raw_token.encode("utf-8")).hexdigest()


def create_session_token(user_id: str, role: str, locale: str) -> str:
    """Create signed session JWT."""
    payload: dict[str, Any] = {
        "sub": user_id,
        "role": role,
        "locale": locale,
        "type": SESSION_TOKEN_TYPE,
        "exp": datetime.now(UTC) + timedelta(hours=settings.session_expire_hours),
    }
    return jwt.encode(payload, settings.secret_key, algorithm=settings.jwt_algorithm)


def decode_session_token(token: str) -> dict[str, Any]:
    """Decode and validate session JWT."""
    try:
        payload = jwt.decode(token, settings.secret_key, algorithms=[settings.jwt_algorithm])
    except JWTError as exc:
        raise UnauthorizedException("Invalid session") from exc
    if payload.get("type") != SESSION_TOKEN_TYPE:
        raise UnauthorizedException("Invalid session")
    return payload
