"""
Auth security helpers.

API tokens are opaque random strings. Only their SHA-256 digest is stored, so
a leaked database does not expose usable tokens.
"""

from __future__ import annotations

import hashlib
import secrets
from datetime import datetime, timedelta, timezone

import bcrypt

from hauptgang.core import settings

# bcrypt silently ignores anything past 72 bytes; reject instead.
MAX_PASSWORD_BYTES = 72


class AuthSecurityError(RuntimeError):
    pass


def token_expire_days() -> int:
    return settings.env_int("API_TOKEN_EXPIRE_DAYS", 90)


def last_used_threshold() -> timedelta:
    return timedelta(minutes=5)


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def token_expires_at(now: datetime | None = None) -> datetime:
    return (now or utc_now()) + timedelta(days=token_expire_days())


def hash_password(plain_password: str) -> str:
    password = (plain_password or "").encode("utf-8")
    if not password:
        raise AuthSecurityError("Password is empty.")
    if len(password) > MAX_PASSWORD_BYTES:
        raise AuthSecurityError("Password is too long.")
    return bcrypt.hashpw(password, bcrypt.gensalt()).decode("utf-8")


def verify_password(plain_password: str, password_hash: str) -> bool:
    password = (plain_password or "").encode("utf-8")
    hashed = (password_hash or "").encode("utf-8")
    if not password or not hashed:
        return False
    try:
        return bcrypt.checkpw(password, hashed)
    except ValueError:
        return False


def build_api_token() -> str:
    # URL-safe random string for client storage/transmission.
    return secrets.token_urlsafe(32)


def digest_token(raw_token: str) -> str:
    token = (raw_token or "").encode("utf-8")
    if not token:
        raise AuthSecurityError("Token is empty.")
    return hashlib.sha256(token).hexdigest()


def should_touch_last_used(last_used_at: datetime | None, *, now: datetime | None = None) -> bool:
    if last_used_at is None:
        return True
    return last_used_at <= (now or utc_now()) - last_used_threshold()
