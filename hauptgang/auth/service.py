"""
Auth business logic.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass

import asyncpg
from fastapi import HTTPException, status

from . import repository, schemas, security

logger = logging.getLogger(__name__)

EMAIL_PATTERN = re.compile(r"^[^@\s]+@[^@\s]+$")


@dataclass(frozen=True)
class AuthContext:
    user: dict
    token: dict


def _unauthorized() -> HTTPException:
    return HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Unauthorized")


def _to_auth_response(user_row: dict, token_row: dict, raw_token: str) -> schemas.AuthResponse:
    return schemas.AuthResponse(
        token=raw_token,
        expires_at=token_row["expires_at"],
        user=schemas.UserResponse(id=int(user_row["id"]), email=str(user_row["email"])),
    )


async def _issue_token(user_row: dict, *, device_name: str | None = None) -> tuple[dict, str]:
    raw_token = security.build_api_token()
    token_row = await repository.insert_api_token(
        user_id=int(user_row["id"]),
        token_digest=security.digest_token(raw_token),
        expires_at=security.token_expires_at(),
        name=(device_name or "").strip() or None,
    )
    return token_row, raw_token


def registration_errors(payload: schemas.RegisterRequest) -> list[str]:
    """
    Validate a sign-up payload; returns full error messages (empty if valid).
    """
    errors: list[str] = []

    email = repository.normalize_email(payload.email or "")
    if not email:
        errors.append("Email address can't be blank")
    elif not EMAIL_PATTERN.match(email):
        errors.append("Email address is invalid")

    password = payload.password or ""
    if not password:
        errors.append("Password can't be blank")
    elif len(password.encode("utf-8")) > security.MAX_PASSWORD_BYTES:
        errors.append(f"Password is too long (maximum is {security.MAX_PASSWORD_BYTES} bytes)")

    if payload.password_confirmation is not None and payload.password_confirmation != password:
        errors.append("Password confirmation doesn't match Password")

    return errors


def _registration_failed(errors: list[str]) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        detail={"errors": errors},
    )


async def register(payload: schemas.RegisterRequest) -> schemas.AuthResponse:
    errors = registration_errors(payload)
    email = repository.normalize_email(payload.email or "")
    if email and not errors and await repository.get_user_by_email(email) is not None:
        errors.append("Email address has already been taken")
    if errors:
        raise _registration_failed(errors)

    password_hash = security.hash_password(payload.password or "")
    try:
        user_row = await repository.create_user(email=email, password_hash=password_hash)
    except asyncpg.UniqueViolationError as exc:
        raise _registration_failed(["Email address has already been taken"]) from exc

    token_row, raw_token = await _issue_token(user_row, device_name=payload.device_name)
    logger.info("user_registered user_id=%s", user_row["id"])
    return _to_auth_response(user_row, token_row, raw_token)


async def login(payload: schemas.LoginRequest) -> schemas.AuthResponse:
    user_row = await repository.get_user_by_email(payload.email or "")
    is_valid = user_row is not None and security.verify_password(
        payload.password or "",
        str(user_row.get("password_hash") or ""),
    )
    if not is_valid:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid email or password",
        )

    token_row, raw_token = await _issue_token(user_row, device_name=payload.device_name)
    return _to_auth_response(user_row, token_row, raw_token)


async def logout(context: AuthContext) -> dict[str, str]:
    await repository.revoke_token(int(context.token["id"]))
    return {"message": "Logged out successfully"}


async def authenticate(raw_token: str) -> AuthContext:
    """
    Resolve a bearer token to its user, or raise 401.
    """
    raw_token = (raw_token or "").strip()
    if not raw_token:
        raise _unauthorized()

    token_row = await repository.get_active_token_by_digest(security.digest_token(raw_token))
    if token_row is None:
        raise _unauthorized()

    user_row = await repository.get_user_by_id(int(token_row["user_id"]))
    if user_row is None:
        raise _unauthorized()

    # Throttled so every request does not turn into a write.
    if security.should_touch_last_used(token_row.get("last_used_at")):
        await repository.touch_token_last_used(int(token_row["id"]))

    return AuthContext(user=user_row, token=token_row)
