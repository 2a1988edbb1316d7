"""
Auth persistence helpers.
"""

from __future__ import annotations

from datetime import datetime, timezone

from hauptgang.core import db

USER_COLUMNS = "id, email, password_hash, pro, created_at, updated_at"
TOKEN_COLUMNS = "id, user_id, token_digest, name, expires_at, revoked_at, last_used_at, created_at"


def normalize_email(email: str) -> str:
    return (email or "").strip().lower()


async def create_user(*, email: str, password_hash: str) -> dict:
    row = await db.fetch_one(
        f"""
        INSERT INTO users (email, password_hash)
        VALUES ($1, $2)
        RETURNING {USER_COLUMNS}
        """,
        normalize_email(email),
        password_hash,
    )
    if row is None:
        raise RuntimeError("Failed to create user.")
    return row


async def get_user_by_email(email: str) -> dict | None:
    return await db.fetch_one(
        f"""
        SELECT {USER_COLUMNS}
        FROM users
        WHERE lower(email) = lower($1)
        """,
        normalize_email(email),
    )


async def get_user_by_id(user_id: int) -> dict | None:
    return await db.fetch_one(
        f"""
        SELECT {USER_COLUMNS}
        FROM users
        WHERE id = $1
        """,
        user_id,
    )


async def insert_api_token(
    *,
    user_id: int,
    token_digest: str,
    expires_at: datetime,
    name: str | None = None,
) -> dict:
    if expires_at.tzinfo is None:
        expires_at = expires_at.replace(tzinfo=timezone.utc)

    row = await db.fetch_one(
        f"""
        INSERT INTO api_tokens (user_id, token_digest, name, expires_at)
        VALUES ($1, $2, $3, $4)
        RETURNING {TOKEN_COLUMNS}
        """,
        user_id,
        token_digest,
        name,
        expires_at,
    )
    if row is None:
        raise RuntimeError("Failed to insert API token.")
    return row


async def get_active_token_by_digest(token_digest: str) -> dict | None:
    """
    Return a non-revoked, non-expired token row, or None.
    """
    return await db.fetch_one(
        f"""
        SELECT {TOKEN_COLUMNS}
        FROM api_tokens
        WHERE token_digest = $1
          AND revoked_at IS NULL
          AND expires_at > now()
        """,
        token_digest,
    )


async def touch_token_last_used(token_id: int) -> None:
    await db.execute(
        """
        UPDATE api_tokens
        SET last_used_at = now()
        WHERE id = $1
        """,
        token_id,
    )


async def revoke_token(token_id: int) -> bool:
    row = await db.fetch_one(
        """
        UPDATE api_tokens
        SET revoked_at = now()
        WHERE id = $1
          AND revoked_at IS NULL
        RETURNING id
        """,
        token_id,
    )
    return row is not None
