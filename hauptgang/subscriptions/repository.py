"""
Subscription persistence helpers.
"""

from __future__ import annotations

from hauptgang.core import db


async def set_user_pro(user_id: int, *, pro: bool) -> bool:
    row = await db.fetch_one(
        """
        UPDATE users
        SET pro = $2,
            updated_at = CASE WHEN pro IS DISTINCT FROM $2 THEN now() ELSE updated_at END
        WHERE id = $1
        RETURNING id
        """,
        user_id,
        pro,
    )
    return row is not None
