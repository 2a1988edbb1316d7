"""
Shopping list persistence (raw SQL).
"""

from __future__ import annotations

from datetime import datetime
from typing import Any

from hauptgang.core import db

ITEM_COLUMNS = "id, user_id, client_id, name, checked_at, source_recipe_id, created_at, updated_at"


async def list_items(*, user_id: int) -> list[dict]:
    """
    Unchecked items newest first, then checked items in the order they were ticked off.
    """
    return await db.fetch_all(
        f"""
        SELECT {ITEM_COLUMNS}
        FROM shopping_list_items
        WHERE user_id = $1
        ORDER BY
          (checked_at IS NOT NULL) ASC,
          CASE WHEN checked_at IS NULL THEN created_at END DESC,
          checked_at ASC,
          id ASC
        """,
        user_id,
    )


async def delete_checked_before(*, user_id: int, checked_before: datetime) -> int:
    rows = await db.fetch_all(
        """
        DELETE FROM shopping_list_items
        WHERE user_id = $1
          AND checked_at IS NOT NULL
          AND checked_at < $2
        RETURNING id
        """,
        user_id,
        checked_before,
    )
    return len(rows)


async def upsert_item(
    *,
    user_id: int,
    client_id: str,
    name: str,
    source_recipe_id: int | None,
    checked_at: datetime | None,
    conn: Any = None,
) -> dict:
    row = await db.fetch_one(
        f"""
        INSERT INTO shopping_list_items (user_id, client_id, name, source_recipe_id, checked_at)
        VALUES ($1, $2, $3, $4, $5)
        ON CONFLICT (user_id, client_id) DO UPDATE
        SET name = EXCLUDED.name,
            source_recipe_id = EXCLUDED.source_recipe_id,
            checked_at = EXCLUDED.checked_at,
            updated_at = now()
        RETURNING {ITEM_COLUMNS}
        """,
        user_id,
        client_id,
        name,
        source_recipe_id,
        checked_at,
        conn=conn,
    )
    if row is None:
        raise RuntimeError("Failed to upsert shopping list item.")
    return row


async def get_item(item_id: int, *, user_id: int) -> dict | None:
    return await db.fetch_one(
        f"""
        SELECT {ITEM_COLUMNS}
        FROM shopping_list_items
        WHERE id = $1
          AND user_id = $2
        """,
        item_id,
        user_id,
    )


async def set_checked_at(item_id: int, *, user_id: int, checked_at: datetime | None) -> dict | None:
    return await db.fetch_one(
        f"""
        UPDATE shopping_list_items
        SET checked_at = $3,
            updated_at = now()
        WHERE id = $1
          AND user_id = $2
        RETURNING {ITEM_COLUMNS}
        """,
        item_id,
        user_id,
        checked_at,
    )


async def delete_item(item_id: int, *, user_id: int) -> bool:
    row = await db.fetch_one(
        """
        DELETE FROM shopping_list_items
        WHERE id = $1
          AND user_id = $2
        RETURNING id
        """,
        item_id,
        user_id,
    )
    return row is not None
