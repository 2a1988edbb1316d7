"""
Recipe persistence (raw SQL).

Every statement touching `recipes` filters on `user_id`; see
`hauptgang/tools/scoped_queries.py`.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any

from hauptgang.core import db

IMPORT_PENDING = "pending"
IMPORT_COMPLETED = "completed"
IMPORT_FAILED = "failed"

PENDING_RECIPE_NAME = "Importing..."

LIST_COLUMNS = """
    id, name, prep_time, cook_time, favorite, cover_image_url,
    import_status, error_message, updated_at
"""

DETAIL_COLUMNS = """
    id, user_id, name, prep_time, cook_time, servings, favorite,
    ingredients, instructions, notes, source_url, cover_image_url,
    import_status, error_message, failed_recipe_fetched_at, created_at, updated_at
"""


async def list_recipes(*, user_id: int, favorites_only: bool = False) -> list[dict]:
    return await db.fetch_all(
        f"""
        SELECT {LIST_COLUMNS}
        FROM recipes
        WHERE user_id = $1
          AND ($2 = false OR favorite = true)
        ORDER BY updated_at DESC, id DESC
        """,
        user_id,
        favorites_only,
    )


async def get_recipe(recipe_id: int, *, user_id: int) -> dict | None:
    return await db.fetch_one(
        f"""
        SELECT {DETAIL_COLUMNS}
        FROM recipes
        WHERE id = $1
          AND user_id = $2
        """,
        recipe_id,
        user_id,
    )


async def list_recipe_tags(recipe_id: int, *, user_id: int) -> list[dict]:
    return await db.fetch_all(
        """
        SELECT t.id, t.name
        FROM tags t
        JOIN recipe_tags rt ON rt.tag_id = t.id
        JOIN recipes r ON r.id = rt.recipe_id
        WHERE r.id = $1
          AND r.user_id = $2
        ORDER BY t.name ASC
        """,
        recipe_id,
        user_id,
    )


async def recipe_exists(recipe_id: int, *, user_id: int, conn: Any = None) -> bool:
    row = await db.fetch_one(
        """
        SELECT 1 AS ok
        FROM recipes
        WHERE id = $1
          AND user_id = $2
        """,
        recipe_id,
        user_id,
        conn=conn,
    )
    return row is not None


async def delete_recipe(recipe_id: int, *, user_id: int) -> bool:
    row = await db.fetch_one(
        """
        DELETE FROM recipes
        WHERE id = $1
          AND user_id = $2
        RETURNING id
        """,
        recipe_id,
        user_id,
    )
    return row is not None


async def set_favorite(recipe_id: int, *, user_id: int, favorite: bool) -> dict | None:
    return await db.fetch_one(
        """
        UPDATE recipes
        SET favorite = $3,
            updated_at = now()
        WHERE id = $1
          AND user_id = $2
        RETURNING id, favorite
        """,
        recipe_id,
        user_id,
        favorite,
    )


async def create_pending_recipe(*, user_id: int, source_url: str | None = None) -> dict:
    row = await db.fetch_one(
        """
        INSERT INTO recipes (user_id, name, source_url, import_status)
        VALUES ($1, $2, $3, $4)
        RETURNING id, import_status
        """,
        user_id,
        PENDING_RECIPE_NAME,
        source_url,
        IMPORT_PENDING,
    )
    if row is None:
        raise RuntimeError("Failed to create pending recipe.")
    return row


async def complete_import(recipe_id: int, *, user_id: int, attributes: dict[str, Any]) -> bool:
    """
    Store extracted attributes and flip the recipe to `completed`.

    `source_url` and `cover_image_url` are only overwritten when provided.
    """
    row = await db.fetch_one(
        """
        UPDATE recipes
        SET name = $3,
            ingredients = $4,
            instructions = $5,
            prep_time = $6,
            cook_time = $7,
            servings = $8,
            notes = $9,
            source_url = COALESCE($10, source_url),
            cover_image_url = COALESCE($11, cover_image_url),
            import_status = $12,
            error_message = NULL,
            updated_at = now()
        WHERE id = $1
          AND user_id = $2
        RETURNING id
        """,
        recipe_id,
        user_id,
        attributes["name"],
        list(attributes.get("ingredients") or []),
        list(attributes.get("instructions") or []),
        attributes.get("prep_time"),
        attributes.get("cook_time"),
        attributes.get("servings"),
        attributes.get("notes"),
        attributes.get("source_url"),
        attributes.get("cover_image_url"),
        IMPORT_COMPLETED,
    )
    return row is not None


async def mark_import_failed(recipe_id: int, *, user_id: int, error_message: str | None) -> bool:
    row = await db.fetch_one(
        """
        UPDATE recipes
        SET import_status = $3,
            error_message = $4,
            updated_at = now()
        WHERE id = $1
          AND user_id = $2
        RETURNING id
        """,
        recipe_id,
        user_id,
        IMPORT_FAILED,
        error_message,
    )
    return row is not None


async def mark_failed_recipes_fetched(*, user_id: int, recipe_ids: list[int]) -> None:
    """
    Stamp the first time failed recipes were shown to the user.
    """
    if not recipe_ids:
        return None
    await db.execute(
        """
        UPDATE recipes
        SET failed_recipe_fetched_at = now()
        WHERE user_id = $1
          AND id = ANY($2::bigint[])
          AND import_status = $3
          AND failed_recipe_fetched_at IS NULL
        """,
        user_id,
        recipe_ids,
        IMPORT_FAILED,
    )


async def delete_fetched_failed_recipes(*, user_id: int, fetched_before: datetime) -> int:
    rows = await db.fetch_all(
        """
        DELETE FROM recipes
        WHERE user_id = $1
          AND import_status = $2
          AND failed_recipe_fetched_at < $3
        RETURNING id
        """,
        user_id,
        IMPORT_FAILED,
        fetched_before,
    )
    return len(rows)


async def count_imports_since(*, user_id: int, since: datetime) -> int:
    """
    Count recipes created since `since`, ignoring failed imports.
    """
    value = await db.fetch_val(
        """
        SELECT count(*)
        FROM recipes
        WHERE user_id = $1
          AND created_at >= $2
          AND import_status <> $3
        """,
        user_id,
        since,
        IMPORT_FAILED,
    )
    return int(value or 0)
