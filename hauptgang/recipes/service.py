"""
Recipe business logic.

Scope:
- list/detail/delete/favorite for the current user's recipes
- accepting import requests (URL, text, image) and creating the pending row
- housekeeping for failed imports once the user has seen them
"""

from __future__ import annotations

import logging
from datetime import datetime, timedelta, timezone
from typing import Any

from fastapi import HTTPException, UploadFile, status

from hauptgang.core import settings
from hauptgang.importers import url_validator

from . import quota, repository

MAX_TEXT_LENGTH = 50_000
DEFAULT_MAX_IMAGE_BYTES = 10 * 1024 * 1024  # 10 MiB
ALLOWED_IMAGE_TYPES = {"image/jpeg", "image/png", "image/webp", "image/heic", "image/heif"}
FAILED_RECIPE_GRACE = timedelta(minutes=1)

logger = logging.getLogger(__name__)


def _not_found() -> HTTPException:
    return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Recipe not found")


def _unprocessable(message: str) -> HTTPException:
    return HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=message)


def max_image_bytes() -> int:
    value = settings.env_int("MAX_IMAGE_UPLOAD_BYTES", DEFAULT_MAX_IMAGE_BYTES)
    return value if value > 0 else DEFAULT_MAX_IMAGE_BYTES


def to_list_item(row: dict) -> dict[str, Any]:
    return {
        "id": int(row["id"]),
        "name": row["name"],
        "prep_time": row["prep_time"],
        "cook_time": row["cook_time"],
        "favorite": bool(row["favorite"]),
        "cover_image_url": row.get("cover_image_url"),
        "import_status": row["import_status"],
        "error_message": row.get("error_message"),
        "updated_at": row["updated_at"],
    }


def to_detail(row: dict, tags: list[dict]) -> dict[str, Any]:
    return {
        "id": int(row["id"]),
        "name": row["name"],
        "prep_time": row["prep_time"],
        "cook_time": row["cook_time"],
        "servings": row["servings"],
        "favorite": bool(row["favorite"]),
        "ingredients": list(row.get("ingredients") or []),
        "instructions": list(row.get("instructions") or []),
        "notes": row.get("notes"),
        "source_url": row.get("source_url"),
        "tags": [{"id": int(t["id"]), "name": t["name"]} for t in tags],
        "cover_image_url": row.get("cover_image_url"),
        "created_at": row["created_at"],
        "updated_at": row["updated_at"],
    }


async def list_recipes(user: dict, *, favorites_only: bool = False) -> list[dict[str, Any]]:
    user_id = int(user["id"])
    rows = await repository.list_recipes(user_id=user_id, favorites_only=favorites_only)

    # First sighting of a failed import starts its grace period.
    failed_ids = [
        int(row["id"]) for row in rows if row["import_status"] == repository.IMPORT_FAILED
    ]
    await repository.mark_failed_recipes_fetched(user_id=user_id, recipe_ids=failed_ids)

    return [to_list_item(row) for row in rows]


async def cleanup_failed_recipes(user_id: int) -> None:
    """
    Delete failed imports the user has already been shown. Runs after the
    list response is sent.
    """
    cutoff = datetime.now(timezone.utc) - FAILED_RECIPE_GRACE
    try:
        deleted = await repository.delete_fetched_failed_recipes(user_id=user_id, fetched_before=cutoff)
    except Exception:
        logger.exception("failed_recipe_cleanup_error user_id=%s", user_id)
        return None
    if deleted:
        logger.info("failed_recipe_cleanup user_id=%s deleted=%s", user_id, deleted)


async def get_recipe(user: dict, recipe_id: int) -> dict[str, Any]:
    user_id = int(user["id"])
    row = await repository.get_recipe(recipe_id, user_id=user_id)
    if row is None:
        raise _not_found()
    tags = await repository.list_recipe_tags(recipe_id, user_id=user_id)
    return to_detail(row, tags)


async def delete_recipe(user: dict, recipe_id: int) -> None:
    if not await repository.delete_recipe(recipe_id, user_id=int(user["id"])):
        raise _not_found()


async def set_favorite(user: dict, recipe_id: int, *, favorite: bool) -> dict[str, Any]:
    row = await repository.set_favorite(recipe_id, user_id=int(user["id"]), favorite=favorite)
    if row is None:
        raise _not_found()
    return {"id": int(row["id"]), "favorite": bool(row["favorite"])}


async def start_url_import(user: dict, url: str | None) -> dict:
    await quota.ensure_import_allowed(user)

    url = (url or "").strip()
    if not url:
        raise _unprocessable("URL is required")

    validation = await url_validator.validate_url(url)
    if not validation.success:
        raise _unprocessable(validation.error or "Invalid URL")

    return await repository.create_pending_recipe(user_id=int(user["id"]), source_url=url)


def validate_text(text: str | None) -> str:
    text = (text or "").strip()
    if not text:
        raise _unprocessable("Text is required")
    if len(text) > MAX_TEXT_LENGTH:
        raise _unprocessable("Text too long (max 50,000 chars)")
    return text


async def start_text_extraction(user: dict, text: str | None) -> tuple[dict, str]:
    await quota.ensure_import_allowed(user)
    text = validate_text(text)
    row = await repository.create_pending_recipe(user_id=int(user["id"]))
    return row, text


async def read_image(image: UploadFile | None, *, max_bytes: int) -> tuple[bytes, str]:
    """
    Validate and read an uploaded recipe photo, enforcing a maximum size.
    """
    if image is None or not image.filename:
        raise _unprocessable("Image is required")

    content_type = (image.content_type or "").split(";", 1)[0].strip().lower()
    if content_type not in ALLOWED_IMAGE_TYPES:
        raise HTTPException(
            status_code=status.HTTP_415_UNSUPPORTED_MEDIA_TYPE,
            detail=f"Unsupported image type '{content_type or 'unknown'}'",
        )

    chunk_size = 1024 * 1024  # 1 MiB
    buf = bytearray()
    while True:
        chunk = await image.read(chunk_size)
        if not chunk:
            break
        buf.extend(chunk)
        if len(buf) > max_bytes:
            raise HTTPException(
                status_code=status.HTTP_413_REQUEST_ENTITY_TOO_LARGE,
                detail=f"Image too large. Max is {max_bytes} bytes.",
            )

    if not buf:
        raise _unprocessable("Image is required")
    return bytes(buf), content_type


async def start_image_extraction(user: dict, image: UploadFile | None) -> tuple[dict, bytes, str]:
    await quota.ensure_import_allowed(user)
    data, content_type = await read_image(image, max_bytes=max_image_bytes())
    row = await repository.create_pending_recipe(user_id=int(user["id"]))
    return row, data, content_type
