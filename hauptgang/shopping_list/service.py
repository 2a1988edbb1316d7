"""
Shopping list business logic.

Items are keyed by a client-generated `client_id` so the mobile apps can
create items offline and sync them later without duplicates.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Any

import asyncpg
from fastapi import HTTPException, status

from hauptgang.core import db
from hauptgang.recipes import repository as recipe_repository

from . import repository, schemas

STALE_CHECKED_AFTER = timedelta(hours=1)

logger = logging.getLogger(__name__)


class InvalidTimestamp(ValueError):
    pass


class _RollbackBatch(Exception):
    pass


@dataclass(frozen=True)
class UpsertResult:
    success: bool
    items: list[dict] = field(default_factory=list)
    errors: list[dict] = field(default_factory=list)


def to_response(row: dict) -> dict[str, Any]:
    return {
        "id": int(row["id"]),
        "client_id": row["client_id"],
        "name": row["name"],
        "checked_at": row["checked_at"],
        "source_recipe_id": row["source_recipe_id"],
        "created_at": row["created_at"],
        "updated_at": row["updated_at"],
    }


def parse_timestamp(raw: str | None) -> datetime | None:
    """
    Parse an ISO-8601 timestamp; blank means "not set". Naive values are UTC.
    """
    raw = (raw or "").strip()
    if not raw:
        return None
    try:
        value = datetime.fromisoformat(raw.replace("Z", "+00:00"))
    except ValueError as exc:
        raise InvalidTimestamp(raw) from exc
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value


def _not_found() -> HTTPException:
    return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Shopping list item not found")


async def list_items(user: dict) -> list[dict[str, Any]]:
    user_id = int(user["id"])
    cutoff = datetime.now(timezone.utc) - STALE_CHECKED_AFTER
    deleted = await repository.delete_checked_before(user_id=user_id, checked_before=cutoff)
    if deleted:
        logger.info("shopping_list_cleanup user_id=%s deleted=%s", user_id, deleted)

    rows = await repository.list_items(user_id=user_id)
    return [to_response(row) for row in rows]


async def _upsert_one(conn: Any, *, user_id: int, item: schemas.ItemPayload) -> dict | str:
    """
    Upsert one item inside the batch transaction. Returns the row or an error message.
    """
    client_id = (item.client_id or "").strip()
    name = (item.name or "").strip()
    if not client_id or not name:
        return "client_id and name are required"

    if item.source_recipe_id is not None and not await recipe_repository.recipe_exists(
        item.source_recipe_id,
        user_id=user_id,
        conn=conn,
    ):
        return "Recipe not found"

    try:
        checked_at = parse_timestamp(item.checked_at)
    except InvalidTimestamp:
        return "Invalid checked_at format"

    try:
        # Savepoint: a failed statement must not abort the whole batch transaction.
        async with conn.transaction():
            return await repository.upsert_item(
                user_id=user_id,
                client_id=client_id,
                name=name,
                source_recipe_id=item.source_recipe_id,
                checked_at=checked_at,
                conn=conn,
            )
    except asyncpg.ForeignKeyViolationError:
        return "Recipe not found"


async def upsert_items(user: dict, items: list[schemas.ItemPayload]) -> UpsertResult:
    """
    Create or update items by client_id. All-or-nothing: any invalid item
    rolls back the whole batch.
    """
    if not items:
        return UpsertResult(success=False, errors=[{"client_id": None, "error": "No items provided"}])

    user_id = int(user["id"])
    saved: list[dict] = []
    errors: list[dict] = []

    try:
        async with db.transaction() as conn:
            for item in items:
                outcome = await _upsert_one(conn, user_id=user_id, item=item)
                if isinstance(outcome, str):
                    client_id = (item.client_id or "").strip() or None
                    errors.append({"client_id": client_id, "error": outcome})
                else:
                    saved.append(outcome)
            if errors:
                raise _RollbackBatch()
    except _RollbackBatch:
        return UpsertResult(success=False, errors=errors)

    return UpsertResult(success=True, items=saved)


async def create_items(user: dict, payload: schemas.UpsertRequest) -> list[dict[str, Any]]:
    result = await upsert_items(user, payload.normalized())
    if not result.success:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail={"error": result.errors[0]["error"], "errors": result.errors},
        )
    return [to_response(row) for row in result.items]


async def update_item(user: dict, item_id: int, payload: schemas.UpdateRequest) -> dict[str, Any]:
    user_id = int(user["id"])
    if await repository.get_item(item_id, user_id=user_id) is None:
        raise _not_found()

    fields = payload.model_fields_set
    if "checked_at" in fields:
        try:
            checked_at = parse_timestamp(payload.checked_at)
        except InvalidTimestamp as exc:
            raise HTTPException(
                status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
                detail="Invalid checked_at format",
            ) from exc
    elif "checked" in fields:
        checked_at = datetime.now(timezone.utc) if payload.checked else None
    else:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail="checked or checked_at is required",
        )

    row = await repository.set_checked_at(item_id, user_id=user_id, checked_at=checked_at)
    if row is None:
        raise _not_found()
    return to_response(row)


async def delete_item(user: dict, item_id: int) -> None:
    if not await repository.delete_item(item_id, user_id=int(user["id"])):
        raise _not_found()
