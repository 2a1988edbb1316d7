"""
Shopping list API endpoints.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, Response, status

from hauptgang.auth import dependencies as auth_dependencies

from . import schemas, service

router = APIRouter(prefix="/api/v1/shopping_list_items")


@router.get("")
async def list_items(
    current_user: dict = Depends(auth_dependencies.get_current_user),
) -> list[dict]:
    """
    Items checked off more than an hour ago are removed before listing.
    """
    return await service.list_items(current_user)


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_items(
    request: schemas.UpsertRequest,
    current_user: dict = Depends(auth_dependencies.get_current_user),
) -> list[dict]:
    return await service.create_items(current_user, request)


@router.patch("/{item_id}")
async def update_item(
    item_id: int,
    request: schemas.UpdateRequest,
    current_user: dict = Depends(auth_dependencies.get_current_user),
) -> dict:
    return await service.update_item(current_user, item_id, request)


@router.delete("/{item_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_item(
    item_id: int,
    current_user: dict = Depends(auth_dependencies.get_current_user),
) -> Response:
    await service.delete_item(current_user, item_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
