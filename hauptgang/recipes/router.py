"""
Recipe API endpoints.
"""

from __future__ import annotations

from fastapi import APIRouter, BackgroundTasks, Depends, File, Query, Response, UploadFile, status

from hauptgang.auth import dependencies as auth_dependencies
from hauptgang.importers import jobs

from . import schemas, service

router = APIRouter(prefix="/api/v1/recipes")


@router.get("")
async def list_recipes(
    background_tasks: BackgroundTasks,
    favorites: str | None = Query(default=None),
    current_user: dict = Depends(auth_dependencies.get_current_user),
) -> list[dict]:
    """
    List the current user's recipes, most recently updated first.
    """
    recipes = await service.list_recipes(current_user, favorites_only=favorites == "true")
    background_tasks.add_task(service.cleanup_failed_recipes, int(current_user["id"]))
    return recipes


@router.post("/import", status_code=status.HTTP_202_ACCEPTED)
async def import_recipe(
    request: schemas.ImportRequest,
    background_tasks: BackgroundTasks,
    current_user: dict = Depends(auth_dependencies.get_current_user),
) -> schemas.ImportAcceptedResponse:
    """
    Create a pending recipe and import it from `url` after the response.
    """
    row = await service.start_url_import(current_user, request.url)
    background_tasks.add_task(
        jobs.run_url_import,
        int(current_user["id"]),
        int(row["id"]),
        (request.url or "").strip(),
    )
    return schemas.ImportAcceptedResponse(id=int(row["id"]), import_status=row["import_status"])


@router.post("/extract_from_text", status_code=status.HTTP_202_ACCEPTED)
async def extract_from_text(
    request: schemas.ExtractFromTextRequest,
    background_tasks: BackgroundTasks,
    current_user: dict = Depends(auth_dependencies.get_current_user),
) -> schemas.ImportAcceptedResponse:
    row, text = await service.start_text_extraction(current_user, request.text)
    background_tasks.add_task(jobs.run_text_extraction, int(current_user["id"]), int(row["id"]), text)
    return schemas.ImportAcceptedResponse(id=int(row["id"]), import_status=row["import_status"])


@router.post("/extract_from_image", status_code=status.HTTP_202_ACCEPTED)
async def extract_from_image(
    background_tasks: BackgroundTasks,
    image: UploadFile | None = File(default=None),
    current_user: dict = Depends(auth_dependencies.get_current_user),
) -> schemas.ImportAcceptedResponse:
    row, data, content_type = await service.start_image_extraction(current_user, image)
    background_tasks.add_task(
        jobs.run_image_extraction,
        int(current_user["id"]),
        int(row["id"]),
        data,
        content_type,
    )
    return schemas.ImportAcceptedResponse(id=int(row["id"]), import_status=row["import_status"])


@router.get("/{recipe_id}")
async def get_recipe(
    recipe_id: int,
    current_user: dict = Depends(auth_dependencies.get_current_user),
) -> dict:
    return await service.get_recipe(current_user, recipe_id)


@router.delete("/{recipe_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_recipe(
    recipe_id: int,
    current_user: dict = Depends(auth_dependencies.get_current_user),
) -> Response:
    await service.delete_recipe(current_user, recipe_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


# Favorite toggles are idempotent: safe to repeat.
@router.put("/{recipe_id}/favorite")
async def favorite_recipe(
    recipe_id: int,
    current_user: dict = Depends(auth_dependencies.get_current_user),
) -> schemas.FavoriteResponse:
    return schemas.FavoriteResponse(**await service.set_favorite(current_user, recipe_id, favorite=True))


@router.delete("/{recipe_id}/favorite")
async def unfavorite_recipe(
    recipe_id: int,
    current_user: dict = Depends(auth_dependencies.get_current_user),
) -> schemas.FavoriteResponse:
    return schemas.FavoriteResponse(**await service.set_favorite(current_user, recipe_id, favorite=False))
