"""
Background import jobs.

Scheduled with FastAPI `BackgroundTasks` after the pending recipe has been
created. These never raise to the request path; failures are written to
the recipe row and logged.
"""

from __future__ import annotations

import logging
from typing import Awaitable, Callable

from hauptgang.auth import repository as auth_repository
from hauptgang.recipes import repository as recipe_repository

from . import importer, llm_extraction, results

GENERIC_FAILURE_MESSAGE = "Import failed."

logger = logging.getLogger(__name__)


async def _run(
    job_name: str,
    user_id: int,
    recipe_id: int,
    extract: Callable[[], Awaitable[results.ImportResult]],
    *,
    expose_error: bool = False,
) -> None:
    user = await auth_repository.get_user_by_id(user_id)
    if user is None:
        return None

    recipe = await recipe_repository.get_recipe(recipe_id, user_id=user_id)
    if recipe is None or recipe["import_status"] == recipe_repository.IMPORT_COMPLETED:
        return None

    try:
        result = await extract()
        if result.success:
            attributes = dict(result.recipe_attributes)
            if result.cover_image_url:
                attributes["cover_image_url"] = result.cover_image_url
            await recipe_repository.complete_import(recipe_id, user_id=user_id, attributes=attributes)
            logger.info("%s_complete recipe_id=%s user_id=%s", job_name, recipe_id, user_id)
            return None

        message = result.error if expose_error and result.error else GENERIC_FAILURE_MESSAGE
        await recipe_repository.mark_import_failed(recipe_id, user_id=user_id, error_message=message)
        logger.error(
            "%s_failed recipe_id=%s error_code=%s error=%s",
            job_name,
            recipe_id,
            result.error_code,
            result.error,
        )
    except Exception:
        logger.exception("%s_crashed recipe_id=%s user_id=%s", job_name, recipe_id, user_id)
        try:
            await recipe_repository.mark_import_failed(
                recipe_id,
                user_id=user_id,
                error_message=GENERIC_FAILURE_MESSAGE,
            )
        except Exception:
            logger.exception("%s_mark_failed_error recipe_id=%s", job_name, recipe_id)


async def run_url_import(user_id: int, recipe_id: int, url: str) -> None:
    # Importer messages are user-facing ("Could not fetch the page"), so keep them.
    await _run(
        "recipe_import",
        user_id,
        recipe_id,
        lambda: importer.import_recipe(url),
        expose_error=True,
    )


async def run_text_extraction(user_id: int, recipe_id: int, text: str) -> None:
    await _run(
        "recipe_text_extract",
        user_id,
        recipe_id,
        lambda: llm_extraction.extract_from_text(text, prompt_type="raw_text"),
    )


async def run_image_extraction(user_id: int, recipe_id: int, image: bytes, content_type: str) -> None:
    await _run(
        "recipe_image_extract",
        user_id,
        recipe_id,
        lambda: llm_extraction.extract_from_image(image, content_type=content_type),
    )
