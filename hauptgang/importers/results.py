from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any


@dataclass(frozen=True)
class ImportResult:
    """
    Outcome of one extraction attempt.

    `recipe_attributes` holds the columns to write on success: name,
    ingredients, instructions, prep_time, cook_time, servings, notes and
    optionally source_url.
    """

    success: bool
    recipe_attributes: dict[str, Any] = field(default_factory=dict)
    error: str | None = None
    error_code: str | None = None
    cover_image_url: str | None = None


def succeeded(attributes: dict[str, Any], *, cover_image_url: str | None = None) -> ImportResult:
    return ImportResult(success=True, recipe_attributes=attributes, cover_image_url=cover_image_url)


def failed(error: str, error_code: str, *, cover_image_url: str | None = None) -> ImportResult:
    return ImportResult(success=False, error=error, error_code=error_code, cover_image_url=cover_image_url)
