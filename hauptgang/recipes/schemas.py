"""
Pydantic schemas for recipe endpoints.
"""

from __future__ import annotations

from pydantic import BaseModel


class ImportRequest(BaseModel):
    url: str | None = None


class ExtractFromTextRequest(BaseModel):
    text: str | None = None


class ImportAcceptedResponse(BaseModel):
    id: int
    import_status: str


class FavoriteResponse(BaseModel):
    id: int
    favorite: bool
