"""
Pydantic schemas for shopping list endpoints.
"""

from __future__ import annotations

from pydantic import BaseModel, Field


class ItemPayload(BaseModel):
    client_id: str | None = Field(default=None, max_length=200)
    name: str | None = Field(default=None, max_length=500)
    checked_at: str | None = None
    source_recipe_id: int | None = None


class UpsertRequest(BaseModel):
    """
    Accepts a batch (`items`) or a single `item`.
    """

    items: list[ItemPayload] | None = None
    item: ItemPayload | None = None

    def normalized(self) -> list[ItemPayload]:
        if self.items:
            return list(self.items)
        if self.item is not None:
            return [self.item]
        return []


class UpdateRequest(BaseModel):
    checked_at: str | None = None
    checked: bool | None = None
