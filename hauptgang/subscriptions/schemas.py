"""
RevenueCat webhook payload (only the fields we read).
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict


class SubscriberInfo(BaseModel):
    model_config = ConfigDict(extra="allow")

    entitlements: dict[str, Any] | None = None


class WebhookEvent(BaseModel):
    model_config = ConfigDict(extra="allow")

    type: str | None = None
    app_user_id: str | int | None = None
    subscriber_info: SubscriberInfo | None = None


class WebhookPayload(BaseModel):
    model_config = ConfigDict(extra="allow")

    event: WebhookEvent | None = None
