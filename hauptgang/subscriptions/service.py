"""
RevenueCat webhook handling.

Each event carries the subscriber's current entitlements, so the user's
`pro` flag is recomputed from scratch on every event instead of being
derived from the event type.
"""

from __future__ import annotations

import hmac
import logging
from datetime import datetime, timezone
from typing import Any

from fastapi import HTTPException, status

from hauptgang.auth import repository as auth_repository
from hauptgang.core import settings

from . import repository, schemas

DEFAULT_ENTITLEMENT_ID = "Hauptgang Pro"
MAX_USER_ID = 2**63 - 1

logger = logging.getLogger(__name__)


def webhook_secret() -> str:
    return settings.env_str("REVENUECAT_WEBHOOK_SECRET")


def entitlement_id() -> str:
    return settings.env_str("REVENUECAT_ENTITLEMENT_ID", DEFAULT_ENTITLEMENT_ID)


def verify_authorization(provided: str | None) -> None:
    """
    Compare the Authorization header to the configured secret in constant
    time. With no secret configured the webhook is open.
    """
    expected = webhook_secret()
    if not expected:
        return None

    if not hmac.compare_digest((provided or "").encode("utf-8"), expected.encode("utf-8")):
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Unauthorized")


def parse_expiry(raw: Any) -> datetime:
    """
    Parse an ISO-8601 expiry; raises ValueError for garbage.
    """
    value = datetime.fromisoformat(str(raw).strip().replace("Z", "+00:00"))
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value


def entitlement_active(event: schemas.WebhookEvent, *, now: datetime | None = None) -> bool:
    entitlements = (event.subscriber_info.entitlements if event.subscriber_info else None) or {}
    entitlement = entitlements.get(entitlement_id())
    if not isinstance(entitlement, dict):
        return False

    expires = entitlement.get("expires_date")
    if expires is None or (isinstance(expires, str) and not expires.strip()):
        # Lifetime entitlement.
        return True

    try:
        expires_at = parse_expiry(expires)
    except ValueError:
        logger.warning("revenuecat_unparseable_expiry value=%r", expires)
        return False
    return expires_at > (now or datetime.now(timezone.utc))


def _user_id(event: schemas.WebhookEvent) -> int | None:
    raw = str(event.app_user_id if event.app_user_id is not None else "").strip()
    if not (raw.isascii() and raw.isdigit()):
        return None
    user_id = int(raw)
    # users.id is a BIGINT.
    return user_id if 0 < user_id <= MAX_USER_ID else None


async def process_event(payload: schemas.WebhookPayload, *, now: datetime | None = None) -> None:
    event = payload.event or schemas.WebhookEvent()
    user_id = _user_id(event)
    user = await auth_repository.get_user_by_id(user_id) if user_id is not None else None

    # Unknown users are acknowledged so RevenueCat stops retrying.
    if user is None:
        logger.info("revenuecat_unknown_user app_user_id=%s type=%s", event.app_user_id, event.type)
        return None

    pro = entitlement_active(event, now=now)
    await repository.set_user_pro(int(user["id"]), pro=pro)
    logger.info("revenuecat_processed user_id=%s type=%s pro=%s", user["id"], event.type, pro)
