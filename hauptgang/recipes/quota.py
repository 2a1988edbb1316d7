"""
Monthly import quota.

Free users may create a fixed number of recipes per calendar month (UTC).
Failed imports do not count. Pro users are unlimited.
"""

from __future__ import annotations

from datetime import datetime, timezone

from fastapi import HTTPException, status

from . import repository

FREE_MONTHLY_IMPORT_LIMIT = 15
IMPORT_LIMIT_ERROR_CODE = "import_limit_reached"


def month_start(now: datetime | None = None) -> datetime:
    now = (now or datetime.now(timezone.utc)).astimezone(timezone.utc)
    return now.replace(day=1, hour=0, minute=0, second=0, microsecond=0)


def is_pro(user: dict) -> bool:
    return bool(user.get("pro", False))


async def monthly_import_count(user: dict, *, now: datetime | None = None) -> int:
    return await repository.count_imports_since(user_id=int(user["id"]), since=month_start(now))


async def import_limit_reached(user: dict, *, now: datetime | None = None) -> bool:
    if is_pro(user):
        return False
    return await monthly_import_count(user, now=now) >= FREE_MONTHLY_IMPORT_LIMIT


async def remaining_imports(user: dict, *, now: datetime | None = None) -> int | None:
    """
    Imports left this month; None means unlimited.
    """
    if is_pro(user):
        return None
    return max(FREE_MONTHLY_IMPORT_LIMIT - await monthly_import_count(user, now=now), 0)


async def ensure_import_allowed(user: dict) -> None:
    if await import_limit_reached(user):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail={
                "error": "Monthly import limit reached",
                "error_code": IMPORT_LIMIT_ERROR_CODE,
                "limit": FREE_MONTHLY_IMPORT_LIMIT,
            },
        )
