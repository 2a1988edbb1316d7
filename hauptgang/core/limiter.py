"""
Rate limiter shared across routers.

Uses slowapi keyed by client address. The limiter is attached to
`app.state.limiter` in main.py. Limits are off in local environments
(development/test), matching how sign-in throttling is only wanted in
deployed environments.
"""

from __future__ import annotations

from slowapi import Limiter
from slowapi.util import get_remote_address

from . import settings

AUTH_RATE_LIMIT = "10/3 minutes"

limiter = Limiter(key_func=get_remote_address, enabled=not settings.is_local_env())
