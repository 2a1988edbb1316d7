"""
Environment-backed settings.

Values are read at call time so tests can override them with
`monkeypatch.setenv` without reloading modules.
"""

from __future__ import annotations

import os

LOCAL_ENVIRONMENTS = {"development", "test"}


def env_str(name: str, default: str = "") -> str:
    return os.environ.get(name, default).strip() or default


def env_int(name: str, default: int) -> int:
    raw = os.environ.get(name, "").strip()
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError:
        return default


def env_float(name: str, default: float) -> float:
    raw = os.environ.get(name, "").strip()
    if not raw:
        return default
    try:
        return float(raw)
    except ValueError:
        return default


def env_bool(name: str, default: bool = False) -> bool:
    raw = os.environ.get(name, "").strip().lower()
    if not raw:
        return default
    return raw in {"1", "true", "yes", "on"}


def app_env() -> str:
    return env_str("APP_ENV", "development").lower()


def is_local_env() -> bool:
    return app_env() in LOCAL_ENVIRONMENTS


def cors_allow_origins() -> list[str]:
    raw = env_str("CORS_ALLOW_ORIGINS", "*")
    return [origin.strip() for origin in raw.split(",") if origin.strip()]
