from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Any, Mapping


@dataclass(frozen=True)
class Settings:
    secret_key: str
    env: str
    database_url: str

    auth_cookie_name: str
    auth_session_ttl_seconds: int


def _getenv(name: str, default: str = "") -> str:
    return (os.environ.get(name) or default).strip()


def _getenv_int(name: str, default: int) -> int:
    raw = _getenv(name)
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError:
        return default


def load_settings() -> Settings:
    return Settings(
        secret_key=_getenv("SECRET_KEY", "change-me"),
        env=_getenv("ENV", "development"),
        database_url=_getenv("DATABASE_URL", "sqlite:///alumnet.db"),
        auth_cookie_name=_getenv("AUTH_COOKIE_NAME", "alumnet_session"),
        # 7 days
        auth_session_ttl_seconds=_getenv_int("AUTH_SESSION_TTL_SECONDS", 60 * 60 * 24 * 7),
    )


def load_config() -> dict:
    s = load_settings()
    return {
        "SECRET_KEY": s.secret_key,
        "ENV": s.env,
        "DATABASE_URL": s.database_url,
        "AUTH_COOKIE_NAME": s.auth_cookie_name,
        "AUTH_SESSION_TTL_SECONDS": s.auth_session_ttl_seconds,
        # cookie defaults
        "AUTH_COOKIE_SECURE": is_production(s.env),  # Require HTTPS in production
        "AUTH_COOKIE_SAMESITE": "Lax",
        "MAX_CONTENT_LENGTH": 1 * 1024 * 1024,
        "JSON_SORT_KEYS": False,
    }


def is_production(env: str | None) -> bool:
    return (env or "").strip().lower() in ("prod", "production")


def check_production_config(config: Mapping[str, Any]) -> None:
    """Fail fast on settings that must never reach a production deploy."""
    database_url = str(config.get("DATABASE_URL") or "").strip()
    if not database_url:
        raise RuntimeError("DATABASE_URL is required in production.")
    if database_url.startswith("sqlite"):
        raise RuntimeError("DATABASE_URL must be Postgres in production (not sqlite).")
    if str(config.get("SECRET_KEY") or "") in ("", "change-me"):
        raise RuntimeError("SECRET_KEY must be set to a strong value in production (not default).")
