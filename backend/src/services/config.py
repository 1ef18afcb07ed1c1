"""Application configuration helpers."""

from __future__ import annotations

from functools import lru_cache
import os
from pathlib import Path
from typing import Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from pydantic import BaseModel, ConfigDict, Field, field_validator

PROJECT_ROOT = Path(__file__).resolve().parents[3]
DEFAULT_DB_PATH = PROJECT_ROOT / "data" / "notes.db"

_FALSY = {"0", "false", "no", "off"}


class AppConfig(BaseModel):
    """Runtime configuration loaded from environment variables."""

    model_config = ConfigDict(frozen=True)

    database_path: Path = Field(DEFAULT_DB_PATH, description="SQLite database file")
    jwt_secret_key: Optional[str] = Field(
        default=None,
        description="HMAC secret for JWT validation (required for JWT auth)",
    )
    enable_local_mode: bool = Field(
        default=True,
        description="Accept the static local-dev token when running locally",
    )
    local_dev_token: Optional[str] = Field(
        default="local-dev-token",
        description="Static token accepted in local mode for development",
    )
    local_dev_user_id: str = Field(
        default="local-dev",
        description="User id the local-dev token authenticates as",
    )
    can_search_notes: bool = Field(
        default=True,
        description="Default search policy for authenticated users",
    )
    anonymous_can_search_notes: bool = Field(
        default=True,
        description="Search policy for callers without credentials",
    )
    search_timezone: str = Field(
        default="UTC",
        description="IANA zone used to expand start:/end: dates into day bounds",
    )
    seed_demo_data: bool = Field(
        default=False,
        description="Insert demo users and notes at startup",
    )

    @field_validator("database_path", mode="before")
    @classmethod
    def _normalize_db_path(cls, value: str | Path | None) -> Path:
        if value is None or value == "":
            return DEFAULT_DB_PATH
        path = value if isinstance(value, Path) else Path(value)
        return path.expanduser().resolve()

    @field_validator("jwt_secret_key", mode="before")
    @classmethod
    def _ensure_secret(cls, value: Optional[str]) -> Optional[str]:
        if value is None:
            return None
        cleaned = value.strip()
        if not cleaned:
            raise ValueError(
                "JWT_SECRET_KEY cannot be empty; unset the variable to disable JWT auth in local mode"
            )
        if len(cleaned) < 16:
            raise ValueError("JWT_SECRET_KEY must be at least 16 characters")
        return cleaned

    @field_validator("search_timezone")
    @classmethod
    def _check_timezone(cls, value: str) -> str:
        try:
            ZoneInfo(value)
        except (ZoneInfoNotFoundError, ValueError) as exc:
            raise ValueError(f"Unknown SEARCH_TIMEZONE: {value!r}") from exc
        return value

    @property
    def tzinfo(self) -> ZoneInfo:
        return ZoneInfo(self.search_timezone)


def _read_env(key: str, default: Optional[str] = None) -> Optional[str]:
    return os.getenv(key, default)


def _read_flag(key: str, default: str) -> bool:
    return (_read_env(key, default) or "").strip().lower() not in _FALSY


@lru_cache(maxsize=1)
def get_config() -> AppConfig:
    """Load and cache application configuration."""
    config = AppConfig(
        database_path=_read_env("DATABASE_PATH", str(DEFAULT_DB_PATH)),
        jwt_secret_key=_read_env("JWT_SECRET_KEY"),
        enable_local_mode=_read_flag("ENABLE_LOCAL_MODE", "true"),
        local_dev_token=_read_env("LOCAL_DEV_TOKEN", "local-dev-token"),
        local_dev_user_id=_read_env("LOCAL_DEV_USER_ID", "local-dev"),
        can_search_notes=_read_flag("CAN_SEARCH_NOTES", "true"),
        anonymous_can_search_notes=_read_flag("ANONYMOUS_CAN_SEARCH_NOTES", "true"),
        search_timezone=_read_env("SEARCH_TIMEZONE", "UTC"),
        seed_demo_data=_read_flag("SEED_DEMO_DATA", "false"),
    )
    return config


def reload_config() -> AppConfig:
    """Clear cached config (useful for tests) and reload."""
    get_config.cache_clear()
    return get_config()


__all__ = ["AppConfig", "get_config", "reload_config", "PROJECT_ROOT", "DEFAULT_DB_PATH"]
