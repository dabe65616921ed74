from __future__ import annotations

import os
from functools import lru_cache
from pathlib import Path

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_DATABASE_URL = "sqlite+aiosqlite:///./data/daybook.db"


class Settings(BaseSettings):
    """Application configuration loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        populate_by_name=True,
    )

    database_url: str = Field(default=DEFAULT_DATABASE_URL, alias="DATABASE_URL")
    log_file: Path = Field(default=Path("logs/daybook.log"), alias="LOG_FILE")
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")

    # Accounts and sessions
    session_ttl_days: int = Field(default=30, alias="SESSION_TTL_DAYS")
    cookie_secure: bool = Field(default=False, alias="COOKIE_SECURE")
    login_rate_limit: int = Field(default=10, alias="LOGIN_RATE_LIMIT")

    # Analytics
    analytics_default_days: int = Field(default=30, alias="ANALYTICS_DEFAULT_DAYS")
    analytics_max_days: int = Field(default=366, alias="ANALYTICS_MAX_DAYS")

    version: str = Field(default_factory=lambda: Settings._load_version())

    @staticmethod
    def _load_version() -> str:
        version_env = os.getenv("VERSION")
        if version_env:
            return version_env
        version_file = Path("VERSION")
        if version_file.exists():
            return version_file.read_text(encoding="utf-8").strip()
        return "0.0.0"

    @field_validator("log_file", mode="before")
    @classmethod
    def _validate_log_file(cls, value: Path | str) -> Path:
        path = Path(value)
        if not path.parent.exists():
            path.parent.mkdir(parents=True, exist_ok=True)
        return path

    @field_validator("log_level", mode="before")
    @classmethod
    def _validate_log_level(cls, value: str | None) -> str:
        allowed = {"DEBUG", "INFO", "WARNING", "ERROR"}
        normalized = str(value or "INFO").upper()
        if normalized not in allowed:
            return "INFO"
        return normalized

    @field_validator("session_ttl_days", mode="before")
    @classmethod
    def _validate_session_ttl(cls, value: int | str | None) -> int:
        if value is None or value == "":
            return 30
        return max(int(value), 1)

    @field_validator("login_rate_limit", mode="before")
    @classmethod
    def _validate_login_rate_limit(cls, value: int | str | None) -> int:
        if value is None or value == "":
            return 10
        return max(int(value), 1)

    @field_validator("analytics_default_days", mode="before")
    @classmethod
    def _validate_analytics_days(cls, value: int | str | None) -> int:
        if value is None or value == "":
            return 30
        return min(max(int(value), 1), 366)

    @field_validator("analytics_max_days", mode="before")
    @classmethod
    def _validate_analytics_max_days(cls, value: int | str | None) -> int:
        if value is None or value == "":
            return 366
        return min(max(int(value), 1), 366)

    @field_validator("database_url", mode="before")
    @classmethod
    def _validate_database_url(cls, value: str | None) -> str:
        if not value:
            value = "sqlite:///./data/daybook.db"

        normalized = str(value)
        if normalized.startswith("postgres://"):
            normalized = normalized.replace("postgres://", "postgresql://", 1)
        if normalized.startswith("postgresql://") and "+asyncpg" not in normalized:
            normalized = normalized.replace("postgresql://", "postgresql+asyncpg://", 1)
        if normalized.startswith("sqlite://") and "+aiosqlite" not in normalized:
            normalized = normalized.replace("sqlite://", "sqlite+aiosqlite://", 1)

        if normalized.startswith("sqlite+aiosqlite:///"):
            db_path = normalized.split("///", maxsplit=1)[-1]
            if db_path and db_path != ":memory:":
                db_file = Path(db_path)
                db_file.parent.mkdir(parents=True, exist_ok=True)

        return normalized


@lru_cache
def get_settings() -> Settings:
    """Cached settings accessor."""

    return Settings()
