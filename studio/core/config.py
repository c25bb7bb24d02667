"""Environment-driven configuration for Studio Manager.

Every knob the application reads lives here so nobody has to hunt for
``os.getenv`` calls scattered across routers and services. Values come from
the process environment first and ``.env`` / ``.env.local`` second.
"""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path
from typing import Any, Iterable

from pydantic import AliasChoices, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

PACKAGE_DIR = Path(__file__).resolve().parent.parent


class Settings(BaseSettings):
    """Application settings loaded once at import time."""

    model_config = SettingsConfigDict(
        env_file=(".env", ".env.local"),
        env_file_encoding="utf-8",
        extra="ignore",
    )

    APP_NAME: str = "Studio Manager"
    BASE_DIR: Path = Field(default_factory=lambda: PACKAGE_DIR.parent)
    DATA_DIR: Path = Field(default_factory=lambda: PACKAGE_DIR.parent / "data")
    TEMPLATES_DIR: Path = Field(default_factory=lambda: PACKAGE_DIR / "templates")
    STATIC_DIR: Path = Field(default_factory=lambda: PACKAGE_DIR / "static")
    TZ: str = "America/Sao_Paulo"
    LOG_LEVEL: str = "INFO"

    # ---- Browser sessions
    # Cookie/session secret. MUST be long & random in production.
    APP_SECRET: str = "dev-insecure-secret-change-me"
    SESSION_COOKIE_NAME: str = "studio_session"
    SESSION_MAX_AGE: int = 60 * 60 * 24 * 30
    SESSION_HTTPS_ONLY: bool = False

    # ---- Headless clients (JWT bearer tokens)
    JWT_SECRET: str = "change-me"
    JWT_ACCESS_TTL_MIN: int = 15
    JWT_REFRESH_TTL_DAYS: int = 7
    ALLOWED_ORIGINS: list[str] = Field(default_factory=list)

    DB_URL: str = Field(default="", validation_alias=AliasChoices("DB_URL", "DATABASE_URL"))

    HOST: str = "0.0.0.0"
    PORT: int = 8089

    # Quick-project briefings and brand assets share the same cap (50 MB).
    MAX_UPLOAD_BYTES: int = 50 * 1024 * 1024
    DEFAULT_CURRENCY: str = "BRL"

    @property
    def uploads_dir(self) -> Path:
        return self.DATA_DIR / "uploads"

    @property
    def timers_dir(self) -> Path:
        return self.DATA_DIR / "timers"

    @field_validator("ALLOWED_ORIGINS", mode="before")
    @classmethod
    def parse_allowed_origins(cls, value: Any) -> list[str]:
        if value in (None, "", []):
            return []
        if isinstance(value, str):
            return [item.strip() for item in value.split(",") if item.strip()]
        if isinstance(value, Iterable):
            return [str(item).strip() for item in value if str(item).strip()]
        raise TypeError("ALLOWED_ORIGINS must be a comma separated string or list")


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    settings = Settings()
    settings.DATA_DIR.mkdir(parents=True, exist_ok=True)
    if not settings.DB_URL:
        settings.DB_URL = f"sqlite:///{settings.DATA_DIR / 'studio.db'}"
    return settings


# Importing ``settings`` anywhere gives the same configured instance.
settings = get_settings()
