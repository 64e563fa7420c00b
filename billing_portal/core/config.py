from __future__ import annotations

from functools import lru_cache
from pathlib import Path
from typing import Annotated, Any, Iterable

from pydantic import AliasChoices, Field, field_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict

DEFAULT_DOMAINS = ["Computer Science", "Software Engineering", "Electrical Engineering"]


class AppSettings(BaseSettings):
    """Environment-driven application configuration."""

    model_config = SettingsConfigDict(
        env_file=(".env", ".env.local"),
        env_file_encoding="utf-8",
        extra="ignore",
    )

    APP_NAME: str = "Academic ERP"
    BASE_DIR: Path = Field(default_factory=lambda: Path(__file__).resolve().parent.parent)
    TEMPLATES_DIR: Path | None = None
    STATIC_DIR: Path | None = None
    TZ: str = "Asia/Kolkata"
    LOG_LEVEL: str = "INFO"

    HOST: str = "0.0.0.0"
    PORT: int = 8090

    BACKEND_BASE_URL: str = Field(
        default="http://localhost:8080",
        validation_alias=AliasChoices("BACKEND_BASE_URL", "API_BASE_URL"),
    )
    BACKEND_TIMEOUT: float = 10.0
    OAUTH_AUTHORIZATION_PATH: str = "/oauth2/authorization/google"

    APP_SECRET: str = "dev-insecure-secret-change-me"
    SESSION_COOKIE_NAME: str = "erp_session"
    SESSION_MAX_AGE: int = 60 * 60 * 8
    SESSION_HTTPS_ONLY: bool = False

    SUCCESS_DISPLAY_SECONDS: int = 3
    # Comma separated in the environment, so skip the JSON decoding step.
    DOMAINS: Annotated[list[str], NoDecode] = Field(default_factory=lambda: list(DEFAULT_DOMAINS))

    @property
    def oauth_login_url(self) -> str:
        return self.BACKEND_BASE_URL.rstrip("/") + self.OAUTH_AUTHORIZATION_PATH

    @field_validator("BACKEND_BASE_URL")
    @classmethod
    def strip_trailing_slash(cls, value: str) -> str:
        return value.rstrip("/")

    @field_validator("DOMAINS", mode="before")
    @classmethod
    def parse_domains(cls, value: Any) -> list[str]:
        if value in (None, "", []):
            return list(DEFAULT_DOMAINS)
        if isinstance(value, str):
            return [item.strip() for item in value.split(",") if item.strip()]
        if isinstance(value, Iterable):
            return [str(item).strip() for item in value if str(item).strip()]
        raise TypeError("DOMAINS must be a comma separated string or list")


@lru_cache(maxsize=1)
def get_settings() -> AppSettings:
    settings = AppSettings()
    if settings.TEMPLATES_DIR is None:
        settings.TEMPLATES_DIR = settings.BASE_DIR / "templates"
    if settings.STATIC_DIR is None:
        settings.STATIC_DIR = settings.BASE_DIR / "static"
    return settings


settings = get_settings()
