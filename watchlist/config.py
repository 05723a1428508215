"""Client configuration models."""

from __future__ import annotations

import logging
from functools import lru_cache
from typing import Literal

from pydantic import Field, HttpUrl, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


LogLevel = Literal["DEBUG", "INFO", "WARNING", "ERROR"]


class Settings(BaseSettings):
    """Settings loaded from environment variables or a .env file."""

    app_name: str = Field(default="Watchlist", alias="APP_NAME")
    api_base_url: HttpUrl = Field(
        default="http://localhost:8080/api", alias="API_BASE_URL"
    )
    request_timeout_seconds: float = Field(
        default=20.0, alias="REQUEST_TIMEOUT", gt=0, le=300
    )

    search_debounce_seconds: float = Field(
        default=0.4, alias="SEARCH_DEBOUNCE_SECONDS", ge=0, le=5
    )
    search_min_chars: int = Field(default=3, alias="SEARCH_MIN_CHARS", ge=1, le=20)
    search_max_results: int = Field(
        default=5, alias="SEARCH_MAX_RESULTS", ge=1, le=50
    )

    recommendation_count: int = Field(
        default=4, alias="RECOMMENDATION_COUNT", ge=1, le=50
    )
    auto_refresh_interval_seconds: int | None = Field(
        default=None, alias="AUTO_REFRESH_INTERVAL", ge=60
    )
    priority_rollback_on_failure: bool = Field(
        default=False, alias="PRIORITY_ROLLBACK"
    )

    log_level: LogLevel = Field(default="INFO", alias="LOG_LEVEL")

    @field_validator("auto_refresh_interval_seconds", mode="before")
    @classmethod
    def _blank_interval_disables(cls, value: object) -> object:
        """Treat an empty ``AUTO_REFRESH_INTERVAL`` as disabled."""

        if isinstance(value, str) and not value.strip():
            return None
        return value

    @field_validator("log_level", mode="before")
    @classmethod
    def _normalise_log_level(cls, value: object) -> object:
        if isinstance(value, str):
            return value.strip().upper()
        return value

    @property
    def api_base(self) -> str:
        """Return the API base URL without a trailing slash."""

        return str(self.api_base_url).rstrip("/")

    @property
    def logging_level(self) -> int:
        return getattr(logging, self.log_level)

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8")


@lru_cache
def get_settings() -> Settings:
    """Return a cached settings instance."""

    return Settings()  # type: ignore[call-arg]


settings = get_settings()
