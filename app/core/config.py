"""
Application configuration models and helpers.

Centralizes settings management so the FastAPI app, the token refresh
scheduler and the maintenance scripts share a consistent configuration surface.
"""

from functools import lru_cache
from pathlib import Path
from typing import Optional

import os

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


def _load_env_file(path: str = ".env") -> None:
    """Best-effort load key=value pairs from a .env file without extra deps."""
    env_path = Path(path)
    if not env_path.exists():
        return
    for raw_line in env_path.read_text().splitlines():
        line = raw_line.strip()
        if not line or line.startswith("#"):
            continue
        key, sep, value = line.partition("=")
        if not sep:
            continue
        key = key.strip()
        if not key or key in os.environ:
            continue
        cleaned = value.strip().strip('"').strip("'")
        os.environ[key] = cleaned


_load_env_file()


class InstagramSettings(BaseSettings):
    """Configuration required for talking to the Instagram Graph API."""

    model_config = SettingsConfigDict(populate_by_name=True, extra="ignore")

    client_token: Optional[str] = Field(
        None,
        alias="CLIENT_TOKEN",
        description="Fallback access token used when no persisted token exists.",
    )
    refresh_interval_days: int = Field(30, alias="IG_REFRESH_INTERVAL_DAYS", ge=1)
    token_path: Path = Field(Path("token.json"), alias="IG_TOKEN_PATH")
    graph_base_url: str = Field(
        "https://graph.instagram.com", alias="IG_GRAPH_BASE_URL"
    )
    post_limit: int = Field(12, alias="IG_POST_LIMIT", ge=1)
    request_timeout_seconds: float = Field(10.0, alias="IG_REQUEST_TIMEOUT", gt=0)

    @field_validator("client_token", mode="before")
    @classmethod
    def _blank_token_is_missing(cls, value: Optional[str]) -> Optional[str]:
        if isinstance(value, str) and not value.strip():
            return None
        return value


class AppSettings(BaseSettings):
    """Root settings object for the FastAPI application."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        populate_by_name=True,
        extra="ignore",
    )

    environment: str = Field("development", alias="APP_ENV")
    log_level: str = Field("INFO", alias="APP_LOG_LEVEL")
    port: int = Field(5001, alias="PORT")
    base_url: Optional[str] = Field(
        None,
        alias="BASE_URL",
        description="Externally advertised URL; derived from the port when omitted.",
    )
    cors_allow_origins: str = Field("*", alias="CORS_ALLOW_ORIGINS")
    instagram: InstagramSettings = Field(default_factory=InstagramSettings)

    @property
    def advertised_base_url(self) -> str:
        if self.base_url:
            return self.base_url.rstrip("/")
        return f"http://localhost:{self.port}"

    @property
    def cors_origins(self) -> list[str]:
        """Support providing origins as a comma-separated string."""
        return [
            origin.strip()
            for origin in self.cors_allow_origins.split(",")
            if origin.strip()
        ]


@lru_cache()
def get_settings() -> AppSettings:
    """Return a cached settings object."""
    return AppSettings()  # type: ignore[call-arg]


__all__ = [
    "AppSettings",
    "InstagramSettings",
    "get_settings",
]
