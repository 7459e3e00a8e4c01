"""
Application configuration models and helpers.

Centralizes settings management so the HTTP API, the coordinator and the
command-line scripts share a consistent configuration surface.
"""

from functools import lru_cache
from pathlib import Path
from typing import Optional

import os

from pydantic import AnyHttpUrl, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


def _load_env_file(path: str = ".env") -> None:
    """Best-effort load key=value pairs from a .env file into the environment."""
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


class ReportServiceSettings(BaseSettings):
    """Configuration for the remote account data report service."""

    model_config = SettingsConfigDict(extra="ignore")

    base_url: AnyHttpUrl = Field(..., validation_alias="REPORT_SERVICE_URL")
    username: Optional[str] = Field(
        None,
        validation_alias="REPORT_SERVICE_USERNAME",
        description="Account identifier used for HTTP basic authentication.",
    )
    password: Optional[str] = Field(
        None,
        validation_alias="REPORT_SERVICE_PASSWORD",
        description="Account secret used for HTTP basic authentication.",
    )
    data_report_path: str = Field(
        "/v2/accounts/data_report", validation_alias="REPORT_SERVICE_DATA_REPORT_PATH"
    )
    timeout_seconds: float = Field(10.0, validation_alias="REPORT_SERVICE_TIMEOUT")
    retry_attempts: int = Field(
        1,
        ge=1,
        validation_alias="REPORT_SERVICE_RETRY_ATTEMPTS",
        description="Transport attempts per download. Failures are not retried by default.",
    )

    @field_validator("data_report_path")
    @classmethod
    def _ensure_leading_slash(cls, value: str) -> str:
        return value if value.startswith("/") else f"/{value}"


class StorageSettings(BaseSettings):
    """Local persistence for the cached report."""

    model_config = SettingsConfigDict(extra="ignore")

    db_path: str = Field("data/account_export.db", validation_alias="ACCOUNT_EXPORT_DB_PATH")
    encryption_secret: Optional[str] = Field(
        None,
        validation_alias="REPORT_ENCRYPTION_SECRET",
        description="Secret used to derive the key encrypting the cached report at rest.",
    )


class AppSettings(BaseSettings):
    """Root settings object for the application."""

    model_config = SettingsConfigDict(
        env_file=".env", env_file_encoding="utf-8", extra="ignore"
    )

    environment: str = Field("development", validation_alias="APP_ENV")
    log_level: str = Field("INFO", validation_alias="APP_LOG_LEVEL")
    report_service: ReportServiceSettings = Field(default_factory=ReportServiceSettings)
    storage: StorageSettings = Field(default_factory=StorageSettings)


@lru_cache()
def get_settings() -> AppSettings:
    """Return a cached settings object."""
    return AppSettings()  # type: ignore[call-arg]


__all__ = [
    "AppSettings",
    "ReportServiceSettings",
    "StorageSettings",
    "get_settings",
]
