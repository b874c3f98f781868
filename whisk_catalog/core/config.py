"""Harness settings with Pydantic validation and environment loading."""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path
from typing import Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


# Feed triggers are not reliably armed sooner on a live platform
LIVE_TRIGGER_SETTLE_SECONDS = 20.0


class Settings(BaseSettings):
    """Harness settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        populate_by_name=True,
    )

    # Whisk checkout that holds the action sources and tests/dat
    whisk_home: Path = Field(
        default=Path("."),
        description="Root directory that relative test files are resolved against",
    )

    # Platform CLI
    wsk_cli: str = Field(default="wsk", description="Platform CLI executable")
    wsk_auth: Optional[str] = Field(
        default=None, description="Auth key (falls back to AUTH in .wskprops)"
    )
    wsk_apihost: Optional[str] = Field(
        default=None, description="API host (falls back to APIHOST in .wskprops)"
    )
    wsk_insecure: bool = Field(
        default=False, description="Pass -i to skip TLS verification"
    )
    wskprops_path: Path = Field(default=Path("~/.wskprops"))
    wsk_command_timeout: float = Field(default=60.0, gt=0)

    # Document store
    cloudant_scheme: str = Field(default="https")
    cloudant_timeout: float = Field(default=30.0, gt=0)

    # Fixture files, relative to whisk_home
    thumbnail_properties: str = "tests/dat/cloudant.thumbnail.properties"
    image_properties: str = "tests/dat/cloudant.image.properties"
    thumbnail_action_file: str = "catalog/actions/thumbnail/thumbnail.js"

    # Waits (seconds). Lower values are for offline tests only; the live
    # health gate rejects a settle time below LIVE_TRIGGER_SETTLE_SECONDS.
    trigger_settle_seconds: float = Field(
        default=LIVE_TRIGGER_SETTLE_SECONDS,
        ge=0,
        description="Wait after a feed trigger is created",
    )
    activation_log_wait: int = Field(default=60, ge=1)
    trigger_log_wait: int = Field(default=60, ge=1)
    log_poll_interval: float = Field(default=1.0, gt=0)

    # Logging
    log_level: str = "INFO"
    log_format: str = Field(default="text", description="text or json")
    debug: bool = False

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        valid = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        upper = v.upper()
        if upper not in valid:
            raise ValueError(f"log_level must be one of {valid}")
        return upper

    @field_validator("log_format")
    @classmethod
    def validate_log_format(cls, v: str) -> str:
        lower = v.lower()
        if lower not in {"text", "json"}:
            raise ValueError("log_format must be 'text' or 'json'")
        return lower

    @field_validator("cloudant_scheme")
    @classmethod
    def validate_scheme(cls, v: str) -> str:
        lower = v.lower()
        if lower not in {"http", "https"}:
            raise ValueError("cloudant_scheme must be 'http' or 'https'")
        return lower

    def get_file_relative_to_whisk_home(self, path: str | Path) -> Path:
        """Resolve ``path`` against ``whisk_home`` unless it is absolute."""
        candidate = Path(path).expanduser()
        if candidate.is_absolute():
            return candidate
        return (self.whisk_home.expanduser() / candidate).resolve()


@lru_cache
def get_settings() -> Settings:
    """Cached settings factory."""
    return Settings()
