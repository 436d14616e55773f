# src/config/settings.py — v2
"""Typed configuration loaded from .env via pydantic-settings.

Single source of truth for all deployment-specific settings. Built once at
process start and passed to factories; components never read the
environment themselves.
"""

from __future__ import annotations

from pathlib import Path
from typing import Literal

from pydantic import field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class ConfigurationError(Exception):
    """Raised when configuration is internally inconsistent."""


class Settings(BaseSettings):
    """Application settings loaded from .env file."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # === Compute backend ===
    backend_url: str = "http://localhost:8000"
    backend_infer_path: str = "/infer"
    backend_timeout_s: float = 300.0

    # === Fingerprint ===
    fingerprint_chunk_size: int = 1024 * 1024

    # === Cache ===
    cache_backend: Literal["json", "sqlite", "redis"] = "json"
    cache_root: Path = Path("~/.stemcache/cache")
    cache_redis_url: str = ""

    # === History ===
    history_backend: Literal["sqlite", "redis"] = "sqlite"
    history_db_path: Path = Path("~/.stemcache/history.db")
    history_redis_url: str = ""
    history_default_page_size: int = 10
    history_max_page_size: int = 100
    history_timestamp_format: str = "%Y-%m-%d %H:%M:%S"

    # === Uploads ===
    upload_dir: Path = Path("~/.stemcache/uploads")

    # === Logging ===
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"
    log_format: Literal["json", "text"] = "json"
    log_file: Path | None = None
    log_rotation: str = "10MB"
    log_retention: int = 30

    # --- Validators ---

    @field_validator("backend_url")
    @classmethod
    def strip_backend_url(cls, v: str) -> str:  # noqa: N805
        """Drop trailing slashes so path joining stays predictable."""
        return v.rstrip("/")

    @field_validator("backend_infer_path")
    @classmethod
    def validate_infer_path(cls, v: str) -> str:  # noqa: N805
        if not v.startswith("/"):
            return f"/{v}"
        return v

    @model_validator(mode="after")
    def validate_config_consistency(self) -> Settings:
        """Validate cross-field consistency rules."""
        errors: list[str] = []

        if not self.backend_url:
            errors.append("BACKEND_URL must be set")

        if self.backend_timeout_s <= 0:
            errors.append("BACKEND_TIMEOUT_S must be > 0")

        if self.fingerprint_chunk_size <= 0:
            errors.append("FINGERPRINT_CHUNK_SIZE must be > 0")

        if self.history_default_page_size < 1:
            errors.append("HISTORY_DEFAULT_PAGE_SIZE must be >= 1")

        if self.history_max_page_size < self.history_default_page_size:
            errors.append(
                "HISTORY_MAX_PAGE_SIZE must be >= HISTORY_DEFAULT_PAGE_SIZE"
            )

        if self.cache_backend == "redis" and not self.cache_redis_url:
            errors.append("CACHE_REDIS_URL must be set when CACHE_BACKEND=redis")

        if self.history_backend == "redis" and not self.history_redis_url:
            errors.append(
                "HISTORY_REDIS_URL must be set when HISTORY_BACKEND=redis"
            )

        if errors:
            raise ConfigurationError("; ".join(errors))

        return self

    # --- Helpers ---

    @property
    def backend_infer_url(self) -> str:
        """Full URL of the backend inference endpoint."""
        return f"{self.backend_url}{self.backend_infer_path}"


def load_settings(**overrides: object) -> Settings:
    """Load settings from .env with optional overrides.

    Raises:
        ConfigurationError: If configuration is internally inconsistent.
    """
    return Settings(**overrides)  # type: ignore[arg-type]
