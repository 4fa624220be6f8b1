"""
Centralized configuration for the fitness client.

All settings are loaded from environment variables with sensible defaults.
Module-specific settings are namespaced (e.g., STORAGE_*, API_*).
"""

from functools import lru_cache
from pathlib import Path
from typing import Literal, Optional
from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Application
    app_name: str = "Fitness Client"
    app_version: str = "0.1.0"
    debug: bool = False
    log_level: str = "INFO"

    # Remote API
    api_base_url: str = "https://dev-api.fitnessapp.jutechnik.com/api/v1"
    request_timeout: float = 30.0  # seconds

    # Durable session storage
    storage_namespace: str = "com.jutechnik.fitnessclient"
    storage_dir: Path = Path.home() / ".fitness-client"
    storage_backend: Literal["memory", "file", "encrypted"] = "file"
    storage_encryption_key: str = ""

    # Optional passcode gate in front of the stored token
    token_passcode: Optional[str] = None

    @field_validator("api_base_url")
    @classmethod
    def strip_trailing_slash(cls, value: str) -> str:
        return value.rstrip("/")

    @field_validator("log_level")
    @classmethod
    def normalize_log_level(cls, value: str) -> str:
        return value.upper()


@lru_cache
def get_settings() -> Settings:
    """
    Get cached settings instance.

    Uses lru_cache to ensure settings are only loaded once.
    """
    return Settings()
