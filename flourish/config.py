"""
Configuration and settings for the Flourish API.
"""

from __future__ import annotations

from functools import lru_cache
from typing import Optional

from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Environment-backed settings for the FastAPI service."""

    model_config = SettingsConfigDict(
        env_file=".env", env_file_encoding="utf-8", extra="ignore"
    )

    api_prefix: str = Field(default="/api")
    log_level: str = Field(default="INFO", env="LOG_LEVEL")
    cors_origins: str = Field(default="*", env="CORS_ORIGINS")

    # Firebase (service account JSON as a string; default credentials otherwise)
    firebase_service_account_key: Optional[str] = Field(
        default=None, env="FIREBASE_SERVICE_ACCOUNT_KEY"
    )

    # Self-hosted alternative to Firestore (any SQLAlchemy URL)
    database_url: Optional[str] = Field(default=None, env="DATABASE_URL")

    # LLM / Gemini
    gemini_api_key: Optional[str] = Field(default=None, env="GEMINI_API_KEY")
    gemini_model: str = Field(default="gemini-1.5-flash", env="GEMINI_MODEL")

    # RevenueCat
    revenuecat_webhook_secret: Optional[str] = Field(
        default=None, env="REVENUECAT_WEBHOOK_SECRET"
    )
    revenuecat_api_key: Optional[str] = Field(default=None, env="REVENUECAT_API_KEY")

    # Development toggles
    use_in_memory_backends: bool = Field(
        default=False,
        validation_alias=AliasChoices(
            "FLOURISH_USE_IN_MEMORY_BACKENDS", "use_in_memory_backends"
        ),
    )

    @property
    def cors_origin_list(self) -> list[str]:
        return [origin.strip() for origin in self.cors_origins.split(",") if origin.strip()]


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return cached settings instance."""
    return Settings()
