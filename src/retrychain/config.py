"""
Configuration settings for retrychain.

Settings are loaded from environment variables prefixed with ``RETRYCHAIN_``
(e.g. ``RETRYCHAIN_MAX_ATTEMPTS=5``) with sensible defaults. A ``.env`` file
is honored for local development. These values are only fallbacks for the
default policy: anything passed explicitly to ``wrap``/``retry`` wins.
"""

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Library settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_prefix="RETRYCHAIN_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # === Default policy ===
    INITIAL_DELAY: float = Field(default=150, ge=0)  # ms, median first delay
    MAX_DELAY: float = Field(default=30_000, ge=0)  # ms, cap for a single delay
    MAX_ATTEMPTS: int = Field(default=10, ge=1)
    TIMEOUT: float = Field(default=30_000, ge=0)  # ms, soft deadline
    FAST_TRACK: bool = False  # First re-attempt runs immediately

    # === Logging ===
    LOG_LEVEL: str = "INFO"
    ENVIRONMENT: str = "development"  # "production" switches to JSON logs


# Global settings instance
settings = Settings()
