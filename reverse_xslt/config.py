"""
Library configuration using pydantic-settings.

Loads configuration from environment variables with sensible defaults.
"""
from functools import lru_cache
from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Library settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_prefix="REVERSE_XSLT_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Logging
    log_level: str = "INFO"
    log_json: bool = False

    # Search budget (None disables the limit)
    max_search_steps: Optional[int] = Field(default=1_000_000, ge=1)
    search_timeout_seconds: Optional[float] = Field(default=None, gt=0)

    # Tokenizer
    xsl_namespace: str = "http://www.w3.org/1999/XSL/Transform"


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
