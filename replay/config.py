"""Replay configuration."""

from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Settings loaded from environment variables.

    Settings are loaded in this priority order (highest to lowest):
    1. Environment variables (prefixed with REPLAY_)
    2. .env file (for local development)
    3. Default values
    """

    model_config = SettingsConfigDict(
        env_prefix="REPLAY_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # =========================================================================
    # Logging
    # =========================================================================
    debug: bool = Field(
        default=False,
        description="Show debug logs on stderr (same as --debug)",
    )

    # =========================================================================
    # Remote sources
    # =========================================================================
    # Region of s3:// buckets. Objects are fetched anonymously over HTTPS from
    # the bucket's virtual-hosted endpoint, so only public buckets work.
    s3_region: str = Field(
        default="us-east-1",
        description="AWS region hosting s3:// data sources",
    )

    fetch_timeout: float = Field(
        default=120.0,
        description="HTTP request timeout in seconds for remote partitions",
    )

    # =========================================================================
    # Partition cache
    # =========================================================================
    # When set, partitions fetched from remote sources are kept here and
    # reused on later queries for the same day.
    cache_dir: Path | None = Field(
        default=None,
        description="Local directory for caching remote partitions (e.g., 'data/cache')",
    )


settings = Settings()
