"""Pydantic-based settings loaded entirely from environment variables.

All configuration is read from ``.env`` (or real env vars). Every field has a
sensible default, so a bare environment starts the host with the built-in
health-check job only.

Usage::

    from taskclock.config import get_settings
    settings = get_settings()
"""

from __future__ import annotations

from functools import lru_cache
from typing import Annotated, Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict

# ---------------------------------------------------------------------------
# Type alias: env var string "a,b,c" → list[str]
# ---------------------------------------------------------------------------
CsvList = Annotated[list[str], NoDecode]


class Settings(BaseSettings):
    """Central configuration — every field maps to an UPPER_SNAKE env var."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        case_sensitive=False,
        env_ignore_empty=True,
    )

    # -- General ------------------------------------------------------------
    log_level: str = "INFO"

    # -- Scheduler ----------------------------------------------------------
    scheduler_timezone: str = "UTC"
    # Worker threads per job; each job has its own pool.
    scheduler_max_workers: int = Field(default=10, ge=1)
    # "allow": a slow run may overlap the next firing of the same job.
    # "skip": a firing is dropped while the previous run is still in flight.
    scheduler_overlap: Literal["allow", "skip"] = "allow"
    scheduler_misfire_grace_seconds: int = Field(default=60, ge=1)
    scheduler_strict: bool = False

    # -- Job catalogue ------------------------------------------------------
    enabled_jobs: CsvList = Field(default_factory=lambda: ["health-check"])
    health_job_cron: str = "*/5 * * * *"
    example_job_cron: str = "* * * * *"
    daily_reminder_cron: str = "0 9 * * *"

    # -- Health check -------------------------------------------------------
    health_check_enabled: bool = True
    health_check_port: int = 10000
    health_check_path: str = "/health"

    # -- CSV field parsing --------------------------------------------------
    @field_validator("enabled_jobs", mode="before")
    @classmethod
    def split_csv(cls, value: object) -> list[str]:
        """Convert comma-separated env string to list."""
        if isinstance(value, str):
            return [item.strip() for item in value.split(",") if item.strip()]
        if isinstance(value, list):
            return value
        return []


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return a cached singleton Settings instance.

    Call ``get_settings.cache_clear()`` in tests to reset.
    """
    return Settings()
