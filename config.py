"""
Configuration settings for the pathfinder engine.

Uses Pydantic Settings for environment variable management with .env file support.
"""
from __future__ import annotations

from functools import lru_cache
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_prefix="PATHFINDER_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # ========================================
    # State Store
    # ========================================
    state_backend: Literal["memory", "sql"] = Field(
        default="memory",
        description="Where student skill states live: process-local memory or SQL database",
    )
    database_url: str = Field(
        default="sqlite+aiosqlite:///pathfinder.db",
        description="SQLAlchemy connection string (async driver) for the sql backend",
    )
    bootstrap_new_students: bool = Field(
        default=True,
        description="Synthesize starter skill states for students with no history",
    )

    # ========================================
    # Skill Catalog
    # ========================================
    catalog_cache_ttl_seconds: float = Field(
        default=300.0,
        ge=0,
        description="How long the skill catalog is cached before reloading (0 disables)",
    )

    # ========================================
    # Planner
    # ========================================
    default_plan_max: int = Field(
        default=5,
        ge=1,
        le=10,
        description="Task cap used when a plan request does not specify one",
    )
    default_daily_xp_goal: int = Field(
        default=80,
        ge=0,
        description="Daily XP goal assigned to new student profiles",
    )

    # ========================================
    # Logging
    # ========================================
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = Field(
        default="INFO",
        description="Logging verbosity level",
    )
    log_file: str | None = Field(
        default=None,
        description="Log file path (None for stderr only)",
    )

    def is_sql_backend(self) -> bool:
        return self.state_backend == "sql"


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
