"""
Configuration management for the league tracker.

Uses Pydantic Settings to load configuration from environment variables
with sensible defaults for a single-user local install. Anything that
differs per machine (database location, log level, RNG seed) should be
set via environment variables or a .env file.

Usage:
    from leaguetracker.config import settings
    print(settings.database_url)
"""

from functools import lru_cache
from typing import Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    Environment variables can be set directly or via a .env file
    in the project root directory.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    # ==========================================================================
    # Database Configuration
    # ==========================================================================

    # Local SQLite file by default; any SQLAlchemy URL works
    database_url: str = Field(
        default="sqlite:///league.db",
        description="SQLAlchemy connection URL for the league database",
    )

    # Pool settings (ignored for SQLite, which manages its own pool)
    db_pool_size: int = Field(
        default=5,
        description="Number of connections to keep in the pool",
    )
    db_max_overflow: int = Field(
        default=10,
        description="Max additional connections beyond pool_size",
    )
    db_echo: bool = Field(
        default=False,
        description="Log every SQL statement (very noisy)",
    )

    # ==========================================================================
    # League Defaults
    # ==========================================================================

    default_total_weeks: int = Field(
        default=6,
        description="Weeks used when a tournament is created without an explicit length",
    )
    default_random_achievements_per_week: int = Field(
        default=2,
        description="Random achievements rolled per week when not specified",
    )

    # Seeded into an empty achievement catalog by the sanitize hook
    default_achievement_name: str = Field(
        default="First Blood",
        description="Name of the achievement seeded into an empty catalog",
    )
    default_achievement_points: int = Field(
        default=1,
        description="Points for the seeded achievement",
    )
    default_achievement_always_on: bool = Field(
        default=False,
        description="Whether the seeded achievement is active every week",
    )

    random_seed: Optional[int] = Field(
        default=None,
        description=(
            "Seed for pod shuffles and achievement rolls. Leave unset for "
            "normal play; set it to make a session reproducible."
        ),
    )

    # ==========================================================================
    # Logging Configuration
    # ==========================================================================

    log_level: str = Field(
        default="INFO",
        description="Logging level (DEBUG, INFO, WARNING, ERROR)",
    )

    # ==========================================================================
    # Validators
    # ==========================================================================

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Ensure log level is valid."""
        valid_levels = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        upper_v = v.upper()
        if upper_v not in valid_levels:
            raise ValueError(f"log_level must be one of {valid_levels}")
        return upper_v


@lru_cache
def get_settings() -> Settings:
    """
    Get cached settings instance.

    Using lru_cache ensures we only load settings once,
    which is important because loading from .env can be slow.
    """
    return Settings()


# Convenience alias for importing
settings = get_settings()
