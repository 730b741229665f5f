"""
Settings and environment management module for the technician KPI pipeline.

This module provides centralized configuration management using pydantic-settings,
which automatically loads settings from environment variables and .env files.

Key Features:
- Environment variable validation and type coercion
- Sensible defaults matching the field-service export contract
- Singleton pattern via @lru_cache for efficient access

Environment Variables:
- MAX_FILE_SIZE_MB: Upload size ceiling enforced by the validation gate (default: 10)
- DEFAULT_WEEK_OFFSET: Weeks back from the current week used by the scorecard job

Usage:
    from field_kpis.core.config import get_settings

    settings = get_settings()
    max_bytes = settings.max_file_size_bytes
"""

from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    The class inherits from pydantic-settings BaseSettings which provides:
    - Automatic loading from environment variables (case-insensitive)
    - Support for .env file loading
    - Type validation and coercion
    - Default values for optional settings

    Attributes:
        max_file_size_mb: Largest accepted upload per report, in megabytes.
        default_week_offset: How many weeks before the current one the weekly
            scorecard job reports on when no week is supplied.
    """

    model_config = SettingsConfigDict(
        env_file='.env',
        env_file_encoding='utf-8',
        extra='ignore',
        case_sensitive=False,
    )

    # =========================================================================
    # Upload Limits
    # =========================================================================

    # Files are read fully into memory, so this ceiling bounds worst-case memory
    max_file_size_mb: int = Field(default=10, gt=0)

    # =========================================================================
    # Weekly Scorecard Job
    # =========================================================================

    # 1 = previous full Monday-Sunday week, 0 = the current week
    default_week_offset: int = Field(default=1, ge=0)

    @property
    def max_file_size_bytes(self) -> int:
        """Upload ceiling in bytes."""
        return self.max_file_size_mb * 1024 * 1024


@lru_cache()
def get_settings() -> Settings:
    """
    Get the application settings singleton.

    Returns:
        Settings: The application settings instance with all configuration values.

    Raises:
        pydantic.ValidationError: If an environment variable has an invalid value
            (e.g., MAX_FILE_SIZE_MB=0).

    Note:
        To refresh settings in tests, you can clear the cache:
        >>> get_settings.cache_clear()
    """
    return Settings()
