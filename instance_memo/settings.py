"""Settings for the memoization package.

Values come from ``INSTANCE_MEMO_*`` environment variables or a ``.env`` file
in the working directory. Every field has a default, so nothing is required.

    from instance_memo.settings import get_settings
    settings = get_settings()
"""

from functools import lru_cache

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


_LOG_LEVELS = {"TRACE", "DEBUG", "INFO", "SUCCESS", "WARNING", "ERROR", "CRITICAL"}


class Settings(BaseSettings):
    """Package-wide defaults, read once at first use."""

    model_config = SettingsConfigDict(
        env_prefix="INSTANCE_MEMO_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    log_level: str = Field(
        default="INFO",
        description="Level of the stderr sink installed by configure_logging()",
    )
    deep_equality: bool = Field(
        default=True,
        description="Equality mode for members that do not set deep_equality",
    )

    @field_validator("log_level", mode="before")
    @classmethod
    def normalize_log_level(cls, v):
        """Accept any casing, reject unknown loguru levels."""
        level = str(v).strip().upper()
        if level not in _LOG_LEVELS:
            raise ValueError(f"Unknown log level: {v}")
        return level


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance (singleton pattern)."""
    return Settings()
