"""
Centralized Configuration for the Backtest Engine
Uses Pydantic Settings with .env loading.

Only composition roots (CLI, batch runner) call ``get_settings()``; the
engine itself receives settings explicitly.
"""

from decimal import Decimal
from functools import lru_cache
from typing import Literal, Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class EngineSettings(BaseSettings):
    """Backtest engine settings."""
    model_config = SettingsConfigDict(env_prefix="BACKTEST_", extra="ignore")

    annualization_factor: Optional[int] = Field(default=None, ge=1)  # None = infer from bar spacing
    default_initial_capital: Decimal = Field(default=Decimal("10000"), gt=0)
    max_workers: Optional[int] = Field(default=None, ge=1)  # None = CPU count
    indicator_cache_enabled: bool = True


class LoggingSettings(BaseSettings):
    """Logging settings."""
    model_config = SettingsConfigDict(extra="ignore")

    log_level: str = Field(default="INFO", alias="LOG_LEVEL")
    log_format: Literal["text", "json"] = Field(default="text", alias="LOG_FORMAT")

    @field_validator("log_level", mode="before")
    @classmethod
    def validate_level(cls, v: str) -> str:
        """Normalize level name."""
        return str(v).upper()

    @field_validator("log_format", mode="before")
    @classmethod
    def validate_format(cls, v: str) -> str:
        """Normalize format name."""
        return str(v).lower()


class BacktestSettings(BaseSettings):
    """Main settings."""
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    engine: EngineSettings = Field(default_factory=EngineSettings)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)


@lru_cache()
def get_settings() -> BacktestSettings:
    """Get cached settings instance."""
    return BacktestSettings()


def reload_settings() -> BacktestSettings:
    """Force reload settings (clears cache)."""
    get_settings.cache_clear()
    return get_settings()
