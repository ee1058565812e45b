"""
Configuration management for SQLBridge.

This module provides environment-based configuration using Pydantic BaseSettings,
so dialect behaviour (identifier quoting, numeric scale fallback) and polling
behaviour (batch size, poll interval) can be tuned per deployment without code
changes.

Environment variables are loaded with the SQLBRIDGE_ prefix, e.g.
SQLBRIDGE_QUOTE_IDENTIFIERS=never. LOG_LEVEL and DATABASE_URL are read without
prefix.
"""

import os
from functools import lru_cache
from pathlib import Path
from typing import Literal, Optional

import structlog
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

logger = structlog.get_logger(__name__)

# Determine project root for resolving .env by default
PROJECT_ROOT = Path(__file__).resolve().parents[3]
DEFAULT_ENV_FILE = PROJECT_ROOT / ".env"
ENV_FILE_OVERRIDE = os.getenv("SQLBRIDGE_ENV_FILE")
if ENV_FILE_OVERRIDE:
    env_file_candidate = Path(ENV_FILE_OVERRIDE).expanduser()
    if not env_file_candidate.is_absolute():
        env_file_candidate = PROJECT_ROOT / env_file_candidate
    SETTINGS_ENV_FILE = env_file_candidate
else:
    SETTINGS_ENV_FILE = DEFAULT_ENV_FILE

# Scale used when a driver reports no usable scale for a NUMERIC column.
NUMERIC_TYPE_SCALE_HIGH = 127


class Settings(BaseSettings):
    """
    Application settings with environment variable support.

    Un-prefixed fields:
    - LOG_LEVEL: Logging level (uppercase)
    - DATABASE_URL: Optional connection URL used to pick a dialect up front
    """

    LOG_LEVEL: str = Field(
        default="INFO",
        validation_alias="LOG_LEVEL",
        description="Logging level (uppercase)",
    )
    DATABASE_URL: Optional[str] = Field(
        default=None,
        validation_alias="DATABASE_URL",
        description="Connection URL of the source/target database",
    )

    # Dialect behaviour
    quote_identifiers: Literal["always", "never", "context"] = Field(
        default="always",
        description="Identifier quoting policy applied by every dialect",
    )
    numeric_scale_high: int = Field(
        default=NUMERIC_TYPE_SCALE_HIGH,
        description="Scale used for NUMERIC columns whose scale is unset or 0/0",
    )

    # Polling behaviour
    batch_max_rows: int = Field(
        default=100,
        description="Maximum rows returned by a single querier poll",
    )
    poll_interval_ms: int = Field(
        default=5000,
        description="Minimum interval between two polls of the same querier",
    )
    timestamp_granularity: Literal["connect_logical", "nanos_iso_string"] = Field(
        default="connect_logical",
        description="How TIMESTAMP result columns are represented in records",
    )

    # Batch materialization
    null_string: str = Field(
        default="null",
        description="Text written for NULL values when rows are materialized",
    )
    update_mode: Literal["default", "first_row_only", "last_row_only"] = Field(
        default="default",
        description="Row reduction applied per key within one batch",
    )

    model_config = SettingsConfigDict(
        env_prefix="SQLBRIDGE_",
        env_file=SETTINGS_ENV_FILE,
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    @field_validator("quote_identifiers", "timestamp_granularity", "update_mode", mode="before")
    @classmethod
    def _normalize_choice(cls, value: object) -> object:
        if isinstance(value, str):
            return value.strip().lower()
        return value

    @field_validator("batch_max_rows", "poll_interval_ms")
    @classmethod
    def _positive(cls, value: int) -> int:
        if value <= 0:
            raise ValueError("must be a positive integer")
        return value


@lru_cache()
def get_settings() -> Settings:
    """
    Get cached application settings instance.

    Returns:
        Settings instance with configuration loaded from environment
    """
    settings = Settings()
    logger.debug(
        "settings.loaded",
        quote_identifiers=settings.quote_identifiers,
        batch_max_rows=settings.batch_max_rows,
        env_file=str(SETTINGS_ENV_FILE),
    )
    return settings
