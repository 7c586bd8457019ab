# -*- coding: utf-8 -*-
"""Location: ./helpdeskauthz/config.py
Copyright 2025
SPDX-License-Identifier: Apache-2.0

Helpdesk Authorization Configuration.
Settings are read from the environment (prefix ``HELPDESKAUTHZ_``) or a
``.env`` file. The decision engine reads no configuration; only the guards,
the logging service and the SQLAlchemy snapshot provider do.

Examples:
    >>> Settings(snapshot_cache_ttl=0).snapshot_cache_ttl == 0
    True
    >>> Settings(log_level="debug").log_level
    'DEBUG'
"""

# Standard
from functools import lru_cache
from typing import Literal

# Third-Party
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

LogLevel = Literal["CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG", "NOTSET"]


class Settings(BaseSettings):
    """Access-control settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_prefix="HELPDESKAUTHZ_",
        case_sensitive=False,
        extra="ignore",
    )

    log_level: LogLevel = "INFO"
    log_format: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

    # Seconds a guard reuses a loaded user snapshot; 0 disables the cache
    snapshot_cache_ttl: float = Field(default=5.0, ge=0)

    # Log every guard decision at INFO instead of only denials
    audit_decisions: bool = False

    database_url: str = "sqlite:///./helpdesk.db"

    @field_validator("log_level", mode="before")
    @classmethod
    def _normalize_log_level(cls, value):
        if isinstance(value, str):
            return value.strip().upper()
        return value


@lru_cache()
def get_settings() -> Settings:
    """Return the process-wide settings instance.

    Returns:
        Settings: Cached settings
    """
    return Settings()


settings = get_settings()
