"""Application configuration objects."""
from __future__ import annotations

import logging
from functools import lru_cache
from pathlib import Path
from typing import Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Pydantic settings used to configure the application."""

    model_config = SettingsConfigDict(
        env_prefix="STOCKROOM_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    app_name: str = Field(
        default="Stockroom",
        description="Human friendly name for the API.",
    )
    environment: Literal["development", "staging", "production", "test"] = Field(
        default="development",
        description="Deployment environment flag.",
    )
    data_path: Path = Field(
        default=Path("data") / "inventory-data.txt",
        description="Location of the pipe-delimited inventory file.",
    )
    low_stock_threshold: int = Field(
        default=5,
        ge=1,
        description="Quantity at or below which an item counts as low stock.",
    )
    expiring_within_days: int = Field(
        default=3,
        ge=0,
        description="Days ahead of expiration at which an item is flagged.",
    )
    log_level: str = Field(
        default="INFO",
        description="Root log level name, e.g. DEBUG or WARNING.",
    )
    host: str = Field(default="127.0.0.1", description="Development server host.")
    port: int = Field(default=5000, ge=1, le=65535, description="Development server port.")

    @field_validator("log_level")
    @classmethod
    def _validate_log_level(cls, value: str) -> str:
        normalized = value.strip().upper()
        if not isinstance(logging.getLevelName(normalized), int):
            raise ValueError(f"Unknown log level: {value}")
        return normalized


@lru_cache
def get_settings() -> Settings:
    """Return a cached instance of :class:`Settings`."""

    return Settings()


__all__ = ["Settings", "get_settings"]
