"""Configuration schema — Pydantic models for config.yaml."""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, Field


class CacheConfig(BaseModel):
    # None = entries without an explicit policy never go stale
    default_timeout_s: float | None = Field(default=None, ge=0)
    refresh_workers: int = Field(default=4, ge=1)


class LoggingConfig(BaseModel):
    level: str = "INFO"
    format: Literal["json", "console"] = "json"
    # Level for the saintmode.* loggers; None follows `level`
    library_level: str | None = None


class AppConfig(BaseModel):
    cache: CacheConfig = Field(default_factory=CacheConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)
