"""CacheItem — a key/value pair for bulk-style writes."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field


class CacheItem(BaseModel):
    key: str = Field(min_length=1)
    value: Any = None
