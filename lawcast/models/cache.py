"""
Data models for the notice cache.

Defines cache configuration and observability info models.
"""

from datetime import datetime
from typing import Optional
from pydantic import BaseModel, Field


class CacheConfig(BaseModel):
    """Notice cache configuration"""

    max_size: int = Field(default=50, ge=1, le=10000)
    default_limit: int = Field(default=10, ge=1, le=10000)


class CacheInfo(BaseModel):
    """Snapshot of cache state for status endpoints"""

    size: int = 0
    max_size: int
    is_initialized: bool = False
    last_updated: Optional[datetime] = None
