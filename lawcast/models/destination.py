"""Destination registry data models.

This module defines the data structures for:
- Destinations (registered webhook endpoints)
- The persisted registry state
- Registry statistics
"""

from datetime import datetime, timezone
from typing import Dict, List, Optional
from pydantic import BaseModel, ConfigDict, Field


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Destination(BaseModel):
    """A registered outbound notification endpoint.

    Inactive destinations are excluded from fan-out but kept on disk
    for audit.
    """

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "id": 1,
                "url": "https://discord.com/api/webhooks/123456789012345678/abc",
                "is_active": True,
                "created_at": "2025-01-24T10:00:00Z",
                "updated_at": "2025-01-24T10:00:00Z",
            }
        }
    )

    id: int = Field(..., ge=1, description="Stable integer identity")
    url: str = Field(..., min_length=1, max_length=2000)
    is_active: bool = Field(default=True)
    created_at: datetime = Field(default_factory=_utcnow)
    updated_at: datetime = Field(default_factory=_utcnow)


class RegistryState(BaseModel):
    """Complete registry state persisted to disk."""

    version: str = Field(default="1.0")
    next_id: int = Field(default=1, ge=1)
    destinations: Dict[int, Destination] = Field(default_factory=dict)
    updated_at: Optional[datetime] = None

    def find_by_url(self, url: str) -> Optional[Destination]:
        """Find a destination (active or not) by exact URL."""
        for destination in self.destinations.values():
            if destination.url == url:
                return destination
        return None

    def active(self) -> List[Destination]:
        """Active destinations ordered by id."""
        return sorted(
            (d for d in self.destinations.values() if d.is_active),
            key=lambda d: d.id,
        )


class RegistryStats(BaseModel):
    """Destination counts for status endpoints"""

    total: int = 0
    active: int = 0
    inactive: int = 0
