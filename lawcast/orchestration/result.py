"""Poll cycle result data structure."""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional


# Cycle statuses
STATUS_SUCCESS = "success"
STATUS_EMPTY = "empty"
STATUS_FAILED = "failed"
STATUS_SKIPPED = "skipped"
STATUS_NOT_READY = "not_ready"


@dataclass
class PollCycleResult:
    """Result of one scheduled poll cycle.

    A cycle never raises; every outcome, including failures and skipped
    ticks, is reported through this value.
    """

    status: str
    fetched: int = 0
    new_notices: List[int] = field(default_factory=list)
    deliveries: int = 0
    failed_deliveries: int = 0
    deactivated_ids: List[int] = field(default_factory=list)
    error: Optional[str] = None
    duration_seconds: float = 0.0
    finished_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    @property
    def ran(self) -> bool:
        """True if the cycle actually fetched (not skipped or gated)."""
        return self.status not in (STATUS_SKIPPED, STATUS_NOT_READY)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for logging/serialization."""
        return {
            "status": self.status,
            "fetched": self.fetched,
            "new_notices": self.new_notices,
            "deliveries": self.deliveries,
            "failed_deliveries": self.failed_deliveries,
            "deactivated_ids": self.deactivated_ids,
            "error": self.error,
            "duration_seconds": round(self.duration_seconds, 3),
            "finished_at": self.finished_at.isoformat(),
        }
