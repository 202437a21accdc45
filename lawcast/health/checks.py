"""Health check implementations for the LawCast daemon.

Provides checks for:
- Poller readiness and cache baseline
- Poll recency (a stalled scheduler shows up here)
- Destination registry readability

Usage:
    checker = HealthChecker(poller=poller, registry=registry)

    # Run all checks
    report = await checker.check_all()
"""

import asyncio
import time
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Optional
import structlog

from lawcast.orchestration.poller import NoticePoller
from lawcast.services.registry_service import DestinationRegistry

logger = structlog.get_logger()


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class HealthStatus(str, Enum):
    """Overall health status."""

    HEALTHY = "healthy"
    DEGRADED = "degraded"
    UNHEALTHY = "unhealthy"


class CheckStatus(str, Enum):
    """Individual check status."""

    PASS = "pass"
    WARN = "warn"
    FAIL = "fail"


@dataclass
class CheckResult:
    """Result of a single health check."""

    name: str
    status: CheckStatus
    message: str
    duration_ms: float = 0.0
    details: Dict[str, Any] = field(default_factory=dict)
    timestamp: datetime = field(default_factory=_utcnow)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "name": self.name,
            "status": self.status.value,
            "message": self.message,
            "duration_ms": round(self.duration_ms, 2),
            "details": self.details,
            "timestamp": self.timestamp.isoformat(),
        }


@dataclass
class HealthReport:
    """Complete health report with all check results."""

    status: HealthStatus
    checks: List[CheckResult]
    timestamp: datetime = field(default_factory=_utcnow)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "status": self.status.value,
            "checks": [c.to_dict() for c in self.checks],
            "timestamp": self.timestamp.isoformat(),
        }


class HealthChecker:
    """Health checker for the poll daemon.

    Without a poller (e.g. the server was started standalone) the poller
    checks fail, so /health reports unhealthy rather than falsely healthy.
    """

    def __init__(
        self,
        poller: Optional[NoticePoller] = None,
        registry: Optional[DestinationRegistry] = None,
        poll_interval_minutes: int = 10,
        stale_after_intervals: int = 3,
    ):
        """Initialize health checker.

        Args:
            poller: Poll orchestrator to inspect
            registry: Destination registry to inspect
            poll_interval_minutes: Configured poll interval
            stale_after_intervals: Missed intervals before last_poll warns
        """
        self.poller = poller
        self.registry = registry
        self.poll_interval_minutes = poll_interval_minutes
        self.stale_after_intervals = stale_after_intervals

    async def check_all(self) -> HealthReport:
        """Run all health checks and return comprehensive report."""
        checks: List[CheckResult] = []

        results = await asyncio.gather(
            self.check_cache_ready(),
            self.check_last_poll(),
            self.check_registry(),
            return_exceptions=True,
        )

        for result in results:
            if isinstance(result, Exception):
                checks.append(
                    CheckResult(
                        name="unknown",
                        status=CheckStatus.FAIL,
                        message=f"Check failed: {str(result)}",
                    )
                )
            elif isinstance(result, CheckResult):
                checks.append(result)

        return HealthReport(status=self._determine_overall_status(checks), checks=checks)

    def _determine_overall_status(self, checks: List[CheckResult]) -> HealthStatus:
        if any(c.status == CheckStatus.FAIL for c in checks):
            return HealthStatus.UNHEALTHY
        if any(c.status == CheckStatus.WARN for c in checks):
            return HealthStatus.DEGRADED
        return HealthStatus.HEALTHY

    async def check_cache_ready(self) -> CheckResult:
        """Poller initialized and cache holding a baseline."""
        start = time.time()
        name = "cache_ready"

        if self.poller is None:
            return CheckResult(
                name=name,
                status=CheckStatus.FAIL,
                message="No poller attached",
            )

        info = self.poller.cache_info()
        details = info.model_dump(mode="json")
        duration_ms = (time.time() - start) * 1000

        if not self.poller.is_ready:
            return CheckResult(
                name=name,
                status=CheckStatus.FAIL,
                message="Poller not initialized",
                duration_ms=duration_ms,
                details=details,
            )
        if not info.is_initialized:
            # Startup fetch was empty; the next successful poll seeds it
            return CheckResult(
                name=name,
                status=CheckStatus.WARN,
                message="Cache has no baseline yet",
                duration_ms=duration_ms,
                details=details,
            )
        return CheckResult(
            name=name,
            status=CheckStatus.PASS,
            message=f"Cache holds {info.size} notices",
            duration_ms=duration_ms,
            details=details,
        )

    async def check_last_poll(self) -> CheckResult:
        """Last poll cycle outcome and recency."""
        start = time.time()
        name = "last_poll"

        if self.poller is None:
            return CheckResult(
                name=name,
                status=CheckStatus.FAIL,
                message="No poller attached",
            )

        last = self.poller.last_result
        last_success = self.poller.last_success
        duration_ms = (time.time() - start) * 1000

        if last is None:
            return CheckResult(
                name=name,
                status=CheckStatus.PASS,
                message="No poll cycle has run yet",
                duration_ms=duration_ms,
            )

        details: Dict[str, Any] = {"last_status": last.status}
        stale_seconds = self.poll_interval_minutes * 60 * self.stale_after_intervals

        if last_success is None:
            return CheckResult(
                name=name,
                status=CheckStatus.WARN,
                message="No successful poll cycle yet",
                duration_ms=duration_ms,
                details=details,
            )

        age = (_utcnow() - last_success.finished_at).total_seconds()
        details["seconds_since_success"] = round(age, 1)

        if age > stale_seconds:
            return CheckResult(
                name=name,
                status=CheckStatus.WARN,
                message=f"Last successful poll {int(age)}s ago",
                duration_ms=duration_ms,
                details=details,
            )
        return CheckResult(
            name=name,
            status=CheckStatus.PASS,
            message="Polling on schedule",
            duration_ms=duration_ms,
            details=details,
        )

    async def check_registry(self) -> CheckResult:
        """Destination registry readable."""
        start = time.time()
        name = "registry"

        if self.registry is None:
            return CheckResult(
                name=name,
                status=CheckStatus.WARN,
                message="No registry attached",
            )

        try:
            stats = self.registry.stats()
        except Exception as e:
            logger.error("registry_check_failed", error=str(e))
            return CheckResult(
                name=name,
                status=CheckStatus.FAIL,
                message=f"Registry unreadable: {str(e)}",
                duration_ms=(time.time() - start) * 1000,
            )

        duration_ms = (time.time() - start) * 1000
        details = stats.model_dump()
        if stats.active == 0:
            return CheckResult(
                name=name,
                status=CheckStatus.WARN,
                message="No active destinations",
                duration_ms=duration_ms,
                details=details,
            )
        return CheckResult(
            name=name,
            status=CheckStatus.PASS,
            message=f"{stats.active} active destinations",
            duration_ms=duration_ms,
            details=details,
        )

    async def is_ready(self) -> bool:
        """Ready once the startup fetch has succeeded."""
        return self.poller is not None and self.poller.is_ready

    async def is_alive(self) -> bool:
        """Check if service is alive (basic liveness)."""
        return True
