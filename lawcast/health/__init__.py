"""Health checks and status server for LawCast."""

from lawcast.health.checks import (
    CheckResult,
    CheckStatus,
    HealthChecker,
    HealthReport,
    HealthStatus,
)
from lawcast.health.server import (
    create_health_app,
    get_health_checker,
    set_health_checker,
)

__all__ = [
    "CheckResult",
    "CheckStatus",
    "HealthChecker",
    "HealthReport",
    "HealthStatus",
    "create_health_app",
    "get_health_checker",
    "set_health_checker",
]
