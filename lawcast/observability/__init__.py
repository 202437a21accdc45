"""Observability module.

Provides:
- Correlation ID context management for poll cycle tracing
- Structured logging with context propagation
- Prometheus metrics for monitoring and alerting

Usage:
    from lawcast.observability import correlation_id_context, POLL_CYCLES

    with correlation_id_context():
        POLL_CYCLES.labels(status="success").inc()
"""

from lawcast.observability.context import (
    get_correlation_id,
    correlation_id_context,
)
from lawcast.observability.logging import (
    configure_logging,
    add_correlation_id_processor,
)
from lawcast.observability.metrics import (
    POLL_CYCLES,
    NOTICES_FETCHED,
    NEW_NOTICES,
    DELIVERIES,
    DESTINATIONS_DEACTIVATED,
    CACHE_SIZE,
    ACTIVE_DESTINATIONS,
    SCHEDULER_JOBS,
    POLL_CYCLE_DURATION,
    DELIVERY_DURATION,
    get_metrics_text,
    get_metrics_content_type,
)

__all__ = [
    # Context
    "get_correlation_id",
    "correlation_id_context",
    # Logging
    "configure_logging",
    "add_correlation_id_processor",
    # Counters
    "POLL_CYCLES",
    "NOTICES_FETCHED",
    "NEW_NOTICES",
    "DELIVERIES",
    "DESTINATIONS_DEACTIVATED",
    # Gauges
    "CACHE_SIZE",
    "ACTIVE_DESTINATIONS",
    "SCHEDULER_JOBS",
    # Histograms
    "POLL_CYCLE_DURATION",
    "DELIVERY_DURATION",
    # Utilities
    "get_metrics_text",
    "get_metrics_content_type",
]
