"""Prometheus metrics definitions for LawCast.

Defines counters, gauges, and histograms for monitoring:
- Poll cycle throughput, outcome and latency
- Notice change detection
- Webhook delivery outcomes
- Destination lifecycle
- Scheduler status

Usage:
    from lawcast.observability.metrics import POLL_CYCLES, DELIVERIES

    POLL_CYCLES.labels(status="success").inc()
    DELIVERIES.labels(outcome="permanent").inc()

Metrics are exposed via the /metrics endpoint of the status server.
"""

from prometheus_client import (
    Counter,
    Gauge,
    Histogram,
    CollectorRegistry,
    generate_latest,
    CONTENT_TYPE_LATEST,
)

# Custom registry to avoid conflicts with the default registry
REGISTRY = CollectorRegistry(auto_describe=True)

# =============================================================================
# COUNTERS
# =============================================================================

POLL_CYCLES = Counter(
    name="lawcast_poll_cycles_total",
    documentation="Total poll cycles by final status",
    labelnames=["status"],  # success, empty, failed, skipped, not_ready
    registry=REGISTRY,
)

NOTICES_FETCHED = Counter(
    name="lawcast_notices_fetched_total",
    documentation="Total notices returned by the source",
    registry=REGISTRY,
)

NEW_NOTICES = Counter(
    name="lawcast_new_notices_total",
    documentation="Total notices detected as new",
    registry=REGISTRY,
)

DELIVERIES = Counter(
    name="lawcast_deliveries_total",
    documentation="Total webhook delivery attempts by outcome",
    labelnames=["outcome"],  # delivered, transient, permanent
    registry=REGISTRY,
)

DESTINATIONS_DEACTIVATED = Counter(
    name="lawcast_destinations_deactivated_total",
    documentation="Total destinations deactivated after permanent failures",
    registry=REGISTRY,
)

# =============================================================================
# GAUGES
# =============================================================================

CACHE_SIZE = Gauge(
    name="lawcast_cache_size",
    documentation="Number of notices held in the change-detection cache",
    registry=REGISTRY,
)

ACTIVE_DESTINATIONS = Gauge(
    name="lawcast_active_destinations",
    documentation="Active destinations seen by the last fan-out",
    registry=REGISTRY,
)

SCHEDULER_JOBS = Gauge(
    name="lawcast_scheduler_jobs",
    documentation="Number of scheduled jobs",
    labelnames=["status"],  # pending, running
    registry=REGISTRY,
)

# =============================================================================
# HISTOGRAMS
# =============================================================================

POLL_CYCLE_DURATION = Histogram(
    name="lawcast_poll_cycle_duration_seconds",
    documentation="Poll cycle duration in seconds",
    buckets=(0.1, 0.5, 1, 2, 5, 10, 30, 60, 120, float("inf")),
    registry=REGISTRY,
)

DELIVERY_DURATION = Histogram(
    name="lawcast_delivery_duration_seconds",
    documentation="Single webhook delivery duration in seconds",
    buckets=(0.05, 0.1, 0.25, 0.5, 1, 2, 5, 10, float("inf")),
    registry=REGISTRY,
)


def get_metrics_text() -> bytes:
    """Generate Prometheus metrics in text exposition format."""
    return generate_latest(REGISTRY)


def get_metrics_content_type() -> str:
    """Content-Type header value for the Prometheus metrics response."""
    return CONTENT_TYPE_LATEST
