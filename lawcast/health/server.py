"""FastAPI status server for the LawCast daemon.

Provides HTTP endpoints for:
- /health - Full health check
- /ready - Readiness probe (startup fetch succeeded)
- /live - Liveness probe
- /metrics - Prometheus metrics in text format
- /status - Cache, destination and poller status
- /notices/recent - Most recent cached notices

Usage:
    from lawcast.health.server import create_health_app
    app = create_health_app(poller=poller, registry=registry)
"""

from contextlib import asynccontextmanager
from typing import Any, Dict, Optional

from fastapi import FastAPI, Query, Response, status
from fastapi.responses import JSONResponse, PlainTextResponse
import structlog

from lawcast import __version__
from lawcast.health.checks import HealthChecker, HealthStatus
from lawcast.observability.metrics import get_metrics_text, get_metrics_content_type
from lawcast.orchestration.poller import NoticePoller
from lawcast.scheduling.scheduler import NoticeScheduler
from lawcast.services.registry_service import DestinationRegistry

logger = structlog.get_logger()

# Global health checker instance
_health_checker: Optional[HealthChecker] = None


def get_health_checker() -> HealthChecker:
    """Get or create the global health checker instance."""
    global _health_checker
    if _health_checker is None:
        _health_checker = HealthChecker()
    return _health_checker


def set_health_checker(checker: Optional[HealthChecker]) -> None:
    """Set (or reset with None) the global health checker instance."""
    global _health_checker
    _health_checker = checker


@asynccontextmanager
async def lifespan(app: FastAPI):  # pragma: no cover
    logger.info("status_server_starting")
    get_health_checker()
    yield
    logger.info("status_server_stopping")


def create_health_app(
    poller: Optional[NoticePoller] = None,
    registry: Optional[DestinationRegistry] = None,
    scheduler: Optional[NoticeScheduler] = None,
    recent_limit: int = 20,
    poll_interval_minutes: int = 10,
    title: str = "LawCast Status API",
) -> FastAPI:
    """Create FastAPI application with health and status endpoints.

    When a poller is given, a HealthChecker bound to it replaces the
    global instance.

    Args:
        poller: Poll orchestrator exposed by /status and /notices/recent
        registry: Destination registry exposed by /status
        scheduler: Poll scheduler whose jobs are listed by /status
        recent_limit: Default and maximum limit for /notices/recent
        poll_interval_minutes: Used to judge poll recency in /health
        title: API title

    Returns:
        Configured FastAPI application
    """
    if poller is not None or registry is not None:
        set_health_checker(
            HealthChecker(
                poller=poller,
                registry=registry,
                poll_interval_minutes=poll_interval_minutes,
            )
        )

    app = FastAPI(
        title=title,
        version=__version__,
        description="Health, metrics and status endpoints for the LawCast poller",
        lifespan=lifespan,
    )

    @app.get(
        "/health",
        response_model=None,
        summary="Full health check",
        responses={
            200: {"description": "Healthy or degraded"},
            503: {"description": "One or more checks failed"},
        },
    )
    async def health_check() -> Response:
        """Returns 200 if healthy/degraded, 503 if unhealthy."""
        checker = get_health_checker()
        report = await checker.check_all()

        status_code = (
            status.HTTP_200_OK
            if report.status != HealthStatus.UNHEALTHY
            else status.HTTP_503_SERVICE_UNAVAILABLE
        )

        return JSONResponse(content=report.to_dict(), status_code=status_code)

    @app.get(
        "/ready",
        response_model=None,
        summary="Readiness probe",
        responses={
            200: {"description": "Service is ready"},
            503: {"description": "Service is not ready"},
        },
    )
    async def readiness_probe() -> Response:
        checker = get_health_checker()
        if await checker.is_ready():
            return JSONResponse(
                content={"ready": True, "message": "Service is ready"},
                status_code=status.HTTP_200_OK,
            )
        return JSONResponse(
            content={"ready": False, "message": "Service is not ready"},
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
        )

    @app.get("/live", response_model=None, summary="Liveness probe")
    async def liveness_probe() -> Response:
        checker = get_health_checker()
        is_alive = await checker.is_alive()

        return JSONResponse(
            content={"alive": is_alive, "message": "Service is alive"},
            status_code=status.HTTP_200_OK,
        )

    @app.get(
        "/metrics",
        response_class=PlainTextResponse,
        summary="Prometheus metrics",
    )
    async def prometheus_metrics() -> Response:
        return Response(
            content=get_metrics_text(),
            media_type=get_metrics_content_type(),
        )

    @app.get("/status", response_model=None, summary="Daemon status")
    async def daemon_status() -> Response:
        """Cache info, destination counts, poller state and poll schedule."""
        if poller is None:
            return JSONResponse(
                content={"error": "Poller not attached"},
                status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            )

        body: Dict[str, Any] = {
            "cache": poller.cache_info().model_dump(mode="json"),
            "poller": poller.status(),
            "destinations": (
                registry.stats().model_dump() if registry is not None else None
            ),
            "jobs": scheduler.get_jobs() if scheduler is not None else None,
        }
        return JSONResponse(content=body, status_code=status.HTTP_200_OK)

    @app.get(
        "/notices/recent",
        response_model=None,
        summary="Most recent notices",
    )
    async def recent_notices(
        limit: int = Query(recent_limit, ge=1, le=recent_limit),
    ) -> Response:
        """Most recent cached notices, newest first."""
        if poller is None:
            return JSONResponse(
                content={"error": "Poller not attached"},
                status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            )

        notices = poller.recent(limit)
        return JSONResponse(
            content={
                "count": len(notices),
                "notices": [n.model_dump(mode="json") for n in notices],
            },
            status_code=status.HTTP_200_OK,
        )

    @app.get("/", response_model=None, summary="Root endpoint")
    async def root() -> Dict[str, Any]:
        return {
            "name": title,
            "version": __version__,
            "endpoints": {
                "health": "/health",
                "ready": "/ready",
                "live": "/live",
                "metrics": "/metrics",
                "status": "/status",
                "recent": "/notices/recent",
            },
        }

    return app


def build_health_server(  # pragma: no cover
    app: FastAPI,
    host: str = "0.0.0.0",
    port: int = 8000,
    log_level: str = "warning",
):
    """Create a uvicorn server for the app without starting it.

    Returns:
        uvicorn.Server; await ``serve()`` to run, set ``should_exit`` to stop.
    """
    import uvicorn

    config = uvicorn.Config(
        app,
        host=host,
        port=port,
        log_level=log_level,
        access_log=False,
    )
    logger.info("status_server_configured", host=host, port=port)
    return uvicorn.Server(config)
