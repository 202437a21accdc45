"""Serve command: run the polling daemon with its status server."""

import asyncio
from pathlib import Path
from typing import Optional

import typer

from lawcast.cli.utils import display_error, display_warning, handle_errors, load_config, logger
from lawcast.models.config import AppConfig
from lawcast.observability.logging import configure_logging
from lawcast.utils.exceptions import FetchError


@handle_errors
def serve_command(
    config_path: Path = typer.Option(
        "config/lawcast.yaml", "--config", "-c", help="Path to config YAML"
    ),
    port: Optional[int] = typer.Option(
        None, "--port", "-p", help="Status server port (overrides config)"
    ),
):
    """Start the polling daemon with health and status endpoints.

    Fetches once to establish the baseline (no notifications), then polls
    on the configured interval. Press Ctrl+C to stop; an in-flight poll
    cycle is given the configured grace period to finish.
    """
    config = load_config(config_path)
    if port is not None:
        config.server.port = port

    configure_logging(
        level=config.logging.level,
        json_output=config.logging.json_output,
    )

    try:
        asyncio.run(run_daemon(config))
    except FetchError as e:
        display_error(f"Startup fetch failed: {e}")
        raise typer.Exit(code=1)
    except KeyboardInterrupt:
        display_warning("\nDaemon stopped.")


async def run_daemon(config: AppConfig) -> None:
    """Wire up services, seed the cache, then poll until shutdown.

    Raises:
        FetchError: If the startup fetch fails; nothing is scheduled.
    """
    from lawcast.health.server import build_health_server, create_health_app
    from lawcast.orchestration.poller import NoticePoller
    from lawcast.scheduling import NoticeScheduler
    from lawcast.services.notice_cache import NoticeCache
    from lawcast.services.notification_service import NotificationService
    from lawcast.services.registry_service import DestinationRegistry
    from lawcast.services.sources.http_source import HttpNoticeSource

    registry = DestinationRegistry(Path(config.registry.path))
    poller = NoticePoller(
        source=HttpNoticeSource(config.source),
        cache=NoticeCache(config.cache),
        notifier=NotificationService(config.notification),
        registry=registry,
    )

    await poller.initialize()

    scheduler = NoticeScheduler(
        timezone=config.polling.timezone,
        shutdown_grace_seconds=config.polling.shutdown_grace_seconds,
    )
    scheduler.add_poll_job(poller, interval_minutes=config.polling.interval_minutes)

    app = create_health_app(
        poller=poller,
        registry=registry,
        scheduler=scheduler,
        recent_limit=config.server.recent_limit,
        poll_interval_minutes=config.polling.interval_minutes,
    )
    server = build_health_server(app, host=config.server.host, port=config.server.port)

    typer.secho("LawCast daemon running", fg=typer.colors.CYAN, bold=True)
    typer.echo(f"  Source: {config.source.url}")
    typer.echo(f"  Poll interval: {config.polling.interval_minutes} min")
    typer.echo(f"  Status: http://{config.server.host}:{config.server.port}/status")
    typer.echo("\nPress Ctrl+C to stop.\n")

    async def run_scheduler() -> None:
        try:
            await scheduler.start()
        finally:
            server.should_exit = True

    await asyncio.gather(server.serve(), run_scheduler())
    logger.info("daemon_stopped")
