"""Destination commands for managing webhook destinations.

Provides commands to register, list, remove and count destinations.
"""

import asyncio
from pathlib import Path
from typing import Optional

import typer

from lawcast.cli.utils import (
    display_error,
    display_success,
    display_warning,
    handle_errors,
    resolve_registry_settings,
)
from lawcast.services.notification_service import NotificationService
from lawcast.services.registration import register_destination
from lawcast.services.registry_service import DestinationRegistry
from lawcast.utils.exceptions import (
    DestinationNotFoundError,
    DuplicateDestinationError,
    InvalidWebhookUrlError,
)

destinations_app = typer.Typer(help="Manage webhook destinations")

ConfigOption = typer.Option(
    None, "--config", "-c", help="Config file supplying registry path and message settings"
)
RegistryOption = typer.Option(
    None, "--registry", "-r", help="Registry JSON file (overrides --config)"
)


@destinations_app.command(name="add")
@handle_errors
def destinations_add(
    url: str = typer.Argument(..., help="Discord webhook URL"),
    config_path: Optional[Path] = ConfigOption,
    registry_path: Optional[Path] = RegistryOption,
):
    """Register a webhook and send it a test message."""
    path, notification = resolve_registry_settings(config_path, registry_path)
    registry = DestinationRegistry(path)
    notifier = NotificationService(notification)

    try:
        destination, probe = asyncio.run(
            register_destination(url, registry, notifier)
        )
    except DuplicateDestinationError as e:
        display_error(str(e))
        raise typer.Exit(code=1)
    except InvalidWebhookUrlError as e:
        display_error(f"Invalid webhook: {e}")
        raise typer.Exit(code=1)

    if probe.success:
        display_success(f"Destination {destination.id} registered; test message delivered.")
    else:
        display_warning(
            f"Destination {destination.id} registered, but the test message failed: "
            f"{probe.error}"
        )


@destinations_app.command(name="list")
@handle_errors
def destinations_list(
    show_all: bool = typer.Option(False, "--all", "-a", help="Include inactive"),
    config_path: Optional[Path] = ConfigOption,
    registry_path: Optional[Path] = RegistryOption,
):
    """List registered destinations."""
    path, _ = resolve_registry_settings(config_path, registry_path)
    registry = DestinationRegistry(path)

    destinations = registry.list_all() if show_all else registry.list_active()
    if not destinations:
        display_warning("No destinations registered.")
        return

    typer.echo(f"{len(destinations)} destinations:")
    for d in destinations:
        state = "active" if d.is_active else "inactive"
        typer.echo(f" - [{d.id}] {state} {_mask_url(d.url)} (added {d.created_at:%Y-%m-%d})")


@destinations_app.command(name="remove")
@handle_errors
def destinations_remove(
    destination_id: int = typer.Argument(..., help="Destination id"),
    config_path: Optional[Path] = ConfigOption,
    registry_path: Optional[Path] = RegistryOption,
):
    """Deactivate a destination."""
    path, _ = resolve_registry_settings(config_path, registry_path)
    registry = DestinationRegistry(path)

    try:
        registry.remove(destination_id)
    except DestinationNotFoundError as e:
        display_error(str(e))
        raise typer.Exit(code=1)

    display_success(f"Destination {destination_id} deactivated.")


@destinations_app.command(name="stats")
@handle_errors
def destinations_stats(
    config_path: Optional[Path] = ConfigOption,
    registry_path: Optional[Path] = RegistryOption,
):
    """Show destination counts."""
    path, _ = resolve_registry_settings(config_path, registry_path)
    stats = DestinationRegistry(path).stats()

    typer.echo(f"Total: {stats.total}")
    typer.echo(f"Active: {stats.active}")
    typer.echo(f"Inactive: {stats.inactive}")


def _mask_url(url: str) -> str:
    # Webhook tokens are credentials
    head, _, token = url.rpartition("/")
    if not head:
        return url
    return f"{head}/{token[:4]}..."
