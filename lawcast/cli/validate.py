"""Validate command for configuration files."""

from pathlib import Path

import typer

from lawcast.services.config_manager import ConfigManager
from lawcast.cli.utils import handle_errors, display_success, display_error


@handle_errors
def validate_command(
    config_path: Path = typer.Argument(..., help="Config file to validate"),
):
    """Validate configuration file syntax and semantics."""
    try:
        manager = ConfigManager(config_path=str(config_path))
        config = manager.load_config()
    except Exception as e:
        display_error(f"Validation failed: {e}")
        raise typer.Exit(code=1)

    display_success("Configuration is valid!")
    typer.echo(f"  Source: {config.source.url}")
    typer.echo(f"  Poll interval: {config.polling.interval_minutes} min")
    typer.echo(f"  Cache size: {config.cache.max_size}")
    typer.echo(f"  Registry: {config.registry.path}")
