"""Shared CLI utilities.

Provides common functionality for all CLI commands.
"""

import functools
from pathlib import Path
from typing import Callable, Optional, Tuple, TypeVar

import structlog
import typer

from lawcast.models.config import AppConfig, NotificationConfig
from lawcast.observability.logging import configure_logging
from lawcast.services.config_manager import ConfigManager, ConfigValidationError
from lawcast.services.registry_service import DEFAULT_REGISTRY_PATH

# Quiet console logging for one-shot commands; `serve` reconfigures
configure_logging(level="WARNING", json_output=False)
logger = structlog.get_logger()

F = TypeVar("F", bound=Callable)


def load_config(config_path: Path) -> AppConfig:
    """Load and validate configuration.

    Raises:
        typer.Exit: If configuration is invalid.
    """
    config_manager = ConfigManager(config_path=str(config_path))
    try:
        return config_manager.load_config()
    except (FileNotFoundError, ConfigValidationError) as e:
        typer.secho(f"Configuration Error: {e}", fg=typer.colors.RED)
        raise typer.Exit(code=1)


def resolve_registry_settings(
    config_path: Optional[Path],
    registry_path: Optional[Path],
) -> Tuple[Path, NotificationConfig]:
    """Pick the registry file and notification settings for a command.

    An explicit --registry wins; otherwise the config file (if given)
    decides; otherwise the default registry location is used.
    """
    notification = NotificationConfig()
    path = DEFAULT_REGISTRY_PATH

    if config_path is not None:
        config = load_config(config_path)
        notification = config.notification
        path = Path(config.registry.path)

    if registry_path is not None:
        path = registry_path

    return path, notification


def handle_errors(func: F) -> F:
    """Decorator for consistent error handling.

    Catches exceptions and displays user-friendly error messages.
    """

    @functools.wraps(func)
    def wrapper(*args, **kwargs):
        try:
            return func(*args, **kwargs)
        except typer.Exit:
            raise
        except Exception as e:
            logger.exception("command_failed")
            typer.secho(f"Error: {e}", fg=typer.colors.RED)
            raise typer.Exit(code=1)

    return wrapper  # type: ignore[return-value]


def display_success(message: str) -> None:
    typer.secho(message, fg=typer.colors.GREEN)


def display_warning(message: str) -> None:
    typer.secho(message, fg=typer.colors.YELLOW)


def display_error(message: str) -> None:
    typer.secho(message, fg=typer.colors.RED)


def display_info(message: str) -> None:
    typer.secho(message, fg=typer.colors.CYAN)
