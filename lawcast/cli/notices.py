"""Notice commands.

One-shot access to the notice source, independent of the daemon.
"""

import asyncio
from pathlib import Path

import typer

from lawcast.cli.utils import display_warning, handle_errors, load_config
from lawcast.services.notice_cache import NoticeCache
from lawcast.services.sources.http_source import HttpNoticeSource

notices_app = typer.Typer(help="Inspect legislative notices")


@notices_app.command(name="recent")
@handle_errors
def notices_recent(
    config_path: Path = typer.Option(
        "config/lawcast.yaml", "--config", "-c", help="Path to config YAML"
    ),
    limit: int = typer.Option(10, "--limit", "-n", min=1, help="Notices to show"),
):
    """Fetch the source once and print the most recent notices."""
    config = load_config(config_path)

    source = HttpNoticeSource(config.source)
    notices = asyncio.run(source.fetch())

    cache = NoticeCache(config.cache)
    cache.initialize(notices)
    recent = cache.recent(limit)

    if not recent:
        display_warning("Source returned no notices.")
        return

    for notice in recent:
        committee = f" [{notice.committee}]" if notice.committee else ""
        typer.echo(f"#{notice.num}{committee} {notice.subject}")
        if notice.link:
            typer.echo(f"    {notice.link}")
