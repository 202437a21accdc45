"""LawCast CLI Package.

Usage:
    lawcast serve --config config/lawcast.yaml
    lawcast validate config/lawcast.yaml
    lawcast destinations add https://discord.com/api/webhooks/<id>/<token>
    lawcast destinations list
    lawcast notices recent
"""

import typer

from lawcast.cli.serve import serve_command
from lawcast.cli.validate import validate_command
from lawcast.cli.destinations import destinations_app
from lawcast.cli.notices import notices_app

app = typer.Typer(help="LawCast: legislative notice change detection and alerts")

app.command(name="serve")(serve_command)
app.command(name="validate")(validate_command)

app.add_typer(destinations_app, name="destinations")
app.add_typer(notices_app, name="notices")

__all__ = [
    "app",
    "serve_command",
    "validate_command",
    "destinations_app",
    "notices_app",
]
