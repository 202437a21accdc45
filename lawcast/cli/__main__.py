"""CLI entry point.

Allows running the CLI as a module: python -m lawcast.cli
"""

from lawcast.cli import app

if __name__ == "__main__":
    app()
