"""deepwatch CLI module, built with Typer and Rich."""

from deepwatch.cli.main import app

__all__ = ["app"]
