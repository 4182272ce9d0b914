"""deepwatch CLI main entry point.

This module defines the main Typer application and registers all commands.
"""

from typing import Annotated

import typer

from deepwatch import __version__
from deepwatch.cli.commands import config, replay, run
from deepwatch.cli.formatters import console

app = typer.Typer(
    name="deepwatch",
    help="deepwatch - Live monitor for deep agent runs",
    no_args_is_help=True,
    rich_markup_mode="rich",
)

app.command("run")(run.run)
app.command("replay")(replay.replay)
app.add_typer(config.app, name="config")


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        console.print(f"[bold cyan]deepwatch[/] version [green]{__version__}[/]")
        raise typer.Exit()


@app.callback()
def main(
    version: Annotated[
        bool | None,
        typer.Option(
            "--version",
            "-V",
            callback=version_callback,
            is_eager=True,
            help="Show version and exit.",
        ),
    ] = None,
) -> None:
    """deepwatch - Live monitor for deep agent runs.

    Runs a LangGraph deep agent and shows its sub-agents, todo list, and
    activity as they happen.

    Use [bold cyan]deepwatch COMMAND --help[/] for command-specific help.
    """


__all__ = ["app", "main"]
