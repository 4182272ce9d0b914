"""Config command group for deepwatch.

Create and inspect ~/.deepwatch/config.yaml.
"""

from pathlib import Path
from typing import Annotated

from rich.markup import escape
import typer

from deepwatch.cli.formatters.panels import print_error, print_info, print_success
from deepwatch.cli.formatters.tables import create_key_value_table, print_table
from deepwatch.config import create_default_config, get_config_dir, load_config
from deepwatch.core.errors import ConfigError

app = typer.Typer(
    name="config",
    help="Manage deepwatch configuration.",
    no_args_is_help=True,
)


def _flatten(data: dict, prefix: str = "") -> dict[str, object]:
    flat: dict[str, object] = {}
    for key, value in data.items():
        name = f"{prefix}{key}"
        if isinstance(value, dict):
            flat.update(_flatten(value, f"{name}."))
        else:
            flat[name] = value
    return flat


@app.command()
def show(
    section: Annotated[
        str | None,
        typer.Argument(help="Configuration section to display (e.g., 'monitor')."),
    ] = None,
    config_path: Annotated[
        Path | None,
        typer.Option("--config", "-c", help="Path to config.yaml."),
    ] = None,
) -> None:
    """Display the effective configuration.

    Shows all sections if no section is specified.
    """
    try:
        config = load_config(config_path)
    except ConfigError as e:
        print_error(escape(e.message), title="Configuration Error")
        raise typer.Exit(1) from e

    data = config.model_dump(mode="json")
    if section is not None:
        if section not in data:
            print_error(f"Unknown section: {escape(section)}. Choose from: {', '.join(data)}")
            raise typer.Exit(1)
        data = {section: data[section]}

    print_table(create_key_value_table(_flatten(data), "Current Configuration"))


@app.command()
def init(
    force: Annotated[
        bool,
        typer.Option("--force", "-f", help="Overwrite an existing config.yaml."),
    ] = False,
) -> None:
    """Create ~/.deepwatch/config.yaml with default values."""
    try:
        config_file = create_default_config(overwrite=force)
    except ConfigError as e:
        print_info(f"{escape(e.message)}\nUse --force to overwrite it.")
        raise typer.Exit(1) from e
    print_success(f"Configuration written to {escape(str(config_file))}")


@app.command()
def path() -> None:
    """Print the configuration directory."""
    print_info(escape(str(get_config_dir())))


__all__ = ["app"]
