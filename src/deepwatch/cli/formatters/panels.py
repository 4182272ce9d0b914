"""Rich panels for important messages."""

from rich.panel import Panel

from deepwatch.cli.formatters import console


def _panel(message: str, title: str, color: str, style: str, *, expand: bool) -> Panel:
    return Panel(
        f"[{style}]{message}[/]",
        title=f"[bold {color}]{title}[/]",
        border_style=color,
        expand=expand,
    )


def info_panel(message: str, title: str = "Info", *, expand: bool = False) -> Panel:
    return _panel(message, title, "blue", "info", expand=expand)


def warning_panel(message: str, title: str = "Warning", *, expand: bool = False) -> Panel:
    return _panel(message, title, "yellow", "warning", expand=expand)


def error_panel(message: str, title: str = "Error", *, expand: bool = False) -> Panel:
    return _panel(message, title, "red", "error", expand=expand)


def success_panel(message: str, title: str = "Success", *, expand: bool = False) -> Panel:
    return _panel(message, title, "green", "success", expand=expand)


def print_info(message: str, title: str = "Info") -> None:
    console.print(info_panel(message, title))


def print_warning(message: str, title: str = "Warning") -> None:
    console.print(warning_panel(message, title))


def print_error(message: str, title: str = "Error") -> None:
    console.print(error_panel(message, title))


def print_success(message: str, title: str = "Success") -> None:
    console.print(success_panel(message, title))


__all__ = [
    "info_panel",
    "warning_panel",
    "error_panel",
    "success_panel",
    "print_info",
    "print_warning",
    "print_error",
    "print_success",
]
