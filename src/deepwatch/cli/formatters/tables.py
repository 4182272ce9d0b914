"""Rich tables for structured data display.

Besides the generic helpers, this module renders the parts of an
ExecutionState that `deepwatch replay` prints after a trace has been fed
through the monitor.
"""

from collections.abc import Iterable
from typing import Any

from rich.markup import escape
from rich.table import Table

from deepwatch.cli.formatters import console
from deepwatch.monitor.runner import MonitorSummary
from deepwatch.monitor.state import Invocation, SubExecution, TodoItem

_STATUS_STYLES = {
    "completed": "success",
    "running": "info",
    "in_progress": "info",
    "spawning": "warning",
    "pending": "muted",
    "initializing": "warning",
    "error": "error",
    "cancelled": "error",
}


def status_style(status: str) -> str:
    """Semantic style for a status value."""
    return _STATUS_STYLES.get(status.lower(), "")


def _styled(status: str) -> str:
    style = status_style(status)
    return f"[{style}]{status}[/]" if style else status


def create_table(
    title: str | None = None,
    *,
    show_header: bool = True,
    show_lines: bool = False,
    border_style: str = "blue",
    header_style: str = "bold cyan",
    row_styles: list[str] | None = None,
) -> Table:
    """Create a Rich Table with consistent deepwatch styling.

    Example:
        table = create_table("Results")
        table.add_column("Name", style="cyan")
        table.add_row("Task 1")
        print_table(table)
    """
    if row_styles is None:
        row_styles = ["", "dim"]

    return Table(
        title=title,
        show_header=show_header,
        show_lines=show_lines,
        border_style=border_style,
        header_style=header_style,
        row_styles=row_styles,
    )


def create_key_value_table(
    data: dict[str, Any],
    title: str | None = None,
    *,
    key_style: str = "cyan",
    value_style: str = "",
) -> Table:
    """Create a two-column table for key-value data."""
    table = create_table(title, show_header=False)
    table.add_column("Key", style=key_style, no_wrap=True)
    table.add_column("Value", style=value_style)

    for key, value in data.items():
        table.add_row(str(key), escape(str(value)))

    return table


def create_sub_execution_table(subs: Iterable[SubExecution], title: str = "Subagents") -> Table:
    table = create_table(title)
    table.add_column("ID", style="cyan", no_wrap=True)
    table.add_column("Name")
    table.add_column("Status", justify="center")
    table.add_column("Task")
    table.add_column("Result", style="dim")

    for sub in subs:
        table.add_row(
            sub.id[:8],
            escape(sub.name),
            _styled(sub.status.value),
            escape(sub.task[:60]),
            escape((sub.result or "")[:60]),
        )
    return table


def create_invocation_table(invocations: Iterable[Invocation], title: str = "Tool Calls") -> Table:
    table = create_table(title)
    table.add_column("Tool", style="cyan", no_wrap=True)
    table.add_column("Status", justify="center")
    table.add_column("Args", style="dim")

    for invocation in invocations:
        table.add_row(
            escape(invocation.name),
            _styled(invocation.status.value),
            escape(invocation.args[:60]),
        )
    return table


def create_todo_table(todos: Iterable[TodoItem], title: str = "Todo List") -> Table:
    table = create_table(title)
    table.add_column("#", justify="right", style="dim")
    table.add_column("Status", justify="center")
    table.add_column("Task")

    for index, todo in enumerate(todos, start=1):
        table.add_row(str(index), _styled(todo.status.value), escape(todo.content))
    return table


def create_summary_table(summary: MonitorSummary, title: str = "Run Summary") -> Table:
    minutes, seconds = divmod(int(summary.elapsed_seconds), 60)
    return create_key_value_table(
        {
            "Status": summary.status.value,
            "Skill files": summary.artifacts_produced,
            "Chunks": summary.chunks,
            "Elapsed": f"{minutes:02d}:{seconds:02d}",
        },
        title,
    )


def print_table(table: Table) -> None:
    console.print(table)


__all__ = [
    "create_table",
    "create_key_value_table",
    "create_sub_execution_table",
    "create_invocation_table",
    "create_todo_table",
    "create_summary_table",
    "print_table",
    "status_style",
]
