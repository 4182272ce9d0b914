"""Widgets for the deepwatch TUI."""

from deepwatch.tui.widgets.header import RunHeader, format_elapsed
from deepwatch.tui.widgets.panels import (
    ActivityLogPanel,
    SubExecutionPanel,
    TodoPanel,
    format_logs,
    format_sub_executions,
    format_todos,
)

__all__ = [
    "RunHeader",
    "SubExecutionPanel",
    "TodoPanel",
    "ActivityLogPanel",
    "format_elapsed",
    "format_logs",
    "format_sub_executions",
    "format_todos",
]
