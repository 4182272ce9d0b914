"""Monitor panels: sub-executions, task list, and activity log.

Each panel is a Static whose content is rebuilt from ExecutionState by a
pure ``format_*`` function, so rendering can be tested without an app.
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence

from rich.markup import escape
from textual.widgets import Static

from deepwatch.monitor.state import (
    ExecutionState,
    LogCategory,
    LogEntry,
    SubExecution,
    SubExecutionStatus,
    TodoItem,
    TodoStatus,
)

MUTED = "#565f89"
TEXT = "#c0caf5"

SUB_EXECUTION_STYLES: dict[SubExecutionStatus, tuple[str, str]] = {
    SubExecutionStatus.SPAWNING: ("◐", "#e0af68"),
    SubExecutionStatus.RUNNING: ("●", "#7aa2f7"),
    SubExecutionStatus.COMPLETED: ("✓", "#9ece6a"),
    SubExecutionStatus.ERROR: ("✗", "#f7768e"),
}

TODO_STYLES: dict[TodoStatus, tuple[str, str]] = {
    TodoStatus.PENDING: ("○", MUTED),
    TodoStatus.IN_PROGRESS: ("◐", "#7aa2f7"),
    TodoStatus.COMPLETED: ("✓", "#9ece6a"),
    TodoStatus.CANCELLED: ("✗", "#f7768e"),
}

LOG_COLORS: dict[LogCategory, str] = {
    LogCategory.INFO: "#7aa2f7",
    LogCategory.TOOL: "#bb9af7",
    LogCategory.SUBAGENT: "#e0af68",
    LogCategory.MESSAGE: TEXT,
    LogCategory.ERROR: "#f7768e",
}

MAX_SUB_EXECUTIONS_SHOWN = 15
MAX_LOGS_SHOWN = 20
TEXT_CHARS = 80
MESSAGE_TAIL_CHARS = 500


def _shorten(text: str, limit: int = TEXT_CHARS) -> str:
    return text[:limit] + "..." if len(text) > limit else text


def format_sub_executions(subs: Sequence[SubExecution]) -> str:
    active = sum(1 for sub in subs if not sub.is_terminal)
    completed = sum(1 for sub in subs if sub.status == SubExecutionStatus.COMPLETED)
    lines = [f"[{MUTED}]Active: {active} | Completed: {completed}[/]", ""]

    if not subs:
        lines.append(f"[{MUTED}]No subagents spawned yet...[/]")
        return "\n".join(lines)

    for sub in subs[-MAX_SUB_EXECUTIONS_SHOWN:]:
        icon, color = SUB_EXECUTION_STYLES[sub.status]
        lines.append(f"[{color}]{icon}[/] [bold {TEXT}]{escape(sub.name)}[/]")
        lines.append(f"  [{MUTED}]{escape(_shorten(sub.task))}[/]")
        if sub.progress:
            lines.append(f"  [#7aa2f7]{escape(sub.progress)}[/]")
    return "\n".join(lines)


def format_todos(todos: Sequence[TodoItem]) -> str:
    in_progress = sum(1 for todo in todos if todo.status == TodoStatus.IN_PROGRESS)
    done = sum(1 for todo in todos if todo.status == TodoStatus.COMPLETED)
    lines = [f"[{MUTED}]Total: {len(todos)} | In Progress: {in_progress} | Done: {done}[/]", ""]

    if not todos:
        lines.append(f"[{MUTED}]No todos yet...[/]")
        return "\n".join(lines)

    for todo in todos:
        icon, color = TODO_STYLES[todo.status]
        text_color = MUTED if todo.status == TodoStatus.COMPLETED else TEXT
        lines.append(f"[{color}]{icon}[/] [{text_color}]{escape(_shorten(todo.content))}[/]")
    return "\n".join(lines)


def format_logs(logs: Iterable[LogEntry], current_message: str = "") -> str:
    """Render the newest log entries followed by the root's in-progress reply."""
    entries = list(logs)[-MAX_LOGS_SHOWN:]
    lines = []
    for entry in entries:
        time = entry.timestamp.astimezone().strftime("%H:%M:%S")
        if entry.category == LogCategory.ERROR:
            lines.append(f"[bold #f7768e]✗ ERROR[/] [{MUTED}]\\[{time}][/]")
            lines.append(f"[#f7768e]{escape(entry.text)}[/]")
        else:
            color = LOG_COLORS[entry.category]
            lines.append(f"[{MUTED}]\\[{time}][/] [{color}]{escape(entry.text)}[/]")

    if current_message:
        lines.append("")
        lines.append(f"[#7aa2f7]AI:[/] [{TEXT}]{escape(current_message[-MESSAGE_TAIL_CHARS:])}[/]")
    return "\n".join(lines)


class SubExecutionPanel(Static):
    DEFAULT_CSS = """
    SubExecutionPanel {
        width: 40%;
        height: 100%;
        border: round #565f89;
        border-title-align: left;
        padding: 0 1;
        overflow-y: auto;
    }
    """

    def on_mount(self) -> None:
        self.border_title = "Subagents"

    def refresh_from(self, state: ExecutionState) -> None:
        self.update(format_sub_executions(list(state.sub_executions.values())))


class TodoPanel(Static):
    DEFAULT_CSS = """
    TodoPanel {
        width: 60%;
        height: 100%;
        border: round #565f89;
        border-title-align: left;
        padding: 0 1;
        overflow-y: auto;
    }
    """

    def on_mount(self) -> None:
        self.border_title = "Todo List"

    def refresh_from(self, state: ExecutionState) -> None:
        self.update(format_todos(state.todos))


class ActivityLogPanel(Static):
    DEFAULT_CSS = """
    ActivityLogPanel {
        width: 100%;
        height: 1fr;
        border: round #565f89;
        border-title-align: left;
        padding: 0 1;
        overflow-y: auto;
    }
    """

    def on_mount(self) -> None:
        self.border_title = "Activity Log"

    def refresh_from(self, state: ExecutionState) -> None:
        self.update(format_logs(state.logs, state.current_message))


__all__ = [
    "ActivityLogPanel",
    "SubExecutionPanel",
    "TodoPanel",
    "format_logs",
    "format_sub_executions",
    "format_todos",
]
