"""Plain-terminal progress for runs without the TUI.

A spinner shows the current counts while new activity log entries are
printed above it as they arrive.
"""

from rich.markup import escape
from rich.progress import Progress, SpinnerColumn, TaskID, TextColumn, TimeElapsedColumn

from deepwatch.cli.formatters import console
from deepwatch.monitor.state import ExecutionState, LogCategory, LogEntry

_CATEGORY_STYLES = {
    LogCategory.INFO: "info",
    LogCategory.TOOL: "magenta",
    LogCategory.SUBAGENT: "yellow",
    LogCategory.MESSAGE: "",
    LogCategory.ERROR: "error",
}


def create_progress() -> Progress:
    """Create a Progress instance with spinner, text, and elapsed time columns."""
    return Progress(
        SpinnerColumn(),
        TextColumn("[progress.description]{task.description}"),
        TimeElapsedColumn(),
        console=console,
        transient=True,
    )


def format_log_line(entry: LogEntry) -> str:
    time = entry.timestamp.astimezone().strftime("%H:%M:%S")
    style = _CATEGORY_STYLES[entry.category]
    text = escape(entry.text)
    body = f"[{style}]{text}[/]" if style else text
    return f"[muted]\\[{time}][/] {body}"


def describe_state(state: ExecutionState) -> str:
    active = len(state.active_sub_executions())
    return (
        f"{state.status.value} | subagents active: {active} | "
        f"todos: {len(state.todos)} | skills: {state.artifacts_produced}"
    )


class ProgressPrinter:
    """State subscriber that mirrors the activity log to the console.

    Usage:
        with create_progress() as progress:
            printer = ProgressPrinter(state, progress)
            unsubscribe = state.subscribe(printer)
    """

    def __init__(self, state: ExecutionState, progress: Progress | None = None) -> None:
        self._state = state
        self._progress = progress
        self._task: TaskID | None = None
        self._last: LogEntry | None = None
        if progress is not None:
            self._task = progress.add_task(describe_state(state), total=None)

    def __call__(self) -> None:
        for entry in self._new_entries():
            console.print(format_log_line(entry))
        if self._progress is not None and self._task is not None:
            self._progress.update(self._task, description=describe_state(self._state))

    def _new_entries(self) -> list[LogEntry]:
        logs = self._state.logs
        if not logs or logs[-1] is self._last:
            return []
        fresh: list[LogEntry] = []
        for entry in reversed(logs):
            if entry is self._last:
                break
            fresh.append(entry)
        self._last = logs[-1]
        fresh.reverse()
        return fresh


__all__ = ["ProgressPrinter", "create_progress", "describe_state", "format_log_line"]
