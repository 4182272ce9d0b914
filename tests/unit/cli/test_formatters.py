"""Unit tests for the Rich formatters used by the CLI."""

from datetime import UTC, datetime
from io import StringIO

from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from deepwatch.cli.formatters import DEEPWATCH_THEME
from deepwatch.cli.formatters.panels import error_panel, info_panel, success_panel
from deepwatch.cli.formatters.progress import ProgressPrinter, describe_state, format_log_line
from deepwatch.cli.formatters.tables import (
    create_invocation_table,
    create_key_value_table,
    create_sub_execution_table,
    create_summary_table,
    create_table,
    create_todo_table,
    status_style,
)
from deepwatch.monitor.runner import MonitorSummary
from deepwatch.monitor.state import (
    ExecutionState,
    Invocation,
    LogCategory,
    LogEntry,
    MonitorStatus,
    SubExecution,
    SubExecutionStatus,
    TodoItem,
    TodoStatus,
)


def render(renderable: object) -> str:
    console = Console(file=StringIO(), theme=DEEPWATCH_THEME, width=120, color_system=None)
    console.print(renderable)
    return console.file.getvalue()  # type: ignore[attr-defined]


class TestTables:
    """Tests for table builders."""

    def test_create_table_defaults(self) -> None:
        table = create_table("Results")

        assert isinstance(table, Table)
        assert table.title == "Results"
        assert table.border_style == "blue"

    def test_status_style(self) -> None:
        assert status_style("COMPLETED") == "success"
        assert status_style("error") == "error"
        assert status_style("unknown") == ""

    def test_key_value_values_are_escaped(self) -> None:
        output = render(create_key_value_table({"pattern": "[bold]not markup[/]"}))

        assert "[bold]not markup[/]" in output

    def test_sub_execution_table(self) -> None:
        sub = SubExecution(
            id="abcdef1234",
            name="researcher",
            task="index docs",
            status=SubExecutionStatus.COMPLETED,
            result="done",
        )

        output = render(create_sub_execution_table([sub]))

        assert "abcdef12" in output
        assert "abcdef1234" not in output
        assert "researcher" in output
        assert "completed" in output

    def test_invocation_and_todo_tables(self) -> None:
        invocation = Invocation(id="c1", name="fetch_webpage", args='{"url": "x"}')
        todo = TodoItem("todo-0", "Write skills", TodoStatus.IN_PROGRESS)

        invocations = render(create_invocation_table([invocation]))
        todos = render(create_todo_table([todo]))

        assert "fetch_webpage" in invocations
        assert "running" in invocations
        assert "Write skills" in todos
        assert "in_progress" in todos

    def test_summary_table(self) -> None:
        summary = MonitorSummary(
            MonitorStatus.COMPLETED, artifacts_produced=4, chunks=12, elapsed_seconds=75.2
        )

        output = render(create_summary_table(summary))

        assert "01:15" in output
        assert "12" in output


class TestPanels:
    def test_panels(self) -> None:
        assert isinstance(info_panel("x"), Panel)
        assert "Done" in render(success_panel("ok", "Done"))
        assert "boom" in render(error_panel("boom"))


class TestProgress:
    """Tests for plain-terminal progress output."""

    def test_format_log_line(self) -> None:
        entry = LogEntry("log-1", LogCategory.ERROR, "Error: [x]", datetime(2025, 1, 1, 12, 0, tzinfo=UTC))

        line = format_log_line(entry)

        assert line.startswith("[muted]\\[")
        assert "[error]Error: \\[x][/]" in line

    def test_describe_state(self) -> None:
        state = ExecutionState()
        state.add_sub_execution(SubExecution(id="s1", name="n", task="t"))
        state.increment_artifacts()

        assert describe_state(state) == "initializing | subagents active: 1 | todos: 0 | skills: 1"

    def test_printer_emits_each_entry_once(self, monkeypatch) -> None:
        printed: list[str] = []
        monkeypatch.setattr(
            "deepwatch.cli.formatters.progress.console.print",
            lambda text: printed.append(text),
        )
        state = ExecutionState(log_capacity=3)
        printer = ProgressPrinter(state)
        state.subscribe(printer)

        state.add_log(LogCategory.INFO, "one")
        state.set_status(MonitorStatus.RUNNING)
        state.add_log(LogCategory.TOOL, "two")

        assert len(printed) == 2
        assert "one" in printed[0]
        assert "two" in printed[1]
