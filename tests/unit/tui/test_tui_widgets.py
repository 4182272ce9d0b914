"""Unit tests for TUI panel formatting."""

from __future__ import annotations

from datetime import UTC, datetime

import pytest

from deepwatch.monitor.state import (
    LogCategory,
    LogEntry,
    SubExecution,
    SubExecutionStatus,
    TodoItem,
    TodoStatus,
)
from deepwatch.tui.widgets import (
    format_elapsed,
    format_logs,
    format_sub_executions,
    format_todos,
)
from deepwatch.tui.widgets.panels import MAX_LOGS_SHOWN


def entry(index: int, category: LogCategory = LogCategory.INFO, text: str | None = None) -> LogEntry:
    return LogEntry(
        id=f"log-{index}",
        category=category,
        text=text if text is not None else f"entry {index}",
        timestamp=datetime(2025, 1, 1, 12, 0, tzinfo=UTC),
    )


class TestFormatElapsed:
    @pytest.mark.parametrize(
        ("seconds", "expected"),
        [(0, "00:00"), (59.9, "00:59"), (61, "01:01"), (3725, "62:05"), (-3, "00:00")],
    )
    def test_minutes_and_seconds(self, seconds: float, expected: str) -> None:
        assert format_elapsed(seconds) == expected


class TestFormatSubExecutions:
    """Tests for the subagent panel text."""

    def test_empty(self) -> None:
        text = format_sub_executions([])

        assert "Active: 0 | Completed: 0" in text
        assert "No subagents spawned yet" in text

    def test_counts_and_progress(self) -> None:
        subs = [
            SubExecution(id="a", name="researcher", task="read docs", progress="reading [b]"),
            SubExecution(id="b", name="writer", task="x" * 100, status=SubExecutionStatus.COMPLETED),
            SubExecution(id="c", name="spawner", task="t", status=SubExecutionStatus.SPAWNING),
        ]

        text = format_sub_executions(subs)

        assert "Active: 2 | Completed: 1" in text
        assert "researcher" in text
        assert "reading \\[b]" in text
        assert "x" * 80 + "..." in text
        assert "◐" in text
        assert "✓" in text


class TestFormatTodos:
    def test_empty(self) -> None:
        assert "No todos yet" in format_todos(())

    def test_counts(self) -> None:
        todos = (
            TodoItem("todo-0", "Plan", TodoStatus.COMPLETED),
            TodoItem("todo-1", "Write", TodoStatus.IN_PROGRESS),
            TodoItem("todo-2", "Review"),
        )

        text = format_todos(todos)

        assert "Total: 3 | In Progress: 1 | Done: 1" in text
        assert text.index("Plan") < text.index("Write") < text.index("Review")


class TestFormatLogs:
    """Tests for the activity log text."""

    def test_shows_newest_entries_only(self) -> None:
        logs = [entry(i) for i in range(MAX_LOGS_SHOWN + 5)]

        text = format_logs(logs)

        assert "]entry 4[/]" not in text
        assert "]entry 5[/]" in text
        assert f"entry {MAX_LOGS_SHOWN + 4}" in text

    def test_error_entries_are_flagged(self) -> None:
        text = format_logs([entry(1, LogCategory.ERROR, "Error: boom")])

        assert "ERROR" in text
        assert "Error: boom" in text

    def test_current_message_tail(self) -> None:
        text = format_logs([], "a" * 600 + "end")

        assert text.splitlines()[-1].startswith("[#7aa2f7]AI:[/]")
        assert "a" * 498 + "end" in text
        assert "a" * 501 not in text

    def test_no_message_no_ai_line(self) -> None:
        assert "AI:" not in format_logs([entry(1)])
