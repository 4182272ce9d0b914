"""Main TUI application using the Textual framework.

DeepwatchApp renders one ExecutionState. It subscribes to the state, but
the subscriber only marks the screen dirty; a short interval timer repaints
when something changed. That keeps a token-per-event stream from forcing a
repaint per token.

The monitor itself can run inside the app as a worker, so the stream and
the UI share Textual's event loop.
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable
from typing import ClassVar

from textual.app import App, ComposeResult
from textual.binding import Binding
from textual.containers import Horizontal
from textual.widgets import Static

from deepwatch.monitor.runner import MonitorSummary
from deepwatch.monitor.state import ExecutionState
from deepwatch.observability.logging import get_logger
from deepwatch.tui.widgets import (
    ActivityLogPanel,
    RunHeader,
    SubExecutionPanel,
    TodoPanel,
)

log = get_logger(__name__)

MonitorTask = Callable[[], Awaitable[MonitorSummary]]


class DeepwatchApp(App[MonitorSummary | None]):
    """Live view of a deep agent run.

    Args:
        state: The state to render; shared with the monitor.
        monitor_task: Coroutine factory that runs the monitor. When None
            the app only renders (e.g. for a finished replay).
        title: Title shown in the header.
        refresh_interval: Seconds between repaint checks.
    """

    TITLE = "deepwatch"

    CSS = """
    Screen {
        background: $background;
        layout: vertical;
    }

    #top-panels {
        height: 45%;
        margin-top: 1;
    }

    ActivityLogPanel {
        margin-top: 1;
    }

    #footer {
        height: 3;
        border: round #565f89;
        padding: 0 1;
        color: #565f89;
    }
    """

    BINDINGS: ClassVar[list[Binding | tuple[str, str] | tuple[str, str, str]]] = [
        Binding("q", "quit", "Quit", priority=True),
        Binding("escape", "quit", "Quit", show=False),
        Binding("ctrl+c", "quit", "Quit", show=False, priority=True),
    ]

    def __init__(
        self,
        state: ExecutionState,
        monitor_task: MonitorTask | None = None,
        *,
        title: str = "LangChain Skills Agent",
        refresh_interval: float = 0.1,
        driver_class: type | None = None,
    ) -> None:
        super().__init__(driver_class=driver_class)
        self._state = state
        self._monitor_task = monitor_task
        self._title = title
        self._refresh_interval = refresh_interval
        self._dirty = True
        self._unsubscribe: Callable[[], None] | None = None
        self._summary: MonitorSummary | None = None

    @property
    def state(self) -> ExecutionState:
        return self._state

    @property
    def summary(self) -> MonitorSummary | None:
        """Summary of the monitored run, once it has finished."""
        return self._summary

    @property
    def is_dirty(self) -> bool:
        return self._dirty

    def compose(self) -> ComposeResult:
        yield RunHeader(id="header")
        with Horizontal(id="top-panels"):
            yield SubExecutionPanel(id="sub-executions")
            yield TodoPanel(id="todos")
        yield ActivityLogPanel(id="activity-log")
        yield Static(
            "Press [#7aa2f7]ESC[/], [#7aa2f7]q[/] or [#7aa2f7]Ctrl+C[/] to exit",
            id="footer",
        )

    def on_mount(self) -> None:
        self.query_one(RunHeader).title = self._title
        self._unsubscribe = self._state.subscribe(self.mark_dirty)
        self.set_interval(self._refresh_interval, self.refresh_if_dirty)
        self.set_interval(1.0, self._tick)
        self.refresh_if_dirty()
        if self._monitor_task is not None:
            self.run_worker(self._run_monitor(self._monitor_task), name="monitor", exclusive=True)

    def on_unmount(self) -> None:
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None

    def mark_dirty(self) -> None:
        """State subscriber: defer the repaint to the next interval."""
        self._dirty = True

    def refresh_if_dirty(self) -> None:
        if not self._dirty:
            return
        self._dirty = False

        header = self.query_one(RunHeader)
        header.artifacts = self._state.artifacts_produced
        header.status = self._state.status
        header.elapsed = self._state.elapsed_seconds
        self.query_one(SubExecutionPanel).refresh_from(self._state)
        self.query_one(TodoPanel).refresh_from(self._state)
        self.query_one(ActivityLogPanel).refresh_from(self._state)

    def _tick(self) -> None:
        self.query_one(RunHeader).elapsed = self._state.elapsed_seconds

    async def _run_monitor(self, monitor_task: MonitorTask) -> None:
        self._summary = await monitor_task()
        log.info("tui.monitor.finished", status=self._summary.status.value)
        self.mark_dirty()

    async def action_quit(self) -> None:
        self.exit(self._summary)
