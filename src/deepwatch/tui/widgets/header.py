"""Run header widget.

Shows the title, artifact count, elapsed time, and overall status in one
bordered row.
"""

from __future__ import annotations

from textual.app import ComposeResult
from textual.reactive import reactive
from textual.widget import Widget
from textual.widgets import Static

from deepwatch.monitor.state import MonitorStatus

STATUS_COLORS: dict[MonitorStatus, str] = {
    MonitorStatus.INITIALIZING: "#e0af68",
    MonitorStatus.RUNNING: "#9ece6a",
    MonitorStatus.COMPLETED: "#7aa2f7",
    MonitorStatus.ERROR: "#f7768e",
}


def format_elapsed(seconds: float) -> str:
    """Format seconds as MM:SS (minutes keep growing past 59)."""
    minutes, secs = divmod(max(int(seconds), 0), 60)
    return f"{minutes:02d}:{secs:02d}"


class RunHeader(Widget):
    """Header row for the monitor screen.

    Attributes:
        title: Application title.
        artifacts: Skill files written so far.
        elapsed: Seconds since the run started.
        status: Overall monitor status.
    """

    DEFAULT_CSS = """
    RunHeader {
        height: 3;
        width: 100%;
        border: round #7aa2f7;
        padding: 0 1;
        layout: horizontal;
    }

    RunHeader > #header-left {
        width: 1fr;
    }

    RunHeader > #header-right {
        width: auto;
    }
    """

    title: reactive[str] = reactive("LangChain Skills Agent")
    artifacts: reactive[int] = reactive(0)
    elapsed: reactive[float] = reactive(0.0)
    status: reactive[MonitorStatus] = reactive(MonitorStatus.INITIALIZING)

    def compose(self) -> ComposeResult:
        yield Static(self._format_left(), id="header-left")
        yield Static(self._format_right(), id="header-right")

    def _format_left(self) -> str:
        return f"[bold #bb9af7]{self.title}[/]  [#565f89]|[/]  [#9ece6a]Skills: {self.artifacts}[/]"

    def _format_right(self) -> str:
        color = STATUS_COLORS.get(self.status, "#c0caf5")
        return (
            f"[#565f89]Elapsed: {format_elapsed(self.elapsed)}[/]  [#565f89]|[/]  "
            f"[bold {color}]{self.status.value.upper()}[/]"
        )

    def _update_display(self) -> None:
        if not self.is_mounted:
            return
        self.query_one("#header-left", Static).update(self._format_left())
        self.query_one("#header-right", Static).update(self._format_right())

    def watch_artifacts(self, _new_value: int) -> None:
        self._update_display()

    def watch_elapsed(self, _new_value: float) -> None:
        self._update_display()

    def watch_status(self, _new_value: MonitorStatus) -> None:
        self._update_display()


__all__ = ["RunHeader", "format_elapsed"]
