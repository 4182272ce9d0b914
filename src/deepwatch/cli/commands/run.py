"""Run command for deepwatch.

Builds the deep agent, streams its run through the execution monitor, and
shows progress in the TUI (or as plain log lines with --no-tui).
"""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable
from datetime import UTC, datetime
from pathlib import Path
from typing import Annotated
from uuid import uuid4

from rich.markup import escape
import typer

from deepwatch.cli.formatters import console
from deepwatch.cli.formatters.panels import print_error, print_info, print_success, print_warning
from deepwatch.cli.formatters.progress import ProgressPrinter, create_progress
from deepwatch.config import DeepwatchConfig, get_config_dir, load_config
from deepwatch.core.errors import ConfigError
from deepwatch.monitor import (
    EventRecorder,
    ExecutionMonitor,
    ExecutionState,
    LogCategory,
    MonitorSummary,
)
from deepwatch.observability import LoggingConfig, LogMode, configure_logging, get_logger
from deepwatch.observability.logging import bind_context, set_console_logging

log = get_logger(__name__)


def load_settings(config_path: Path | None) -> DeepwatchConfig:
    """Load configuration, exiting with a readable error on failure."""
    try:
        return load_config(config_path)
    except ConfigError as e:
        print_error(escape(e.message), title="Configuration Error")
        raise typer.Exit(1) from e


def setup_logging(config: DeepwatchConfig, *, tui: bool, source: str = "run") -> None:
    """Configure the diagnostic log and tag this session's events.

    The TUI owns the terminal, so stderr output is off while it runs.
    """
    configure_logging(
        LoggingConfig(
            mode=LogMode(config.logging.mode),
            log_level=config.logging.level.upper(),
            log_dir=get_config_dir() / "logs",
            max_log_days=config.logging.max_log_days,
        )
    )
    set_console_logging(not tui)
    bind_context(session_id=uuid4().hex[:12], source=source)


def default_trace_path() -> Path:
    stamp = datetime.now(UTC).strftime("%Y%m%dT%H%M%SZ")
    return get_config_dir() / "traces" / f"run-{stamp}.jsonl"


async def run_plain(
    state: ExecutionState,
    monitor_task: Callable[[], Awaitable[MonitorSummary]],
) -> MonitorSummary:
    """Run the monitor while printing activity to the console."""
    with create_progress() as progress:
        printer = ProgressPrinter(state, progress)
        unsubscribe = state.subscribe(printer)
        try:
            return await monitor_task()
        finally:
            unsubscribe()


def report_summary(summary: MonitorSummary | None) -> None:
    """Print the completion report and exit non-zero unless the run succeeded."""
    if summary is None:
        print_warning("Run interrupted before the agent finished.")
        raise typer.Exit(130)
    if summary.succeeded:
        print_success(escape(summary.render()))
        return
    print_error(escape(summary.diagnostic or summary.render()), title="Agent Failed")
    raise typer.Exit(1)


def run(
    request: Annotated[
        str | None,
        typer.Option("--request", "-r", help="Override the request sent to the agent."),
    ] = None,
    no_tui: Annotated[
        bool,
        typer.Option("--no-tui", help="Print activity as log lines instead of the TUI."),
    ] = False,
    trace: Annotated[
        bool,
        typer.Option("--trace", "-t", help="Record the raw event stream to ~/.deepwatch/traces/."),
    ] = False,
    trace_file: Annotated[
        Path | None,
        typer.Option("--trace-file", help="Record the raw event stream to this file."),
    ] = None,
    subgraphs: Annotated[
        bool,
        typer.Option("--subgraphs", help="Also stream sub-agent step updates."),
    ] = False,
    config_path: Annotated[
        Path | None,
        typer.Option("--config", "-c", help="Path to config.yaml."),
    ] = None,
) -> None:
    """Run the skills agent under the live monitor.

    Examples:

        # Watch the run in the TUI
        deepwatch run

        # Plain output, recording the stream for later replay
        deepwatch run --no-tui --trace
    """
    from deepwatch.engine import DEFAULT_REQUEST, SkillFileWriter, create_skills_agent, stream_agent

    config = load_settings(config_path)
    setup_logging(config, tui=not no_tui)
    log.info("cli.run.started", tui=not no_tui, trace=trace or trace_file is not None)

    state = ExecutionState(log_capacity=config.monitor.log_capacity)
    state.add_log(LogCategory.INFO, "Starting LangChain Skills Agent...")
    writer = SkillFileWriter(config.engine.skills_dir, on_written=state.increment_artifacts)

    try:
        agent = create_skills_agent(config.engine, writer)
    except ImportError as e:
        print_error(escape(str(e)), title="Missing Dependency")
        raise typer.Exit(1) from e
    state.add_log(LogCategory.INFO, "Agent created. Beginning documentation exploration...")

    recorder: EventRecorder | None = None
    if trace or trace_file is not None:
        recorder = EventRecorder(trace_file or default_trace_path())
    monitor = ExecutionMonitor(state, config)

    async def monitor_task() -> MonitorSummary:
        stream = stream_agent(
            agent,
            request or DEFAULT_REQUEST,
            recursion_limit=config.engine.recursion_limit,
            subgraphs=subgraphs,
        )
        return await monitor.run(stream, recorder=recorder)

    summary: MonitorSummary | None
    try:
        if no_tui:
            print_info(f"Writing skills to {escape(str(config.engine.skills_dir))}")
            summary = asyncio.run(run_plain(state, monitor_task))
        else:
            from deepwatch.tui import DeepwatchApp

            app = DeepwatchApp(state, monitor_task)
            summary = app.run() or app.summary
    finally:
        if recorder is not None:
            recorder.close()
            console.print(f"[muted]Trace written to {escape(str(recorder.path))}[/]")

    report_summary(summary)


__all__ = ["load_settings", "report_summary", "run", "run_plain", "setup_logging"]
