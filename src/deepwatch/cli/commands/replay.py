"""Replay command for deepwatch.

Feeds a trace recorded with `deepwatch run --trace` through a fresh monitor.
Useful for checking how a run was attributed without running the agent
again.
"""

from __future__ import annotations

import asyncio
from pathlib import Path
from typing import Annotated

from rich.markup import escape
import typer

from deepwatch.cli.commands.run import load_settings, report_summary, setup_logging
from deepwatch.cli.formatters.panels import print_error
from deepwatch.cli.formatters.tables import (
    create_invocation_table,
    create_sub_execution_table,
    create_summary_table,
    create_todo_table,
    print_table,
)
from deepwatch.monitor import ExecutionMonitor, ExecutionState, MonitorSummary, iter_recording
from deepwatch.observability import get_logger

log = get_logger(__name__)


def print_state_tables(state: ExecutionState, summary: MonitorSummary) -> None:
    print_table(create_summary_table(summary))
    if state.sub_executions:
        print_table(create_sub_execution_table(state.sub_executions.values()))
    if state.invocations:
        print_table(create_invocation_table(state.invocations.values()))
    if state.todos:
        print_table(create_todo_table(state.todos))


def replay(
    trace_file: Annotated[
        Path,
        typer.Argument(help="JSONL trace written by `deepwatch run --trace`."),
    ],
    tui: Annotated[
        bool,
        typer.Option("--tui", help="Watch the replay in the TUI."),
    ] = False,
    delay: Annotated[
        float,
        typer.Option("--delay", "-d", min=0.0, help="Seconds to pause between chunks."),
    ] = 0.0,
    config_path: Annotated[
        Path | None,
        typer.Option("--config", "-c", help="Path to config.yaml."),
    ] = None,
) -> None:
    """Replay a recorded event stream through the monitor.

    Examples:

        # Print the reconstructed sub-agents, tool calls, and todos
        deepwatch replay ~/.deepwatch/traces/run-20250101T120000Z.jsonl

        # Watch it unfold in the TUI
        deepwatch replay trace.jsonl --tui --delay 0.05
    """
    if not trace_file.is_file():
        print_error(f"Trace file not found: {escape(str(trace_file))}")
        raise typer.Exit(1)

    config = load_settings(config_path)
    setup_logging(config, tui=tui, source="replay")
    log.info("cli.replay.started", trace=str(trace_file), tui=tui)

    state = ExecutionState(log_capacity=config.monitor.log_capacity)
    monitor = ExecutionMonitor(state, config)

    async def monitor_task() -> MonitorSummary:
        return await monitor.run(iter_recording(trace_file, delay=delay))

    summary: MonitorSummary | None
    if tui:
        from deepwatch.tui import DeepwatchApp

        app = DeepwatchApp(state, monitor_task, title=f"Replay: {trace_file.name}")
        summary = app.run() or app.summary
    else:
        summary = asyncio.run(monitor_task())
        print_state_tables(state, summary)

    report_summary(summary)


__all__ = ["print_state_tables", "replay"]
