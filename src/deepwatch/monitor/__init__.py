"""Live execution monitor.

Reconstructs a hierarchical view of a deep agent run (root execution,
sub-executions, tool invocations, task list, activity log) from the
engine's dual-channel event stream.

Usage:
    from deepwatch.monitor import ExecutionMonitor, ExecutionState

    state = ExecutionState()
    summary = await ExecutionMonitor(state).run(stream)
"""

from deepwatch.monitor.classifier import EventClassifier
from deepwatch.monitor.diagnostics import describe_exception, is_failure
from deepwatch.monitor.events import (
    ContentEvent,
    StreamEvent,
    UnknownEvent,
    UpdateEvent,
    parse_chunk,
)
from deepwatch.monitor.recording import EventRecorder, iter_recording
from deepwatch.monitor.registry import CorrelationRegistry, PendingDispatch
from deepwatch.monitor.runner import ExecutionMonitor, MonitorSummary
from deepwatch.monitor.state import (
    ExecutionState,
    Invocation,
    InvocationStatus,
    LogCategory,
    LogEntry,
    MonitorStatus,
    SubExecution,
    SubExecutionStatus,
    TodoItem,
    TodoStatus,
)

__all__ = [
    # Loop
    "ExecutionMonitor",
    "MonitorSummary",
    # State
    "ExecutionState",
    "MonitorStatus",
    "SubExecution",
    "SubExecutionStatus",
    "Invocation",
    "InvocationStatus",
    "TodoItem",
    "TodoStatus",
    "LogEntry",
    "LogCategory",
    # Classification
    "EventClassifier",
    "CorrelationRegistry",
    "PendingDispatch",
    "ContentEvent",
    "UpdateEvent",
    "UnknownEvent",
    "StreamEvent",
    "parse_chunk",
    # Diagnostics
    "describe_exception",
    "is_failure",
    # Recording
    "EventRecorder",
    "iter_recording",
]
