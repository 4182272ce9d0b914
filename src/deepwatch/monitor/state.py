"""Execution state reconstructed from the engine's event stream.

ExecutionState is constructed once per monitoring session and shared by
reference between the consumption loop (the only writer) and any number of
readers such as the TUI. Every mutating method applies its change and then
calls each subscriber synchronously. Subscribers get no payload; they read
the state back.

Usage:
    state = ExecutionState(log_capacity=100)
    unsubscribe = state.subscribe(lambda: print(state.status))
    state.set_status(MonitorStatus.RUNNING)
    unsubscribe()
"""

from __future__ import annotations

from collections import deque
from collections.abc import Callable, Iterable, Mapping
from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import Enum
import itertools
from types import MappingProxyType

from deepwatch.observability.logging import get_logger

log = get_logger(__name__)

Subscriber = Callable[[], None]


class MonitorStatus(Enum):
    """Overall status of the monitored run."""

    INITIALIZING = "initializing"
    RUNNING = "running"
    COMPLETED = "completed"
    ERROR = "error"


class SubExecutionStatus(Enum):
    """Lifecycle of a sub-execution.

    SPAWNING means the dispatch was seen but its arguments have not been
    streamed yet.
    """

    SPAWNING = "spawning"
    RUNNING = "running"
    COMPLETED = "completed"
    ERROR = "error"

    @property
    def is_terminal(self) -> bool:
        return self in (SubExecutionStatus.COMPLETED, SubExecutionStatus.ERROR)


class InvocationStatus(Enum):
    RUNNING = "running"
    COMPLETED = "completed"
    ERROR = "error"

    @property
    def is_terminal(self) -> bool:
        return self is not InvocationStatus.RUNNING


class TodoStatus(Enum):
    PENDING = "pending"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    CANCELLED = "cancelled"

    @classmethod
    def parse(cls, value: str) -> TodoStatus:
        """Map an engine status string, treating unknown values as pending."""
        try:
            return cls(value)
        except ValueError:
            return cls.PENDING


class LogCategory(Enum):
    INFO = "info"
    TOOL = "tool"
    SUBAGENT = "subagent"
    MESSAGE = "message"
    ERROR = "error"


@dataclass
class SubExecution:
    """A child unit of work spawned by the root execution.

    Attributes:
        id: Identity key (the dispatch token, or the namespace fragment when
            content arrived before any dispatch).
        name: Display name, usually the sub-agent type.
        task: Short description of the delegated work.
        status: Lifecycle status.
        progress: Rolling preview of the latest output.
        token: Correlation token of the dispatch, once known.
        result: Truncated final result text.
        started_at: When the sub-execution was first observed.
        ended_at: When it reached a terminal status.
    """

    id: str
    name: str
    task: str
    status: SubExecutionStatus = SubExecutionStatus.RUNNING
    progress: str = ""
    token: str | None = None
    result: str | None = None
    started_at: datetime = field(default_factory=lambda: datetime.now(UTC))
    ended_at: datetime | None = None

    @property
    def is_terminal(self) -> bool:
        return self.status.is_terminal

    @property
    def elapsed_seconds(self) -> float:
        end = self.ended_at or datetime.now(UTC)
        return (end - self.started_at).total_seconds()


@dataclass
class Invocation:
    """One tool call made by the root execution.

    Attributes:
        id: The correlation token.
        name: Tool name.
        args: Serialized, size-capped arguments.
        status: Lifecycle status.
        result: Serialized, size-capped result.
        started_at: When the request was observed.
        ended_at: When its completion was observed.
    """

    id: str
    name: str
    args: str = ""
    status: InvocationStatus = InvocationStatus.RUNNING
    result: str | None = None
    started_at: datetime = field(default_factory=lambda: datetime.now(UTC))
    ended_at: datetime | None = None

    @property
    def is_terminal(self) -> bool:
        return self.status.is_terminal


@dataclass(frozen=True, slots=True)
class TodoItem:
    id: str
    content: str
    status: TodoStatus = TodoStatus.PENDING


@dataclass(frozen=True, slots=True)
class LogEntry:
    id: str
    category: LogCategory
    text: str
    timestamp: datetime


class ExecutionState:
    """Mutable snapshot of one engine run.

    Read accessors return read-only views or tuples; mutate only through
    the methods below so subscribers are notified.
    """

    def __init__(self, log_capacity: int = 100) -> None:
        if log_capacity < 1:
            msg = f"log_capacity must be positive, got {log_capacity}"
            raise ValueError(msg)
        self._status = MonitorStatus.INITIALIZING
        self._current_message = ""
        self._sub_executions: dict[str, SubExecution] = {}
        self._invocations: dict[str, Invocation] = {}
        self._todos: tuple[TodoItem, ...] = ()
        self._logs: deque[LogEntry] = deque(maxlen=log_capacity)
        self._log_ids = itertools.count(1)
        self._artifacts_produced = 0
        self._started_at = datetime.now(UTC)
        self._subscribers: list[Subscriber] = []

    # Subscriptions

    def subscribe(self, callback: Subscriber) -> Callable[[], None]:
        """Register a callback fired after every mutation.

        Returns:
            A function that removes the callback. Calling it twice is harmless.
        """
        self._subscribers.append(callback)

        def unsubscribe() -> None:
            if callback in self._subscribers:
                self._subscribers.remove(callback)

        return unsubscribe

    def _notify(self) -> None:
        for callback in list(self._subscribers):
            callback()

    # Read accessors

    @property
    def status(self) -> MonitorStatus:
        return self._status

    @property
    def current_message(self) -> str:
        return self._current_message

    @property
    def sub_executions(self) -> Mapping[str, SubExecution]:
        return MappingProxyType(self._sub_executions)

    @property
    def invocations(self) -> Mapping[str, Invocation]:
        return MappingProxyType(self._invocations)

    @property
    def todos(self) -> tuple[TodoItem, ...]:
        return self._todos

    @property
    def logs(self) -> tuple[LogEntry, ...]:
        return tuple(self._logs)

    @property
    def log_capacity(self) -> int:
        return self._logs.maxlen or 0

    @property
    def artifacts_produced(self) -> int:
        return self._artifacts_produced

    @property
    def started_at(self) -> datetime:
        return self._started_at

    @property
    def elapsed_seconds(self) -> float:
        return (datetime.now(UTC) - self._started_at).total_seconds()

    def active_sub_executions(self) -> list[SubExecution]:
        """Non-terminal sub-executions in creation order."""
        return [sub for sub in self._sub_executions.values() if not sub.is_terminal]

    # Mutations

    def set_status(self, status: MonitorStatus) -> None:
        self._status = status
        self._notify()

    def append_message(self, text: str) -> None:
        """Extend the root execution's current-turn buffer."""
        if not text:
            return
        self._current_message += text
        self._notify()

    def clear_message(self) -> None:
        self._current_message = ""
        self._notify()

    def add_sub_execution(self, sub: SubExecution) -> None:
        """Insert a sub-execution; an existing entry with the same id is kept."""
        if sub.id in self._sub_executions:
            log.debug("monitor.subexecution.duplicate_ignored", sub_id=sub.id)
            return
        self._sub_executions[sub.id] = sub
        self._notify()

    def update_sub_execution(
        self,
        sub_id: str,
        *,
        status: SubExecutionStatus | None = None,
        name: str | None = None,
        task: str | None = None,
        progress: str | None = None,
        token: str | None = None,
        result: str | None = None,
    ) -> bool:
        """Apply changes to a live sub-execution.

        Terminal sub-executions are frozen: updates to them, and to unknown
        ids, are ignored.

        Returns:
            True if the sub-execution was changed.
        """
        sub = self._sub_executions.get(sub_id)
        if sub is None or sub.is_terminal:
            return False

        if name is not None:
            sub.name = name
        if task is not None:
            sub.task = task
        if progress is not None:
            sub.progress = progress
        if token is not None:
            sub.token = token
        if result is not None:
            sub.result = result
        if status is not None:
            sub.status = status
            if status.is_terminal:
                sub.ended_at = datetime.now(UTC)
        self._notify()
        return True

    def add_invocation(self, invocation: Invocation) -> None:
        self._invocations[invocation.id] = invocation
        self._notify()

    def update_invocation(
        self,
        invocation_id: str,
        *,
        status: InvocationStatus | None = None,
        args: str | None = None,
        result: str | None = None,
    ) -> bool:
        """Apply changes to a running invocation. Same rules as sub-executions."""
        invocation = self._invocations.get(invocation_id)
        if invocation is None or invocation.is_terminal:
            return False

        if args is not None:
            invocation.args = args
        if result is not None:
            invocation.result = result
        if status is not None:
            invocation.status = status
            if status.is_terminal:
                invocation.ended_at = datetime.now(UTC)
        self._notify()
        return True

    def set_todos(self, items: Iterable[TodoItem]) -> None:
        """Replace the whole task list."""
        self._todos = tuple(items)
        self._notify()

    def add_log(self, category: LogCategory, text: str) -> LogEntry:
        """Append to the activity log, evicting the oldest entry when full."""
        entry = LogEntry(
            id=f"log-{next(self._log_ids)}",
            category=category,
            text=text,
            timestamp=datetime.now(UTC),
        )
        self._logs.append(entry)
        self._notify()
        return entry

    def increment_artifacts(self) -> int:
        """Count one successfully written artifact."""
        self._artifacts_produced += 1
        self._notify()
        return self._artifacts_produced
