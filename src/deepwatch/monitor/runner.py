"""The consumption loop.

ExecutionMonitor reads one async stream of raw engine chunks, classifies
each chunk and applies the resulting commands to ExecutionState before it
awaits the next chunk. The stream ending marks the run completed; the
stream raising marks it errored and stops the loop. Either way run()
returns a MonitorSummary instead of raising.

Usage:
    state = ExecutionState()
    monitor = ExecutionMonitor(state, config)
    summary = await monitor.run(agent_stream)
    print(summary.render())
"""

from __future__ import annotations

from collections.abc import AsyncIterable
from dataclasses import dataclass
from typing import Any, Protocol

from deepwatch.config.models import DeepwatchConfig
from deepwatch.monitor.classifier import (
    AddLog,
    AppendRootText,
    AppendSubExecutionOutput,
    ClearRootText,
    Command,
    EventClassifier,
    FinishInvocation,
    FinishSubExecution,
    ReplaceTodos,
    SpawnSubExecution,
    StartInvocation,
    UpdateInvocationArgs,
    UpdateSubExecution,
)
from deepwatch.monitor.diagnostics import describe_exception
from deepwatch.monitor.events import parse_chunk
from deepwatch.monitor.registry import CorrelationRegistry
from deepwatch.monitor.state import (
    ExecutionState,
    Invocation,
    LogCategory,
    MonitorStatus,
    SubExecution,
    SubExecutionStatus,
    TodoItem,
    TodoStatus,
)
from deepwatch.observability.logging import get_logger

log = get_logger(__name__)


class ChunkRecorder(Protocol):
    def record(self, chunk: Any) -> None: ...


@dataclass(frozen=True, slots=True)
class MonitorSummary:
    """Outcome of one monitored run.

    Attributes:
        status: Final monitor status.
        artifacts_produced: Skill files written during the run.
        chunks: Raw chunks consumed.
        elapsed_seconds: Wall time of the run.
        diagnostic: Failure diagnostic, when status is ERROR.
    """

    status: MonitorStatus
    artifacts_produced: int
    chunks: int
    elapsed_seconds: float
    diagnostic: str | None = None

    @property
    def succeeded(self) -> bool:
        return self.status == MonitorStatus.COMPLETED

    def render(self) -> str:
        """One-line completion report."""
        if self.succeeded:
            return f"Agent completed. Generated {self.artifacts_produced} skill files."
        if self.diagnostic:
            return f"Error: {self.diagnostic.splitlines()[0]}"
        return f"Agent finished with status {self.status.value}."


class ExecutionMonitor:
    """Drives classification and state mutation for one session.

    Args:
        state: The state to mutate. Readers should hold the same instance.
        config: Monitor and protocol settings. Defaults apply when None.
    """

    def __init__(self, state: ExecutionState, config: DeepwatchConfig | None = None) -> None:
        self._state = state
        self._config = config or DeepwatchConfig()
        self._registry = CorrelationRegistry(self._config.protocol.namespace_prefix)
        self._classifier = EventClassifier(
            self._registry,
            protocol=self._config.protocol,
            limits=self._config.monitor,
        )

    @property
    def state(self) -> ExecutionState:
        return self._state

    @property
    def registry(self) -> CorrelationRegistry:
        return self._registry

    async def run(
        self,
        stream: AsyncIterable[Any],
        *,
        recorder: ChunkRecorder | None = None,
    ) -> MonitorSummary:
        """Consume the stream to exhaustion or failure.

        Args:
            stream: Raw engine chunks.
            recorder: Optional sink that receives each raw chunk first.

        Returns:
            Summary with the final status and artifact count.
        """
        self._state.set_status(MonitorStatus.RUNNING)
        log.info("monitor.session.started")
        chunks = 0
        diagnostic: str | None = None

        try:
            async for chunk in stream:
                chunks += 1
                if recorder is not None:
                    recorder.record(chunk)
                self.process(chunk)
        except Exception as e:
            diagnostic = describe_exception(e)
            self._state.set_status(MonitorStatus.ERROR)
            self._state.add_log(LogCategory.ERROR, f"Error: {diagnostic}")
            log.exception("monitor.session.failed", chunks=chunks, error_type=type(e).__name__)
        else:
            self._state.set_status(MonitorStatus.COMPLETED)
            self._state.add_log(
                LogCategory.INFO,
                f"Agent completed. Generated {self._state.artifacts_produced} skill files.",
            )
            log.info(
                "monitor.session.completed",
                chunks=chunks,
                artifacts=self._state.artifacts_produced,
            )

        return MonitorSummary(
            status=self._state.status,
            artifacts_produced=self._state.artifacts_produced,
            chunks=chunks,
            elapsed_seconds=self._state.elapsed_seconds,
            diagnostic=diagnostic,
        )

    def process(self, chunk: Any) -> None:
        """Classify one raw chunk and apply its commands."""
        for event in parse_chunk(chunk):
            for command in self._classifier.classify(event):
                self.apply(command)

    def apply(self, command: Command) -> None:
        state = self._state
        limits = self._config.monitor

        match command:
            case AppendRootText(text=text):
                state.append_message(text)
            case ClearRootText():
                state.clear_message()
            case SpawnSubExecution():
                state.add_sub_execution(
                    SubExecution(
                        id=command.sub_id,
                        name=command.name,
                        task=command.task,
                        status=command.status,
                        token=command.token,
                    )
                )
            case UpdateSubExecution():
                state.update_sub_execution(
                    command.sub_id,
                    name=command.name,
                    task=command.task,
                    token=command.token,
                    status=command.status,
                )
            case AppendSubExecutionOutput(sub_id=sub_id, text=text):
                sub = state.sub_executions.get(sub_id)
                if sub is None or sub.is_terminal:
                    return
                preview = (sub.progress + " ".join(text.splitlines()))[-limits.preview_chars :]
                status = SubExecutionStatus.RUNNING if sub.status == SubExecutionStatus.SPAWNING else None
                state.update_sub_execution(sub_id, progress=preview, status=status)
            case FinishSubExecution(sub_id=sub_id, status=status, result=result):
                state.update_sub_execution(sub_id, status=status, result=result)
            case StartInvocation(invocation_id=invocation_id, name=name, args=args):
                state.add_invocation(Invocation(id=invocation_id, name=name, args=args))
            case UpdateInvocationArgs(invocation_id=invocation_id, args=args):
                state.update_invocation(invocation_id, args=args)
            case FinishInvocation(invocation_id=invocation_id, status=status, result=result):
                state.update_invocation(invocation_id, status=status, result=result)
            case ReplaceTodos(items=items):
                state.set_todos(
                    TodoItem(id=f"todo-{i}", content=item.content, status=TodoStatus.parse(item.status))
                    for i, item in enumerate(items)
                )
            case AddLog(category=category, text=text):
                state.add_log(category, text)
