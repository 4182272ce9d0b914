"""Event classification.

EventClassifier turns one typed stream event into the state mutations it
implies. It consults and updates the CorrelationRegistry but never touches
ExecutionState; the runner applies the returned commands.

Routing rules:
- Content under a ``tools:<id>`` namespace only ever reaches that
  sub-execution's preview. Root content goes to the root message buffer.
- A root request for the dispatch action spawns a sub-execution; any other
  root request starts an invocation.
- Completions finish whatever their token was registered for. Unknown
  tokens produce one informational log entry and nothing else. Repeated
  completions for a token are ignored.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
import json
from typing import Any

from deepwatch.config.models import MonitorConfig, ProtocolConfig
from deepwatch.monitor.diagnostics import is_failure
from deepwatch.monitor.events import (
    ActionRequest,
    CompletionRecord,
    ContentEvent,
    StreamEvent,
    TodoSpec,
    UnknownEvent,
    UpdateEvent,
)
from deepwatch.monitor.registry import CorrelationRegistry
from deepwatch.monitor.state import (
    InvocationStatus,
    LogCategory,
    SubExecutionStatus,
)
from deepwatch.observability.logging import get_logger

log = get_logger(__name__)

DESCRIPTION_KEYS = ("description", "prompt", "task")
PLACEHOLDER_DESCRIPTION = "Processing task..."
DEFAULT_SUBAGENT_TYPE = "general-purpose"

_DELEGATION_DESCRIPTION_CHARS = 80
_FINISHED_DESCRIPTION_CHARS = 60
_TOOL_ARGS_LOG_CHARS = 100
_INTERRUPT_PREVIEW_CHARS = 100
_SHORT_ID_CHARS = 8


# Commands


@dataclass(frozen=True, slots=True)
class AppendRootText:
    text: str


@dataclass(frozen=True, slots=True)
class ClearRootText:
    pass


@dataclass(frozen=True, slots=True)
class SpawnSubExecution:
    sub_id: str
    name: str
    task: str
    token: str | None = None
    status: SubExecutionStatus = SubExecutionStatus.RUNNING


@dataclass(frozen=True, slots=True)
class UpdateSubExecution:
    sub_id: str
    name: str | None = None
    task: str | None = None
    token: str | None = None
    status: SubExecutionStatus | None = None


@dataclass(frozen=True, slots=True)
class AppendSubExecutionOutput:
    sub_id: str
    text: str


@dataclass(frozen=True, slots=True)
class FinishSubExecution:
    sub_id: str
    status: SubExecutionStatus
    result: str


@dataclass(frozen=True, slots=True)
class StartInvocation:
    invocation_id: str
    name: str
    args: str


@dataclass(frozen=True, slots=True)
class UpdateInvocationArgs:
    invocation_id: str
    args: str


@dataclass(frozen=True, slots=True)
class FinishInvocation:
    invocation_id: str
    status: InvocationStatus
    result: str


@dataclass(frozen=True, slots=True)
class ReplaceTodos:
    items: tuple[TodoSpec, ...]


@dataclass(frozen=True, slots=True)
class AddLog:
    category: LogCategory
    text: str


Command = (
    AppendRootText
    | ClearRootText
    | SpawnSubExecution
    | UpdateSubExecution
    | AppendSubExecutionOutput
    | FinishSubExecution
    | StartInvocation
    | UpdateInvocationArgs
    | FinishInvocation
    | ReplaceTodos
    | AddLog
)


def describe_dispatch(args: Mapping[str, Any]) -> str:
    """Pick the task description out of dispatch arguments."""
    for key in DESCRIPTION_KEYS:
        value = args.get(key)
        if isinstance(value, str) and value.strip():
            return value.strip()
    return PLACEHOLDER_DESCRIPTION


def clip(text: str, limit: int) -> str:
    """Shorten text to limit characters, marking the cut with an ellipsis."""
    if len(text) <= limit:
        return text
    return text[:limit] + "..."


class EventClassifier:
    """Maps typed stream events to state mutation commands.

    Example:
        classifier = EventClassifier(CorrelationRegistry())
        for event in parse_chunk(chunk):
            for command in classifier.classify(event):
                apply(command)
    """

    def __init__(
        self,
        registry: CorrelationRegistry,
        protocol: ProtocolConfig | None = None,
        limits: MonitorConfig | None = None,
    ) -> None:
        self._registry = registry
        self._protocol = protocol or ProtocolConfig()
        self._limits = limits or MonitorConfig()

    @property
    def registry(self) -> CorrelationRegistry:
        return self._registry

    def classify(self, event: StreamEvent) -> list[Command]:
        match event:
            case ContentEvent():
                return self._classify_content(event)
            case UpdateEvent():
                return self._classify_update(event)
            case UnknownEvent(reason=reason):
                log.info("monitor.event.unrecognised", reason=reason, raw=event.raw)
                return [AddLog(LogCategory.INFO, f"Unrecognised stream event: {reason}")]

    # Content channel

    def _classify_content(self, event: ContentEvent) -> list[Command]:
        fragment = self._registry.resolve_namespace(event.namespace)
        if fragment is not None:
            return self._classify_sub_content(fragment, event)

        commands: list[Command] = []
        for request in event.requests:
            commands.extend(self._classify_request(request))
        if event.text:
            commands.append(AppendRootText(event.text))
        return commands

    def _classify_sub_content(self, fragment: str, event: ContentEvent) -> list[Command]:
        sub_id, commands = self._attribute(fragment)
        if event.text:
            commands.append(AppendSubExecutionOutput(sub_id, event.text))
        for request in event.requests:
            if request.name == self._protocol.dispatch_action:
                # Nested dispatches are sub-executions of their own.
                if request.token is not None:
                    commands.extend(self._classify_dispatch(request.token, request.args))
            else:
                commands.append(AppendSubExecutionOutput(sub_id, f" [{request.name}] "))
        return commands

    def _attribute(self, fragment: str) -> tuple[str, list[Command]]:
        """Resolve a fragment to its sub-execution, spawning one if it is new."""
        attribution = self._registry.attribute_fragment(fragment)
        if not attribution.created:
            return attribution.sub_id, []
        return attribution.sub_id, [
            SpawnSubExecution(
                sub_id=attribution.sub_id,
                name=self._protocol.dispatch_action,
                task=PLACEHOLDER_DESCRIPTION,
            ),
            AddLog(
                LogCategory.SUBAGENT,
                f"Subagent started ({attribution.sub_id[:_SHORT_ID_CHARS]})",
            ),
        ]

    def _classify_request(self, request: ActionRequest) -> list[Command]:
        if request.token is None:
            return []
        if request.name == self._protocol.dispatch_action:
            return self._classify_dispatch(request.token, request.args)
        return self._classify_invocation(request.token, request.name, request.args)

    def _classify_dispatch(self, token: str, args: Mapping[str, Any]) -> list[Command]:
        description = describe_dispatch(args)
        subagent_type = args.get("subagent_type")
        name = subagent_type if isinstance(subagent_type, str) and subagent_type else None
        is_placeholder = description == PLACEHOLDER_DESCRIPTION

        if self._registry.is_completed(token):
            return []

        if self._registry.is_pending(token):
            # Seen while streaming with partial arguments; fill in the rest.
            if is_placeholder and name is None:
                return []
            if not is_placeholder:
                self._registry.update_description(token, description)
            attribution = self._registry.link_dispatch(token)
            return [
                UpdateSubExecution(
                    attribution.sub_id,
                    name=name,
                    task=None if is_placeholder else description,
                    status=None if is_placeholder else SubExecutionStatus.RUNNING,
                )
            ]

        self._registry.register_dispatch(token, self._protocol.dispatch_action, description)
        attribution = self._registry.link_dispatch(token)
        status = SubExecutionStatus.SPAWNING if is_placeholder else SubExecutionStatus.RUNNING
        commands: list[Command]
        if attribution.created:
            commands = [
                SpawnSubExecution(
                    sub_id=attribution.sub_id,
                    name=name or DEFAULT_SUBAGENT_TYPE,
                    task=description,
                    token=token,
                    status=status,
                )
            ]
        else:
            commands = [
                UpdateSubExecution(
                    attribution.sub_id,
                    name=name or DEFAULT_SUBAGENT_TYPE,
                    task=None if is_placeholder else description,
                    token=token,
                )
            ]
        commands.append(
            AddLog(
                LogCategory.SUBAGENT,
                f"Task delegated: {clip(description, _DELEGATION_DESCRIPTION_CHARS)}",
            )
        )
        return commands

    def _classify_invocation(self, token: str, name: str, args: Mapping[str, Any]) -> list[Command]:
        args_text = self._serialize_args(args)

        if self._registry.is_completed(token):
            return []
        if self._registry.is_pending(token):
            return [UpdateInvocationArgs(token, args_text)] if args else []

        self._registry.register_dispatch(token, name, name)
        commands: list[Command] = [StartInvocation(token, name, args_text)]
        if name != self._protocol.task_list_action:
            text = f"{name}: {args_text[:_TOOL_ARGS_LOG_CHARS]}" if args else name
            commands.append(AddLog(LogCategory.TOOL, text))
        return commands

    def _serialize_args(self, args: Mapping[str, Any]) -> str:
        if not args:
            return ""
        try:
            text = json.dumps(args, ensure_ascii=False, default=str)
        except ValueError:
            text = str(args)
        return text[: self._limits.args_chars]

    # Update channel

    def _classify_update(self, event: UpdateEvent) -> list[Command]:
        fragment = self._registry.resolve_namespace(event.namespace)
        if fragment is not None:
            return self._classify_sub_update(fragment, event)

        if event.node == self._protocol.interrupt_node:
            return [
                AddLog(
                    LogCategory.INFO,
                    f"Interrupted: {str(event.payload)[:_INTERRUPT_PREVIEW_CHARS]}",
                )
            ]

        commands: list[Command] = []
        if event.todos is not None:
            commands.append(ReplaceTodos(event.todos))
            commands.append(AddLog(LogCategory.INFO, f"Todo list updated ({len(event.todos)} items)"))

        if event.node == self._protocol.tool_node:
            for record in event.completions:
                commands.extend(self._classify_completion(record))
        elif event.completions:
            log.debug("monitor.completion.ignored_node", node=event.node, count=len(event.completions))

        for request in event.requests:
            commands.extend(self._classify_request(request))

        if event.node in self._protocol.model_nodes:
            commands.append(ClearRootText())
            commands.append(AddLog(LogCategory.MESSAGE, "Model response complete"))

        if not commands:
            log.debug("monitor.update.ignored", node=event.node)
        return commands

    def _classify_sub_update(self, fragment: str, event: UpdateEvent) -> list[Command]:
        # Sub-execution steps never touch the root buffer or task list.
        sub_id, commands = self._attribute(fragment)
        if event.node != self._protocol.tool_node:
            return commands
        for record in event.completions:
            if self._is_pending_dispatch(record.token):
                commands.extend(self._classify_completion(record))
                continue
            marker = "failed" if is_failure(record.content, failed=record.failed) else "done"
            commands.append(AppendSubExecutionOutput(sub_id, f" [{record.name} {marker}] "))
        return commands

    def _is_pending_dispatch(self, token: str | None) -> bool:
        pending = self._registry.pending_dispatch(token) if token else None
        return pending is not None and pending.action_name == self._protocol.dispatch_action

    def _classify_completion(self, record: CompletionRecord) -> list[Command]:
        if self._registry.is_completed(record.token):
            log.debug("monitor.completion.duplicate_ignored", token=record.token)
            return []

        pending = self._registry.pending_dispatch(record.token) if record.token else None
        action = pending.action_name if pending is not None else record.name
        failed = is_failure(record.content, failed=record.failed)

        if action == self._protocol.dispatch_action:
            return self._finish_dispatch(record, failed)
        return self._finish_invocation(record, failed)

    def _finish_dispatch(self, record: CompletionRecord, failed: bool) -> list[Command]:
        pending = self._registry.resolve_completion(record.token)
        claim = self._registry.claim_sub_execution(record.token)
        if claim is None:
            return [self._orphan(record)]
        if record.token is not None:
            self._registry.mark_completed(record.token)

        description = pending.description if pending is not None else f"subagent {claim.sub_id[:_SHORT_ID_CHARS]}"
        short = clip(description, _FINISHED_DESCRIPTION_CHARS)
        if claim.heuristic:
            short = f"{short} (best-effort match)"
        status = SubExecutionStatus.ERROR if failed else SubExecutionStatus.COMPLETED
        commands: list[Command] = [
            FinishSubExecution(claim.sub_id, status, record.content[: self._limits.result_chars]),
        ]
        if failed:
            excerpt = record.content[: self._limits.failure_excerpt_chars]
            commands.append(AddLog(LogCategory.ERROR, f"Subagent failed: {short} - {excerpt}"))
        else:
            commands.append(AddLog(LogCategory.SUBAGENT, f"Subagent completed: {short}"))
        log.info(
            "monitor.subexecution.finished",
            sub_id=claim.sub_id,
            status=status.value,
            heuristic=claim.heuristic,
        )
        return commands

    def _finish_invocation(self, record: CompletionRecord, failed: bool) -> list[Command]:
        pending = self._registry.resolve_completion(record.token)
        if pending is None:
            return [self._orphan(record)]

        name = pending.action_name
        status = InvocationStatus.ERROR if failed else InvocationStatus.COMPLETED
        commands: list[Command] = [
            FinishInvocation(pending.invocation_id, status, record.content[: self._limits.result_chars]),
        ]
        if name == self._protocol.task_list_action:
            return commands
        if failed:
            excerpt = record.content[: self._limits.tool_failure_chars]
            commands.append(AddLog(LogCategory.ERROR, f"{name} failed: {excerpt}"))
        else:
            excerpt = record.content[: self._limits.result_chars]
            commands.append(AddLog(LogCategory.TOOL, f"{name} completed: {excerpt}"))
        return commands

    @staticmethod
    def _orphan(record: CompletionRecord) -> AddLog:
        log.info("monitor.completion.orphaned", token=record.token, name=record.name)
        return AddLog(
            LogCategory.INFO,
            f"Unmatched completion for {record.name} ({record.token or 'no token'})",
        )
