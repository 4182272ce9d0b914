"""Typed events for the engine's two stream channels.

The engine yields loosely shaped chunks: ``(mode, data)`` or, when subgraph
streaming is on, ``(namespace, mode, data)``. Messages may be LangChain
message objects or, when replayed from a recording, plain dicts. This module
is the only place that looks inside those payloads; everything past it works
on the three event variants below.

StreamEvent variants:
- ContentEvent: incremental text and action requests (``messages`` mode)
- UpdateEvent: one node's step output (``updates`` mode)
- UnknownEvent: anything that could not be interpreted
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
import json
from typing import Any

CONTENT_MODE = "messages"
UPDATE_MODE = "updates"


@dataclass(frozen=True, slots=True)
class ActionRequest:
    """One tool call requested by a model.

    Attributes:
        token: Correlation token (the tool call id), if the fragment had one.
        name: Tool name.
        args: Parsed arguments; empty when they were missing or partial.
    """

    token: str | None
    name: str
    args: dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True, slots=True)
class CompletionRecord:
    """One tool result reported on the update channel.

    Attributes:
        token: The tool call id this result answers.
        name: Tool name.
        content: Result text.
        failed: True when the engine flagged the result as an error.
    """

    token: str | None
    name: str
    content: str
    failed: bool = False


@dataclass(frozen=True, slots=True)
class TodoSpec:
    content: str
    status: str


@dataclass(frozen=True, slots=True)
class ContentEvent:
    namespace: str | None
    text: str = ""
    requests: tuple[ActionRequest, ...] = ()


@dataclass(frozen=True, slots=True)
class UpdateEvent:
    """One node's output for a step.

    Attributes:
        namespace: Subgraph namespace, None for the root graph.
        node: Name of the node that produced the update.
        todos: Replacement task list, or None if the update carried none.
        completions: Tool results carried by the update.
        requests: Fully formed tool calls from a finished model turn.
        payload: The raw payload, kept for log excerpts.
    """

    namespace: str | None
    node: str
    todos: tuple[TodoSpec, ...] | None = None
    completions: tuple[CompletionRecord, ...] = ()
    requests: tuple[ActionRequest, ...] = ()
    payload: Any = None


@dataclass(frozen=True, slots=True)
class UnknownEvent:
    reason: str
    raw: str = ""


StreamEvent = ContentEvent | UpdateEvent | UnknownEvent


def parse_chunk(chunk: Any) -> list[StreamEvent]:
    """Convert one raw stream chunk into typed events.

    Never raises: malformed chunks come back as a single UnknownEvent.

    Args:
        chunk: A ``(mode, data)`` or ``(namespace, mode, data)`` sequence.

    Returns:
        Events in the order they appear in the chunk.
    """
    if not isinstance(chunk, Sequence) or isinstance(chunk, (str, bytes)):
        return [UnknownEvent("chunk is not a sequence", _preview(chunk))]

    if len(chunk) == 3:
        namespace = _join_namespace(chunk[0])
        mode, data = chunk[1], chunk[2]
    elif len(chunk) == 2:
        namespace = None
        mode, data = chunk[0], chunk[1]
    else:
        return [UnknownEvent(f"chunk has {len(chunk)} elements", _preview(chunk))]

    if mode == CONTENT_MODE:
        return [_parse_content(data, namespace)]
    if mode == UPDATE_MODE:
        return _parse_updates(data, namespace)
    return [UnknownEvent(f"unknown stream mode {mode!r}", _preview(data))]


def _parse_content(data: Any, namespace: str | None) -> StreamEvent:
    if not isinstance(data, Sequence) or isinstance(data, (str, bytes)) or len(data) != 2:
        return UnknownEvent("content data is not a (message, metadata) pair", _preview(data))

    message, metadata = data
    if not isinstance(metadata, Mapping):
        metadata = {}

    checkpoint_ns = metadata.get("checkpoint_ns") or metadata.get("langgraph_checkpoint_ns")
    return ContentEvent(
        namespace=checkpoint_ns if isinstance(checkpoint_ns, str) and checkpoint_ns else namespace,
        text=message_text(message),
        requests=tuple(extract_tool_calls(message)),
    )


def _parse_updates(data: Any, namespace: str | None) -> list[StreamEvent]:
    if not isinstance(data, Mapping):
        return [UnknownEvent("update data is not a mapping", _preview(data))]

    events: list[StreamEvent] = []
    for node_name, update in data.items():
        parts = update if isinstance(update, list) else [update]
        todos: tuple[TodoSpec, ...] | None = None
        completions: list[CompletionRecord] = []
        requests: list[ActionRequest] = []

        for part in parts:
            if not isinstance(part, Mapping):
                continue
            raw_todos = part.get("todos")
            if isinstance(raw_todos, list):
                todos = tuple(_parse_todo(item) for item in raw_todos)
            messages = part.get("messages")
            if isinstance(messages, list):
                for message in messages:
                    if _get(message, "tool_call_id") is not None or _message_type(message) == "tool":
                        completions.append(_parse_completion(message))
                    else:
                        requests.extend(extract_tool_calls(message))

        events.append(
            UpdateEvent(
                namespace=namespace,
                node=str(node_name),
                todos=todos,
                completions=tuple(completions),
                requests=tuple(requests),
                payload=update,
            )
        )
    return events


def _parse_todo(item: Any) -> TodoSpec:
    content = _get(item, "content", "")
    status = _get(item, "status") or "pending"
    return TodoSpec(content=str(content), status=str(status))


def _parse_completion(message: Any) -> CompletionRecord:
    additional = _get(message, "additional_kwargs") or {}
    name = _get(message, "name") or (additional.get("name") if isinstance(additional, Mapping) else None)
    token = _get(message, "tool_call_id") or _get(message, "id")
    return CompletionRecord(
        token=str(token) if token is not None else None,
        name=str(name) if name else "tool",
        content=message_text(message),
        failed=_get(message, "status") == "error",
    )


def message_text(message: Any) -> str:
    """Flatten a message's content into plain text.

    String content is returned as is; for content block lists the text
    blocks are concatenated. Non-text blocks are ignored.
    """
    content = _get(message, "content")
    if content is None:
        return ""
    if isinstance(content, str):
        return content
    if isinstance(content, list):
        texts = []
        for block in content:
            if isinstance(block, str):
                texts.append(block)
            elif _get(block, "type") == "text":
                text = _get(block, "text")
                if isinstance(text, str):
                    texts.append(text)
        return "".join(texts)
    return str(content)


def extract_tool_calls(message: Any) -> list[ActionRequest]:
    """Return the complete tool calls on a message.

    Streaming continuation fragments carry no id or name and are skipped;
    arguments given as a JSON string are decoded, and undecodable
    arguments become an empty dict.
    """
    raw_calls = _get(message, "tool_calls")
    if not isinstance(raw_calls, list):
        return []

    requests = []
    for call in raw_calls:
        token = _get(call, "id")
        name = _get(call, "name")
        if not token or not name:
            continue
        requests.append(ActionRequest(token=str(token), name=str(name), args=_parse_args(_get(call, "args"))))
    return requests


def _parse_args(args: Any) -> dict[str, Any]:
    if isinstance(args, Mapping):
        return dict(args)
    if isinstance(args, str) and args:
        try:
            decoded = json.loads(args)
        except json.JSONDecodeError:
            return {}
        return decoded if isinstance(decoded, dict) else {}
    return {}


def _message_type(message: Any) -> str | None:
    kind = _get(message, "type")
    return kind if isinstance(kind, str) else None


def _get(obj: Any, key: str, default: Any = None) -> Any:
    """Read a field from a dict-shaped or object-shaped payload."""
    if isinstance(obj, Mapping):
        return obj.get(key, default)
    return getattr(obj, key, default)


def _join_namespace(namespace: Any) -> str | None:
    if isinstance(namespace, str):
        return namespace or None
    if isinstance(namespace, Sequence) and namespace:
        return "|".join(str(part) for part in namespace)
    return None


def _preview(value: Any, limit: int = 200) -> str:
    return repr(value)[:limit]


__all__ = [
    "ActionRequest",
    "CompletionRecord",
    "ContentEvent",
    "StreamEvent",
    "TodoSpec",
    "UnknownEvent",
    "UpdateEvent",
    "extract_tool_calls",
    "message_text",
    "parse_chunk",
]
