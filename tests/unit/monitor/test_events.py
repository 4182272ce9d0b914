"""Unit tests for deepwatch.monitor.events."""

from dataclasses import dataclass, field
from typing import Any

from deepwatch.monitor.events import (
    ActionRequest,
    CompletionRecord,
    ContentEvent,
    TodoSpec,
    UnknownEvent,
    UpdateEvent,
    extract_tool_calls,
    message_text,
    parse_chunk,
)


@dataclass
class FakeChunk:
    """Stands in for a LangChain AIMessageChunk."""

    content: Any = ""
    tool_calls: list[dict[str, Any]] = field(default_factory=list)


@dataclass
class FakeToolMessage:
    content: Any
    tool_call_id: str
    name: str
    status: str = "success"
    type: str = "tool"


class TestParseChunkShapes:
    """Tests for the chunk envelope."""

    def test_two_tuple_has_no_namespace(self) -> None:
        events = parse_chunk(("messages", (FakeChunk("hi"), {})))

        assert events == [ContentEvent(namespace=None, text="hi")]

    def test_three_tuple_joins_namespace(self) -> None:
        chunk = (("tools:abc", "model:1"), "messages", (FakeChunk("x"), {}))

        [event] = parse_chunk(chunk)

        assert isinstance(event, ContentEvent)
        assert event.namespace == "tools:abc|model:1"

    def test_metadata_namespace_takes_precedence(self) -> None:
        metadata = {"langgraph_checkpoint_ns": "tools:xyz", "langgraph_node": "model"}

        [event] = parse_chunk(("messages", (FakeChunk("x"), metadata)))

        assert event.namespace == "tools:xyz"

    def test_non_sequence_chunk_is_unknown(self) -> None:
        [event] = parse_chunk(42)

        assert isinstance(event, UnknownEvent)
        assert "not a sequence" in event.reason

    def test_string_chunk_is_unknown(self) -> None:
        [event] = parse_chunk("messages")

        assert isinstance(event, UnknownEvent)

    def test_wrong_arity_is_unknown(self) -> None:
        [event] = parse_chunk(("a", "b", "c", "d"))

        assert isinstance(event, UnknownEvent)
        assert "4 elements" in event.reason

    def test_unknown_mode(self) -> None:
        [event] = parse_chunk(("custom", {"x": 1}))

        assert isinstance(event, UnknownEvent)
        assert "'custom'" in event.reason

    def test_malformed_content_pair(self) -> None:
        [event] = parse_chunk(("messages", "oops"))

        assert isinstance(event, UnknownEvent)

    def test_update_data_must_be_mapping(self) -> None:
        [event] = parse_chunk(("updates", ["not", "a", "mapping"]))

        assert isinstance(event, UnknownEvent)


class TestContentEvents:
    """Tests for the messages channel."""

    def test_extracts_complete_tool_calls(self) -> None:
        message = FakeChunk(
            tool_calls=[
                {"id": "t1", "name": "task", "args": {"description": "index docs"}},
                {"id": None, "name": None, "args": {}},
            ]
        )

        [event] = parse_chunk(("messages", (message, {})))

        assert event.requests == (ActionRequest("t1", "task", {"description": "index docs"}),)

    def test_dict_messages_are_accepted(self) -> None:
        message = {"content": "replayed", "tool_calls": []}

        [event] = parse_chunk(("messages", [message, {"langgraph_node": "model"}]))

        assert event == ContentEvent(namespace=None, text="replayed")


class TestUpdateEvents:
    """Tests for the updates channel."""

    def test_todos_are_parsed(self) -> None:
        data = {
            "tools": {
                "todos": [
                    {"content": "Search docs", "status": "in_progress"},
                    {"content": "Write skill"},
                ]
            }
        }

        [event] = parse_chunk(("updates", data))

        assert isinstance(event, UpdateEvent)
        assert event.node == "tools"
        assert event.todos == (
            TodoSpec("Search docs", "in_progress"),
            TodoSpec("Write skill", "pending"),
        )

    def test_update_without_todos_reports_none(self) -> None:
        [event] = parse_chunk(("updates", {"model": {"messages": []}}))

        assert event.todos is None

    def test_empty_todo_list_is_not_none(self) -> None:
        [event] = parse_chunk(("updates", {"tools": {"todos": []}}))

        assert event.todos == ()

    def test_tool_messages_become_completions(self) -> None:
        message = FakeToolMessage("Error: boom", tool_call_id="t9", name="fetch_webpage", status="error")

        [event] = parse_chunk(("updates", {"tools": {"messages": [message]}}))

        assert event.completions == (CompletionRecord("t9", "fetch_webpage", "Error: boom", failed=True),)
        assert event.requests == ()

    def test_dict_tool_message_without_name(self) -> None:
        message = {"type": "tool", "tool_call_id": "t2", "content": "ok"}

        [event] = parse_chunk(("updates", {"tools": {"messages": [message]}}))

        assert event.completions == (CompletionRecord("t2", "tool", "ok"),)

    def test_model_messages_carry_requests(self) -> None:
        message = {"type": "ai", "content": "", "tool_calls": [{"id": "t3", "name": "ls", "args": {}}]}

        [event] = parse_chunk(("updates", {"model": {"messages": [message]}}))

        assert event.requests == (ActionRequest("t3", "ls", {}),)
        assert event.completions == ()

    def test_one_event_per_node(self) -> None:
        data = {"model": {"messages": []}, "tools": {"messages": []}}

        events = parse_chunk(("updates", data))

        assert [e.node for e in events] == ["model", "tools"]

    def test_list_payload_last_todos_win(self) -> None:
        data = {
            "tools": [
                {"todos": [{"content": "a", "status": "pending"}]},
                {"todos": [{"content": "b", "status": "completed"}]},
            ]
        }

        [event] = parse_chunk(("updates", data))

        assert event.todos == (TodoSpec("b", "completed"),)

    def test_interrupt_payload_is_kept(self) -> None:
        payload = ({"value": "approve?"},)

        [event] = parse_chunk(("updates", {"__interrupt__": payload}))

        assert event.node == "__interrupt__"
        assert event.payload == payload


class TestMessageText:
    """Tests for message_text."""

    def test_string_content(self) -> None:
        assert message_text(FakeChunk("plain")) == "plain"

    def test_block_content_joins_text_blocks(self) -> None:
        message = FakeChunk(
            [
                {"type": "text", "text": "Hello "},
                {"type": "tool_use", "id": "x"},
                {"type": "text", "text": "world"},
            ]
        )

        assert message_text(message) == "Hello world"

    def test_missing_content(self) -> None:
        assert message_text({}) == ""


class TestExtractToolCalls:
    """Tests for extract_tool_calls."""

    def test_json_string_args_are_decoded(self) -> None:
        message = {"tool_calls": [{"id": "t1", "name": "task", "args": '{"prompt": "go"}'}]}

        assert extract_tool_calls(message) == [ActionRequest("t1", "task", {"prompt": "go"})]

    def test_partial_json_args_become_empty(self) -> None:
        message = {"tool_calls": [{"id": "t1", "name": "task", "args": '{"prom'}]}

        assert extract_tool_calls(message) == [ActionRequest("t1", "task", {})]

    def test_no_tool_calls(self) -> None:
        assert extract_tool_calls({"content": "x"}) == []
