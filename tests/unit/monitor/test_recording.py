"""Unit tests for deepwatch.monitor.recording."""

import json
from pathlib import Path

import pytest

from deepwatch.monitor.recording import (
    EventRecorder,
    decode_line,
    encode_chunk,
    iter_recording,
    to_jsonable,
)


class Dumpable:
    def model_dump(self) -> dict:
        return {"content": "hi", "extra": ("a", "b")}


class TestToJsonable:
    def test_nested_structures(self) -> None:
        value = {"msg": Dumpable(), "items": {1, 2} - {2}, "path": Path("/tmp/x")}

        assert to_jsonable(value) == {
            "msg": {"content": "hi", "extra": ["a", "b"]},
            "items": [1],
            "path": "/tmp/x",
        }


class TestEncodeDecode:
    """Tests for the line format."""

    def test_root_chunk(self) -> None:
        record = encode_chunk(("updates", {"tools": {"todos": []}}))

        assert record == {"mode": "updates", "namespace": [], "data": {"tools": {"todos": []}}}
        assert decode_line(json.dumps(record)) == ("updates", {"tools": {"todos": []}})

    def test_namespaced_chunk(self) -> None:
        record = encode_chunk((("tools:abc",), "messages", (Dumpable(), {"langgraph_node": "model"})))

        assert record["namespace"] == ["tools:abc"]
        assert decode_line(json.dumps(record)) == (
            ("tools:abc",),
            "messages",
            [{"content": "hi", "extra": ["a", "b"]}, {"langgraph_node": "model"}],
        )

    def test_string_namespace(self) -> None:
        assert encode_chunk(("tools:abc", "updates", {}))["namespace"] == ["tools:abc"]

    def test_malformed_chunk_is_kept(self) -> None:
        assert encode_chunk("garbage") == {"mode": None, "namespace": [], "data": "garbage"}


class TestEventRecorder:
    """Tests for the JSONL recorder."""

    def test_record_opens_lazily(self, tmp_path: Path) -> None:
        path = tmp_path / "nested" / "trace.jsonl"
        recorder = EventRecorder(path)

        recorder.record(("updates", {"model": {}}))
        recorder.record(("updates", {"tools": {}}))
        recorder.close()

        assert recorder.count == 2
        assert len(path.read_text(encoding="utf-8").splitlines()) == 2

    def test_context_manager_appends(self, tmp_path: Path) -> None:
        path = tmp_path / "trace.jsonl"
        with EventRecorder(path) as recorder:
            recorder.record(("updates", {}))
        with EventRecorder(path) as recorder:
            recorder.record(("updates", {}))

        assert len(path.read_text(encoding="utf-8").splitlines()) == 2

    def test_open_returns_same_handle(self, tmp_path: Path) -> None:
        recorder = EventRecorder(tmp_path / "trace.jsonl")

        first = recorder.open()
        try:
            assert recorder.open() is first
        finally:
            recorder.close()

        assert first.closed

    def test_close_is_idempotent(self, tmp_path: Path) -> None:
        recorder = EventRecorder(tmp_path / "trace.jsonl")
        recorder.close()
        recorder.close()

        assert recorder.count == 0


class TestIterRecording:
    @pytest.mark.asyncio
    async def test_yields_chunks_skipping_blank_lines(self, tmp_path: Path) -> None:
        path = tmp_path / "trace.jsonl"
        path.write_text(
            '{"mode": "updates", "namespace": [], "data": {"model": {}}}\n\n'
            '{"mode": "messages", "namespace": ["tools:x"], "data": [{"content": "a"}, {}]}\n',
            encoding="utf-8",
        )

        chunks = [chunk async for chunk in iter_recording(path)]

        assert chunks == [
            ("updates", {"model": {}}),
            (("tools:x",), "messages", [{"content": "a"}, {}]),
        ]
