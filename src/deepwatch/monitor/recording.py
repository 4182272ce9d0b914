"""Recording and replay of raw engine streams.

Each chunk is stored as one JSON line:

    {"mode": "messages", "namespace": ["tools:abc"], "data": [...]}

Message objects are converted with their ``model_dump()``; the event parser
accepts the resulting dicts the same way it accepts the objects, so a replay
reconstructs the same state as the live run.

Usage:
    with EventRecorder(path) as recorder:
        await monitor.run(stream, recorder=recorder)

    summary = await ExecutionMonitor(state).run(iter_recording(path))
"""

from __future__ import annotations

import asyncio
from collections.abc import AsyncIterator, Mapping
import json
from pathlib import Path
from types import TracebackType
from typing import IO, Any

from deepwatch.observability.logging import get_logger

log = get_logger(__name__)


def to_jsonable(value: Any) -> Any:
    """Convert engine payloads into JSON-compatible structures."""
    if value is None or isinstance(value, (str, int, float, bool)):
        return value
    if hasattr(value, "model_dump"):
        return to_jsonable(value.model_dump())
    if isinstance(value, Mapping):
        return {str(key): to_jsonable(item) for key, item in value.items()}
    if isinstance(value, (list, tuple, set, frozenset)):
        return [to_jsonable(item) for item in value]
    return str(value)


def encode_chunk(chunk: Any) -> dict[str, Any]:
    """Split a raw chunk into the recorded mode, namespace, and data."""
    if isinstance(chunk, (list, tuple)) and len(chunk) == 3:
        namespace, mode, data = chunk
        namespace = [namespace] if isinstance(namespace, str) else list(namespace or ())
    elif isinstance(chunk, (list, tuple)) and len(chunk) == 2:
        namespace, (mode, data) = [], chunk
    else:
        return {"mode": None, "namespace": [], "data": to_jsonable(chunk)}
    return {"mode": mode, "namespace": namespace, "data": to_jsonable(data)}


def decode_line(line: str) -> Any:
    """Rebuild a raw chunk from one recorded line."""
    record = json.loads(line)
    mode = record.get("mode")
    data = record.get("data")
    namespace = record.get("namespace") or []
    if namespace:
        return (tuple(namespace), mode, data)
    return (mode, data)


class EventRecorder:
    """Appends raw chunks to a JSONL trace file."""

    def __init__(self, path: Path) -> None:
        self._path = path
        self._file: IO[str] | None = None
        self._count = 0

    @property
    def path(self) -> Path:
        return self._path

    @property
    def count(self) -> int:
        return self._count

    def open(self) -> IO[str]:
        """Open the trace for appending; a second call returns the open file."""
        if self._file is None:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            self._file = self._path.open("a", encoding="utf-8")
            log.info("monitor.recording.started", path=str(self._path))
        return self._file

    def record(self, chunk: Any) -> None:
        trace = self.open()
        trace.write(json.dumps(encode_chunk(chunk), ensure_ascii=False, default=str) + "\n")
        trace.flush()
        self._count += 1

    def close(self) -> None:
        if self._file is not None:
            self._file.close()
            self._file = None
            log.info("monitor.recording.closed", path=str(self._path), chunks=self._count)

    def __enter__(self) -> EventRecorder:
        self.open()
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.close()


async def iter_recording(path: Path, *, delay: float = 0.0) -> AsyncIterator[Any]:
    """Yield the chunks of a recorded trace as an async stream.

    Args:
        path: JSONL trace written by EventRecorder.
        delay: Seconds to pause between chunks, for watching a replay.

    Raises:
        json.JSONDecodeError: If a line is not valid JSON.
    """
    with path.open(encoding="utf-8") as f:
        for line in f:
            if not line.strip():
                continue
            yield decode_line(line)
            await asyncio.sleep(delay)
