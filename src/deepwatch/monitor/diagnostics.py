"""Failure classification.

Two kinds of failure reach the monitor:
- Content-level: a completion record whose result says it failed. Only the
  entity it belongs to is marked as errored.
- Engine-level: the stream itself raised. describe_exception turns the
  exception into one diagnostic string for the activity log.
"""

from __future__ import annotations

from deepwatch.core.errors import EngineError

OUTPUT_EXCERPT_CHARS = 500

_FAILURE_MARKERS = ("error:", "failed")


def is_failure(content: str, *, failed: bool = False) -> bool:
    """Decide whether a completion result represents a failure.

    Args:
        content: Result text of the completion.
        failed: The engine's explicit failure marker.
    """
    if failed:
        return True
    lowered = content.lower()
    return any(marker in lowered for marker in _FAILURE_MARKERS)


def describe_exception(exc: BaseException) -> str:
    """Assemble the diagnostic for an exception raised by the engine.

    Includes the message, the exit code, captured stderr and stdout (each
    cut to OUTPUT_EXCERPT_CHARS), and the chain of causes.
    """
    error = EngineError.from_exception(exc)
    parts = [error.message or type(exc).__name__]

    if error.exit_code is not None:
        parts.append(f"Exit code: {error.exit_code}")
    if error.stderr:
        parts.append(f"Stderr: {error.stderr[:OUTPUT_EXCERPT_CHARS]}")
    if error.stdout:
        parts.append(f"Stdout: {error.stdout[:OUTPUT_EXCERPT_CHARS]}")

    seen: set[int] = {id(error), id(exc)}
    cause = exc.__cause__ or exc.__context__
    while cause is not None and id(cause) not in seen:
        seen.add(id(cause))
        parts.append(f"Cause: {cause}" if str(cause) else f"Cause: {type(cause).__name__}")
        cause = cause.__cause__ or cause.__context__

    return "\n".join(parts)
