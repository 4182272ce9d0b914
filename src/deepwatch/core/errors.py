"""Error hierarchy for deepwatch.

These exceptions are used for unexpected errors and as error types in
Result for expected failures of the I/O adapters.

Exception Hierarchy:
    DeepwatchError (base)
    ├── ConfigError    - Configuration loading and validation issues
    ├── EngineError    - The execution engine's event stream failed
    ├── ArtifactError  - Skill file validation or write failures
    └── DocsError      - Documentation backend failures
        └── DocsTimeoutError - Request timed out (retriable)
"""

from __future__ import annotations

from typing import Any


class DeepwatchError(Exception):
    """Base exception for all deepwatch errors.

    Attributes:
        message: Human-readable error description.
        details: Optional dict with additional context.
    """

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def __str__(self) -> str:
        if self.details:
            return f"{self.message} (details: {self.details})"
        return self.message


class ConfigError(DeepwatchError):
    """Error from configuration operations.

    Attributes:
        config_key: The configuration key that caused the error.
        config_file: Path to the config file if applicable.
    """

    def __init__(
        self,
        message: str,
        *,
        config_key: str | None = None,
        config_file: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message, details)
        self.config_key = config_key
        self.config_file = config_file


class EngineError(DeepwatchError):
    """The execution engine raised instead of emitting a completion.

    Carries the pieces the diagnostic is assembled from.

    Attributes:
        exit_code: Process exit code, when the failure came from a subprocess.
        stdout: Captured standard output, if any.
        stderr: Captured standard error, if any.
    """

    def __init__(
        self,
        message: str,
        *,
        exit_code: int | None = None,
        stdout: str | None = None,
        stderr: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message, details)
        self.exit_code = exit_code
        self.stdout = stdout
        self.stderr = stderr

    @classmethod
    def from_exception(cls, exc: BaseException) -> EngineError:
        """Wrap an arbitrary engine exception, keeping it as ``__cause__``."""
        if isinstance(exc, EngineError):
            return exc
        exit_code = getattr(exc, "exit_code", None)
        if exit_code is None:
            exit_code = getattr(exc, "returncode", None)
        error = cls(
            str(exc) or type(exc).__name__,
            exit_code=exit_code if isinstance(exit_code, int) else None,
            stdout=_as_text(getattr(exc, "stdout", None)),
            stderr=_as_text(getattr(exc, "stderr", None)),
            details={"original_exception": type(exc).__name__},
        )
        error.__cause__ = exc
        return error


class ArtifactError(DeepwatchError):
    """Error writing a generated skill file.

    Attributes:
        path: Target path, when one had been computed.
        field: The input field that failed validation.
    """

    def __init__(
        self,
        message: str,
        *,
        path: str | None = None,
        field: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message, details)
        self.path = path
        self.field = field


class DocsError(DeepwatchError):
    """Error from the documentation search backend.

    Attributes:
        tool_name: The remote tool that was called.
        is_retriable: Whether the call may succeed if repeated.
    """

    def __init__(
        self,
        message: str,
        *,
        tool_name: str | None = None,
        is_retriable: bool = False,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message, details)
        self.tool_name = tool_name
        self.is_retriable = is_retriable


class DocsTimeoutError(DocsError):
    """A documentation request timed out."""

    def __init__(
        self,
        message: str,
        *,
        tool_name: str | None = None,
        timeout_seconds: float | None = None,
    ) -> None:
        super().__init__(message, tool_name=tool_name, is_retriable=True)
        self.timeout_seconds = timeout_seconds


def _as_text(value: Any) -> str | None:
    if value is None:
        return None
    if isinstance(value, bytes):
        return value.decode("utf-8", errors="replace")
    return str(value)
