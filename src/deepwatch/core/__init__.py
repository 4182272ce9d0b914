"""deepwatch core module - shared types and errors."""

from deepwatch.core.errors import (
    ArtifactError,
    ConfigError,
    DeepwatchError,
    DocsError,
    DocsTimeoutError,
    EngineError,
)
from deepwatch.core.types import Result

__all__ = [
    # Types
    "Result",
    # Errors
    "DeepwatchError",
    "ConfigError",
    "EngineError",
    "ArtifactError",
    "DocsError",
    "DocsTimeoutError",
]
