"""Shared fixtures for deepwatch tests."""

from collections.abc import Iterator
from pathlib import Path

import pytest

from deepwatch.observability.logging import (
    LoggingConfig,
    configure_logging,
    reset_logging,
    set_console_logging,
)


@pytest.fixture(autouse=True)
def isolated_logging(tmp_path: Path) -> Iterator[None]:
    """Keep diagnostic logs out of ~/.deepwatch and reset between tests."""
    reset_logging()
    set_console_logging(True)
    configure_logging(LoggingConfig(log_dir=tmp_path / "logs", enable_file_logging=False))
    yield
    reset_logging()
    set_console_logging(True)
