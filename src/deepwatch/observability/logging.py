"""Structured diagnostic logging for deepwatch.

The diagnostic log is not the activity log shown to the user (that one
lives inside ExecutionState). It goes to stderr unless the TUI owns the
terminal, and is mirrored into a file under ~/.deepwatch/logs/ that rolls
over at midnight.

Stream content can be arbitrarily long (a sub-agent's whole answer, a
fetched page), so string values are capped before rendering.

Event names use dot.notation, domain.entity.verb_past_tense:
    "monitor.dispatch.registered", "engine.stream.failed"

Usage:
    from deepwatch.observability import configure_logging, get_logger

    configure_logging(LoggingConfig(mode=LogMode.DEV))
    log = get_logger(__name__)
    log.info("monitor.session.started", chunks=0)
"""

from __future__ import annotations

from collections.abc import MutableMapping
from enum import Enum
from functools import partialmethod
import logging
from logging.handlers import TimedRotatingFileHandler
import os
from pathlib import Path
import sys
from typing import Any

from pydantic import BaseModel, Field
import structlog

LOG_FILE_NAME = "deepwatch.log"
MODE_ENV_VAR = "DEEPWATCH_LOG_MODE"


class LogMode(str, Enum):
    """Rendering of diagnostic lines."""

    DEV = "dev"
    PROD = "prod"


class LoggingConfig(BaseModel):
    """Settings for configure_logging.

    Attributes:
        mode: dev renders coloured console lines, prod renders JSON.
        log_level: Minimum level name, e.g. "INFO".
        log_dir: Where the rolling log file is kept.
        max_log_days: Rolled-over files to keep.
        enable_file_logging: Mirror lines into the log file.
        max_value_chars: Cap for string values in an event.
    """

    mode: LogMode = Field(default=LogMode.DEV)
    log_level: str = Field(default="INFO")
    log_dir: Path = Field(default_factory=lambda: Path.home() / ".deepwatch" / "logs")
    max_log_days: int = Field(default=7, ge=1, le=365)
    enable_file_logging: bool = Field(default=True)
    max_value_chars: int = Field(default=2000, ge=16)

    model_config = {"frozen": True}


_configured = False
_current_config: LoggingConfig | None = None
_console_enabled = True


def _mode_from_env() -> LogMode:
    try:
        return LogMode(os.environ.get(MODE_ENV_VAR, "dev").lower())
    except ValueError:
        return LogMode.DEV


def _level_number(name: str) -> int:
    return logging.getLevelNamesMapping().get(name.upper(), logging.INFO)


def _file_logger(config: LoggingConfig, level: int) -> logging.Logger | None:
    """A stdlib logger that only feeds the rolling file."""
    if not config.enable_file_logging:
        return None

    config.log_dir.mkdir(parents=True, exist_ok=True)
    handler = TimedRotatingFileHandler(
        config.log_dir / LOG_FILE_NAME,
        when="midnight",
        backupCount=config.max_log_days,
        encoding="utf-8",
        utc=True,
    )
    handler.setFormatter(logging.Formatter("%(message)s"))

    file_logger = logging.getLogger("deepwatch.file")
    for old in file_logger.handlers[:]:
        file_logger.removeHandler(old)
        old.close()
    file_logger.addHandler(handler)
    file_logger.setLevel(level)
    file_logger.propagate = False
    return file_logger


def truncate_long_values(max_chars: int) -> Any:
    """Processor that shortens long string values, keeping their head."""

    def processor(_logger: Any, _method: str, event_dict: MutableMapping[str, Any]) -> MutableMapping[str, Any]:
        for key, value in event_dict.items():
            if key not in ("event", "exception") and isinstance(value, str) and len(value) > max_chars:
                event_dict[key] = f"{value[:max_chars]}... [{len(value) - max_chars} more chars]"
        return event_dict

    return processor


def _processors(config: LoggingConfig) -> list[Any]:
    renderer: Any
    if config.mode == LogMode.DEV:
        renderer = structlog.dev.ConsoleRenderer(colors=True)
    else:
        renderer = structlog.processors.JSONRenderer()
    return [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        truncate_long_values(config.max_value_chars),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        renderer,
    ]


class _TerminalAwareLogger:
    """Writes rendered lines to stderr and to the file logger.

    stderr is skipped while console logging is disabled, which is how the
    TUI keeps diagnostic lines from tearing its screen.
    """

    def __init__(self, file_logger: logging.Logger | None) -> None:
        self._file_logger = file_logger

    def _emit(self, level: int, message: str) -> None:
        if _console_enabled:
            print(message, file=sys.stderr, flush=True)
        if self._file_logger is not None:
            self._file_logger.log(level, message)

    debug = partialmethod(_emit, logging.DEBUG)
    info = partialmethod(_emit, logging.INFO)
    msg = info
    warning = partialmethod(_emit, logging.WARNING)
    warn = warning
    error = partialmethod(_emit, logging.ERROR)
    exception = error
    critical = partialmethod(_emit, logging.CRITICAL)
    fatal = critical


def configure_logging(config: LoggingConfig | None = None) -> None:
    """Install the structlog pipeline; a second call replaces the first.

    Args:
        config: Settings to use. Without one, defaults apply and the mode is
            read from DEEPWATCH_LOG_MODE.
    """
    global _configured, _current_config

    if config is None:
        config = LoggingConfig(mode=_mode_from_env())

    level = _level_number(config.log_level)
    file_logger = _file_logger(config, level)
    sink = _TerminalAwareLogger(file_logger)

    structlog.configure(
        processors=_processors(config),
        wrapper_class=structlog.make_filtering_bound_logger(level),
        context_class=dict,
        logger_factory=lambda *_args: sink,
        cache_logger_on_first_use=True,
    )
    _current_config = config
    _configured = True


def get_logger(name: str | None = None) -> Any:
    """Return a structlog logger, configuring defaults on first use."""
    if not _configured:
        configure_logging()
    return structlog.get_logger(name)


def set_console_logging(enabled: bool) -> None:
    global _console_enabled
    _console_enabled = enabled


def is_console_logging_enabled() -> bool:
    return _console_enabled


def bind_context(**kwargs: Any) -> None:
    """Attach key-values (e.g. session_id, source) to every later event."""
    structlog.contextvars.bind_contextvars(**kwargs)


def clear_context() -> None:
    structlog.contextvars.clear_contextvars()


def get_current_config() -> LoggingConfig | None:
    return _current_config


def is_configured() -> bool:
    return _configured


def reset_logging() -> None:
    """Forget the current setup. Used by tests."""
    global _configured, _current_config
    _configured = False
    _current_config = None
    structlog.contextvars.clear_contextvars()
    structlog.reset_defaults()
