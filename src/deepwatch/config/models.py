"""Pydantic models for deepwatch configuration.

Classes:
    MonitorConfig: Bounds and truncation sizes for the execution monitor
    ProtocolConfig: Names the monitor recognises on the engine's streams
    EngineConfig: How the deep agent and its tools are built
    LoggingConfig: Diagnostic logging settings
    DeepwatchConfig: Top-level configuration combining all sections
"""

from pathlib import Path
import re
from typing import Literal

from pydantic import BaseModel, Field, field_validator


class MonitorConfig(BaseModel, frozen=True):
    """Execution monitor configuration.

    Attributes:
        log_capacity: Maximum entries kept in the activity log ring buffer
        preview_chars: Length of a sub-execution's rolling output preview
        args_chars: Cap on serialized invocation arguments
        result_chars: Cap on stored results and success log excerpts
        failure_excerpt_chars: Cap on result text included in sub-execution
            failure logs
        tool_failure_chars: Cap on result text included in tool failure logs
    """

    log_capacity: int = Field(default=100, ge=1)
    preview_chars: int = Field(default=100, ge=1)
    args_chars: int = Field(default=200, ge=1)
    result_chars: int = Field(default=150, ge=1)
    failure_excerpt_chars: int = Field(default=300, ge=1)
    tool_failure_chars: int = Field(default=500, ge=1)


class ProtocolConfig(BaseModel, frozen=True):
    """Names used by the engine's stream protocol.

    Attributes:
        dispatch_action: Tool name that spawns a sub-execution
        task_list_action: Tool name that rewrites the task list
        namespace_prefix: Namespace segment prefix that marks a sub-execution
        tool_node: Update-channel node that carries completion records
        model_nodes: Update-channel nodes that mark a finished model turn
        interrupt_node: Update-channel node that signals suspension
    """

    dispatch_action: str = "task"
    task_list_action: str = "write_todos"
    namespace_prefix: str = "tools"
    tool_node: str = "tools"
    model_nodes: tuple[str, ...] = ("model", "model_request")
    interrupt_node: str = "__interrupt__"

    @field_validator("namespace_prefix")
    @classmethod
    def validate_namespace_prefix(cls, v: str) -> str:
        """The prefix is embedded in a regex, so it must be a plain word."""
        if not re.fullmatch(r"[A-Za-z0-9_]+", v):
            msg = f"namespace_prefix must be alphanumeric, got {v!r}"
            raise ValueError(msg)
        return v


class EngineConfig(BaseModel, frozen=True):
    """Deep agent configuration.

    Attributes:
        model: Chat model identifier passed to the engine
        recursion_limit: Maximum graph steps for one run
        skills_dir: Directory generated skill files are written under
        docs_mcp_url: Streamable HTTP endpoint of the documentation MCP server
        request_timeout_seconds: Timeout for one documentation request
        max_retries: Attempts for documentation requests that time out
        retry_wait_seconds: Initial backoff between those attempts
        fetch_max_chars: Truncation for fetched web pages
    """

    model: str = "anthropic:claude-sonnet-4-5-20250929"
    recursion_limit: int = Field(default=200, ge=1)
    skills_dir: Path = Field(default_factory=lambda: Path.cwd() / "skills")
    docs_mcp_url: str = "https://docs.langchain.com/mcp"
    request_timeout_seconds: float = Field(default=120.0, gt=0)
    max_retries: int = Field(default=3, ge=1)
    retry_wait_seconds: float = Field(default=2.0, ge=0)
    fetch_max_chars: int = Field(default=20_000, ge=1)

    @field_validator("skills_dir")
    @classmethod
    def expand_skills_dir(cls, v: Path) -> Path:
        """Expand ~ in skills_dir."""
        return v.expanduser()


class LoggingConfig(BaseModel, frozen=True):
    """Diagnostic logging configuration.

    Attributes:
        level: Log level
        mode: dev (console renderer) or prod (JSON)
        max_log_days: Rotated files to keep
    """

    level: Literal["debug", "info", "warning", "error"] = "info"
    mode: Literal["dev", "prod"] = "dev"
    max_log_days: int = Field(default=7, ge=1, le=365)


class DeepwatchConfig(BaseModel, frozen=True):
    """Top-level deepwatch configuration, validated from config.yaml."""

    monitor: MonitorConfig = Field(default_factory=MonitorConfig)
    protocol: ProtocolConfig = Field(default_factory=ProtocolConfig)
    engine: EngineConfig = Field(default_factory=EngineConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)


def get_default_config() -> DeepwatchConfig:
    """Get the default configuration."""
    return DeepwatchConfig()


def get_config_dir() -> Path:
    """Path to ~/.deepwatch/"""
    return Path.home() / ".deepwatch"
