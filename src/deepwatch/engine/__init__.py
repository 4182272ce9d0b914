"""Execution engine collaborators: the deep agent, its tools, and I/O adapters."""

from deepwatch.engine.agent import (
    DEFAULT_REQUEST,
    create_skills_agent,
    stream_agent,
)
from deepwatch.engine.artifacts import SkillFileWriter, normalize_output_path
from deepwatch.engine.docs import DocsClient
from deepwatch.engine.tools import build_tools, fetch_page

__all__ = [
    "DEFAULT_REQUEST",
    "DocsClient",
    "SkillFileWriter",
    "build_tools",
    "create_skills_agent",
    "fetch_page",
    "normalize_output_path",
    "stream_agent",
]
