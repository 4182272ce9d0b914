"""Deep agent construction and streaming.

The agent is a LangGraph deep agent: a planner with a todo list, a ``task``
tool that spawns sub-agents, and the documentation tools from
deepwatch.engine.tools. Files the agent writes through its built-in file
tools land under the skills directory.

Usage:
    agent = create_skills_agent(config.engine, writer)
    async for chunk in stream_agent(agent, DEFAULT_REQUEST, recursion_limit=200):
        ...
"""

from __future__ import annotations

from collections.abc import AsyncIterator
from typing import Any

import httpx

from deepwatch.config.models import EngineConfig
from deepwatch.engine.artifacts import SkillFileWriter
from deepwatch.engine.docs import DocsClient
from deepwatch.engine.tools import build_tools, tool_names
from deepwatch.observability.logging import get_logger

log = get_logger(__name__)

STREAM_MODES = ["updates", "messages"]

SYSTEM_PROMPT = """You are a LangChain documentation expert. Explore the LangChain \
documentation and write SKILL.md files that help AI agents use LangChain well.

Each skill file has YAML frontmatter (name, description), an overview, decision \
tables, code examples, boundaries, gotchas, and links to the full docs. Write a \
JavaScript/TypeScript and a Python version of every skill with \
generate_skill_file, passing language "js" or "python".

Plan with the todo list, then delegate each skill category to a sub-agent with \
the task tool so categories are researched in parallel."""

DEFAULT_REQUEST = (
    "Please explore the LangChain documentation and create skill.md files for all "
    "major topics following the documentation navigation structure. Start by "
    "searching for an overview to understand the scope, then systematically "
    "create skill files for each area."
)


def create_skills_agent(
    config: EngineConfig,
    writer: SkillFileWriter,
    *,
    docs: DocsClient | None = None,
    http_client: httpx.AsyncClient | None = None,
) -> Any:
    """Build the deep agent.

    Raises:
        ImportError: If deepagents is not installed.
    """
    try:
        from deepagents import create_deep_agent
        from deepagents.backends import FilesystemBackend
    except ImportError as e:
        msg = "deepagents package not installed. Install with: pip install deepagents"
        raise ImportError(msg) from e

    tools = build_tools(config, writer, docs=docs, http_client=http_client)
    config.skills_dir.mkdir(parents=True, exist_ok=True)
    backend = FilesystemBackend(root_dir=config.skills_dir, virtual_mode=True)

    agent = create_deep_agent(
        model=config.model,
        tools=tools,
        system_prompt=SYSTEM_PROMPT,
        backend=backend,
    )
    log.info(
        "engine.agent.created",
        model=config.model,
        tools=tool_names(tools),
        skills_dir=str(config.skills_dir),
    )
    return agent


def stream_agent(
    agent: Any,
    request: str = DEFAULT_REQUEST,
    *,
    recursion_limit: int = 200,
    subgraphs: bool = False,
) -> AsyncIterator[Any]:
    """Start a run and return its raw dual-channel stream.

    Args:
        agent: Compiled graph from create_skills_agent.
        request: The user message that starts the run.
        recursion_limit: Maximum graph steps.
        subgraphs: Also stream sub-agent updates, as
            ``(namespace, mode, data)`` chunks.
    """
    log.info("engine.stream.started", recursion_limit=recursion_limit, subgraphs=subgraphs)
    return agent.astream(
        {"messages": [{"role": "user", "content": request}]},
        config={"recursion_limit": recursion_limit},
        stream_mode=STREAM_MODES,
        subgraphs=subgraphs,
    )
