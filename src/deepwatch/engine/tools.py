"""Tools exposed to the deep agent.

The engine turns plain async functions into tools from their signature and
docstring, so the docstrings here are written for the model. Failures are
returned as ``Error: ...`` text rather than raised: the agent can react to
them, and the monitor classifies such results as failed invocations.
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable
from typing import Any, Literal

import httpx

from deepwatch.config.models import EngineConfig
from deepwatch.core.errors import ArtifactError, DocsError
from deepwatch.engine.artifacts import SkillFileWriter
from deepwatch.engine.docs import DocsClient
from deepwatch.observability.logging import get_logger

log = get_logger(__name__)

Tool = Callable[..., Awaitable[str]]


async def fetch_page(client: httpx.AsyncClient, url: str, *, max_chars: int) -> str:
    """GET a page and return its body, truncated to max_chars.

    Raises:
        DocsError: On a non-2xx response or a transport failure.
    """
    try:
        response = await client.get(url)
    except httpx.HTTPError as e:
        raise DocsError(f"Failed to fetch {url}: {e}", tool_name="fetch_webpage") from e
    if not response.is_success:
        raise DocsError(
            f"Failed to fetch {url}: {response.status_code} {response.reason_phrase}",
            tool_name="fetch_webpage",
            details={"status_code": response.status_code},
        )
    return response.text[:max_chars]


def build_tools(
    config: EngineConfig,
    writer: SkillFileWriter,
    *,
    docs: DocsClient | None = None,
    http_client: httpx.AsyncClient | None = None,
) -> list[Tool]:
    """Create the agent's tools bound to one session's collaborators.

    Args:
        config: Engine settings (fetch truncation, timeouts).
        writer: Skill file writer for generate_skill_file.
        docs: Documentation client; built from config when None.
        http_client: Client for fetch_webpage; a fresh one per call when None.
    """
    docs_client = docs or DocsClient.from_config(config)

    async def search_langchain_docs(
        query: str,
        version: str | None = None,
        api_reference_only: bool = False,
        code_only: bool = False,
    ) -> str:
        """Search across the LangChain documentation to find relevant information,
        code examples, API references, and guides. Returns contextual content
        with titles and links to documentation pages.

        Args:
            query: Search query for LangChain documentation.
            version: Filter to a specific version (e.g. 'v0.3').
            api_reference_only: Only return API reference docs.
            code_only: Only return code snippets.
        """
        result = await docs_client.search(
            query,
            version=version,
            api_reference_only=api_reference_only,
            code_only=code_only,
        )
        if result.is_err:
            return f"Error: {result.error.message}"
        return result.value

    async def fetch_webpage(url: str) -> str:
        """Fetch markdown content from a specific LangChain documentation URL.
        Use this to get detailed content from pages found during search.

        Args:
            url: Full URL of the documentation page to fetch.
        """
        try:
            if http_client is not None:
                return await fetch_page(http_client, url, max_chars=config.fetch_max_chars)
            async with httpx.AsyncClient(
                follow_redirects=True,
                timeout=config.request_timeout_seconds,
            ) as client:
                return await fetch_page(client, url, max_chars=config.fetch_max_chars)
        except DocsError as e:
            log.warning("engine.fetch.failed", url=url, error=e.message)
            return f"Error: {e.message}"

    async def generate_skill_file(
        name: str,
        description: str,
        content: str,
        output_path: str,
        language: Literal["js", "python"] = "js",
    ) -> str:
        """Generate a language-specific SKILL.md file following the Agent Skills
        format: YAML frontmatter with name, description and language, then an
        overview, decision tables, code examples in the given language,
        explicit boundaries, gotchas, and links to the full documentation.

        Args:
            name: Skill identifier (max 64 chars, lowercase alphanumeric and hyphens).
            description: What the skill covers (max 1024 chars).
            content: Full markdown body with code examples in the given language.
            output_path: Base path such as /langchain-chat-models/SKILL.md; the
                language subfolder is added automatically.
            language: 'js' for JavaScript/TypeScript or 'python' for Python.
        """
        try:
            return writer.write(
                name=name,
                description=description,
                content=content,
                output_path=output_path,
                language=language,
            )
        except ArtifactError as e:
            log.warning("engine.artifact.rejected", path=e.path, field=e.field, error=e.message)
            return f"Error: {e.message}"

    return [search_langchain_docs, fetch_webpage, generate_skill_file]


def tool_names(tools: list[Any]) -> list[str]:
    return [getattr(t, "__name__", repr(t)) for t in tools]
