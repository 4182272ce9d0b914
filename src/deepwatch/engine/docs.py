"""Documentation search over MCP.

The LangChain docs site exposes a Model Context Protocol server over
streamable HTTP with a single search tool. Searches are slow and the server
answers long queries with a JSON-RPC timeout (code -32001), so timeouts are
retried with backoff; every other failure is returned immediately.

Usage:
    client = DocsClient.from_config(config.engine)
    result = await client.search("how to stream tool calls")
    if result.is_ok:
        print(result.value)
"""

from __future__ import annotations

from datetime import timedelta
import json
from typing import Any

import stamina

from deepwatch.config.models import EngineConfig
from deepwatch.core.errors import DocsError, DocsTimeoutError
from deepwatch.core.types import Result
from deepwatch.observability.logging import get_logger

log = get_logger(__name__)

SEARCH_TOOL = "SearchDocsByLangChain"
MCP_REQUEST_TIMEOUT_CODE = -32001
CLIENT_NAME = "deepwatch"


def is_timeout(exc: Exception) -> bool:
    """Whether an MCP failure was a request timeout worth retrying."""
    if isinstance(exc, TimeoutError):
        return True
    code = getattr(getattr(exc, "error", None), "code", None)
    if code == MCP_REQUEST_TIMEOUT_CODE:
        return True
    message = str(exc).lower()
    return str(MCP_REQUEST_TIMEOUT_CODE) in message or "timeout" in message or "timed out" in message


class DocsClient:
    """Calls the documentation MCP server, one session per request.

    Args:
        url: Streamable HTTP endpoint of the MCP server.
        timeout_seconds: Read timeout for one tool call.
        max_retries: Total attempts for calls that time out.
        retry_wait_seconds: Initial backoff between attempts.
    """

    def __init__(
        self,
        url: str,
        *,
        timeout_seconds: float = 120.0,
        max_retries: int = 3,
        retry_wait_seconds: float = 2.0,
    ) -> None:
        self._url = url
        self._timeout_seconds = timeout_seconds
        self._max_retries = max_retries
        self._retry_wait_seconds = retry_wait_seconds

    @classmethod
    def from_config(cls, config: EngineConfig) -> DocsClient:
        return cls(
            config.docs_mcp_url,
            timeout_seconds=config.request_timeout_seconds,
            max_retries=config.max_retries,
            retry_wait_seconds=config.retry_wait_seconds,
        )

    @property
    def url(self) -> str:
        return self._url

    async def search(
        self,
        query: str,
        *,
        version: str | None = None,
        api_reference_only: bool = False,
        code_only: bool = False,
    ) -> Result[str, DocsError]:
        """Search the documentation.

        Returns:
            Result with the matching content as pretty-printed JSON, or the
            DocsError that ended the attempts.
        """
        arguments: dict[str, Any] = {
            "query": query,
            "language": "en",
            "apiReferenceOnly": api_reference_only,
            "codeOnly": code_only,
        }
        if version:
            arguments["version"] = version
        return await self.call_tool(SEARCH_TOOL, arguments)

    async def call_tool(self, name: str, arguments: dict[str, Any]) -> Result[str, DocsError]:
        @stamina.retry(
            on=is_timeout,
            attempts=self._max_retries,
            wait_initial=self._retry_wait_seconds,
            wait_max=self._retry_wait_seconds * self._max_retries,
            wait_jitter=0.5,
        )
        async def _call_with_retry() -> Any:
            return await self._raw_call(name, arguments)

        try:
            result = await _call_with_retry()
        except Exception as e:
            if is_timeout(e):
                log.warning("engine.docs.timed_out", tool=name, attempts=self._max_retries)
                timeout_error = DocsTimeoutError(
                    f"Documentation search timed out: {e}",
                    tool_name=name,
                    timeout_seconds=self._timeout_seconds,
                )
                timeout_error.__cause__ = e
                return Result.err(timeout_error)
            log.warning("engine.docs.failed", tool=name, error=str(e))
            docs_error = DocsError(f"Documentation search failed: {e}", tool_name=name)
            docs_error.__cause__ = e
            return Result.err(docs_error)

        content = [_dump_content(item) for item in getattr(result, "content", None) or []]
        if getattr(result, "isError", False):
            return Result.err(
                DocsError(
                    f"MCP tool error: {json.dumps(content)}",
                    tool_name=name,
                    details={"content": content},
                )
            )
        log.debug("engine.docs.searched", tool=name, items=len(content))
        return Result.ok(json.dumps(content, indent=2, ensure_ascii=False))

    async def _raw_call(self, name: str, arguments: dict[str, Any]) -> Any:
        """Open a session, call the tool, close the session. No retries."""
        try:
            from mcp import ClientSession
            from mcp.client.streamable_http import streamablehttp_client
        except ImportError as e:
            msg = "mcp package not installed. Install with: pip install mcp"
            raise ImportError(msg) from e

        read_timeout = timedelta(seconds=self._timeout_seconds)
        async with streamablehttp_client(self._url, timeout=self._timeout_seconds) as (read, write, _):
            async with ClientSession(read, write, read_timeout_seconds=read_timeout) as session:
                await session.initialize()
                return await session.call_tool(name, arguments)


def _dump_content(item: Any) -> Any:
    if hasattr(item, "model_dump"):
        return item.model_dump(exclude_none=True)
    return item
