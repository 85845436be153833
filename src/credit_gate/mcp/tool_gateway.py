from __future__ import annotations

import json
from collections.abc import Awaitable, Callable
from contextlib import AsyncExitStack
from typing import Any

import httpx
from loguru import logger
from mcp import ClientSession
from mcp.client.streamable_http import streamable_http_client

from credit_gate.errors import CreditGateError, ToolExecutionError, UpstreamProviderError
from credit_gate.models import ToolCallResult, ToolCatalogEntry

SessionFactory = Callable[[AsyncExitStack, str, str], Awaitable[Any]]

_HTTP_TIMEOUT = httpx.Timeout(30.0, read=300.0)


async def open_http_session(stack: AsyncExitStack, endpoint: str, access_token: str) -> ClientSession:
    """Open an initialized MCP session over streamable HTTP, registering cleanup on *stack*."""
    http_client = await stack.enter_async_context(
        httpx.AsyncClient(
            headers={"Authorization": f"Bearer {access_token}"},
            timeout=_HTTP_TIMEOUT,
        )
    )
    read_stream, write_stream, _ = await stack.enter_async_context(
        streamable_http_client(endpoint, http_client=http_client)
    )
    session = await stack.enter_async_context(ClientSession(read_stream, write_stream))
    await session.initialize()
    return session


def _as_plain(result: Any) -> Any:
    if hasattr(result, "model_dump"):
        return result.model_dump(mode="json", by_alias=True, exclude_none=True)
    return result


def normalize_tool_result(result: Any) -> ToolCallResult:
    """Extract the first text block of a tool result, else serialize the whole response."""
    data = _as_plain(result)
    content = data.get("content") if isinstance(data, dict) else None

    output_text = ""
    if isinstance(content, list):
        text_block = next(
            (block for block in content if isinstance(block, dict) and block.get("type") == "text"),
            None,
        )
        if text_block is not None and text_block.get("text") is not None:
            text = text_block["text"]
            output_text = text if isinstance(text, str) else json.dumps(text)

    if not output_text:
        output_text = data if isinstance(data, str) else json.dumps(data, default=str)

    return ToolCallResult(output_text=output_text, raw_content=content)


def _log_close_error(ex: Exception) -> None:
    logger.warning(f"MCP session close error: {type(ex).__name__}: {ex}")


class ToolGateway:
    """Lists and invokes tools on a remote MCP server, one session per call."""

    def __init__(
        self,
        endpoint: str,
        token_provider: Callable[[], Awaitable[str]],
        *,
        session_factory: SessionFactory = open_http_session,
        on_close_error: Callable[[Exception], None] = _log_close_error,
    ):
        self._endpoint = endpoint
        self._token_provider = token_provider
        self._session_factory = session_factory
        self._on_close_error = on_close_error

    async def list_tools(self) -> list[ToolCatalogEntry]:
        result = await self._with_session("list_tools", lambda session: session.list_tools())
        tools = [
            ToolCatalogEntry(
                name=tool.name,
                input_schema=tool.inputSchema or {},
                description=tool.description or "",
            )
            for tool in result.tools
        ]
        logger.info(f"MCP server {self._endpoint}: {len(tools)} tool(s) discovered")
        return tools

    async def call_tool(self, name: str, args: dict[str, Any]) -> ToolCallResult:
        logger.debug("MCP tool call: {name} | input: {input}", name=name, input=json.dumps(args, default=str))
        result = await self._with_session(
            f"call_tool {name}",
            lambda session: session.call_tool(name, arguments=args),
        )
        normalized = normalize_tool_result(result)
        if getattr(result, "isError", False):
            logger.warning("MCP tool error: {name} | result: {output}", name=name, output=normalized.output_text[:500])
            raise ToolExecutionError(name, normalized.output_text)
        logger.debug(
            "MCP tool result: {name} | chars={chars} | result: {output}",
            name=name,
            chars=len(normalized.output_text),
            output=normalized.output_text[:500],
        )
        return normalized

    async def _with_session(self, label: str, operation: Callable[[Any], Awaitable[Any]]) -> Any:
        access_token = await self._token_provider()
        stack = AsyncExitStack()
        try:
            session = await self._session_factory(stack, self._endpoint, access_token)
            return await operation(session)
        except CreditGateError:
            raise
        except Exception as ex:
            raise UpstreamProviderError("mcp", f"{label} failed: {type(ex).__name__}: {ex}") from ex
        finally:
            try:
                await stack.aclose()
            except Exception as ex:
                self._on_close_error(ex)
