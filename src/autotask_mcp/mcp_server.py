"""FastMCP server definition."""

from __future__ import annotations

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from dataclasses import dataclass
from typing import Any

import structlog
from mcp.server.fastmcp import FastMCP
from mcp.types import Tool as MCPTool
from mcp.types import ToolAnnotations

from .autotask_client import AutotaskClient, api_base_url, discover_zone_url
from .context import AutotaskServiceContext
from .rate_limiter import RateLimiter
from .services import Services
from .settings import Settings
from .tools import ToolSpec, build_registry, dispatch
from .validation import tool_input_schema

log = structlog.get_logger(__name__)


@dataclass(slots=True)
class AppContext:
    settings: Settings
    client: AutotaskClient
    context: AutotaskServiceContext
    services: Services
    api_url: str


def _to_mcp_tool(spec: ToolSpec) -> MCPTool:
    return MCPTool(
        name=spec.name,
        title=spec.title,
        description=spec.description,
        inputSchema=tool_input_schema(spec.schema),
        annotations=ToolAnnotations(
            title=spec.title,
            readOnlyHint=spec.read_only,
            destructiveHint=spec.destructive,
            idempotentHint=spec.idempotent,
            openWorldHint=True,
        ),
    )


class AutotaskMCP(FastMCP):
    """FastMCP with a fixed tool table.

    Tools are served from a ``ToolSpec`` registry instead of decorated
    functions, so raw arguments reach the closed input schemas untouched.
    """

    def __init__(self, registry: dict[str, ToolSpec], **kwargs: Any) -> None:
        self.registry = registry
        super().__init__(**kwargs)

    async def list_tools(self) -> list[MCPTool]:
        return [_to_mcp_tool(spec) for spec in self.registry.values()]

    async def call_tool(self, name: str, arguments: dict[str, Any]) -> dict[str, Any]:
        app: AppContext = self.get_context().request_context.lifespan_context
        result = await dispatch(self.registry, name, arguments, app)
        return result.model_dump(mode="json")


def create_mcp_server(settings: Settings) -> AutotaskMCP:
    modules = settings.enabled_modules()
    registry = build_registry(modules)
    # Shared by every session so API usage is tracked process-wide.
    rate_limiter = RateLimiter()
    resolved_url: str | None = (
        str(settings.autotask_api_url) if settings.autotask_api_url else None
    )

    @asynccontextmanager
    async def lifespan(_: FastMCP) -> AsyncIterator[AppContext]:
        nonlocal resolved_url
        if resolved_url is None:
            resolved_url = await discover_zone_url(
                settings.autotask_username, timeout_seconds=settings.http_timeout_seconds
            )
            log.info("autotask.zone_discovered", api_url=resolved_url)

        client = AutotaskClient(
            base_url=resolved_url,
            username=settings.autotask_username,
            secret=settings.autotask_secret,
            integration_code=settings.autotask_integration_code,
            timeout_seconds=settings.http_timeout_seconds,
        )
        context = AutotaskServiceContext(client, rate_limiter)
        try:
            yield AppContext(
                settings=settings,
                client=client,
                context=context,
                services=Services.create(context),
                api_url=api_base_url(resolved_url),
            )
        finally:
            await client.aclose()

    log.info("mcp.tools_registered", modules=modules, tools=len(registry))
    return AutotaskMCP(
        registry,
        name="Autotask",
        instructions=(
            "Search and manage Autotask PSA records (companies, contacts, tickets, projects, "
            "resources, contracts, tasks, time entries, configuration items, expenses, quotes, "
            "invoices). Search tools return a limited page by default; pass pageSize: -1 for "
            "everything."
        ),
        lifespan=lifespan,
        # Host-header protection follows the bind address.
        host=settings.mcp_host,
        port=settings.mcp_port,
        stateless_http=True,
        json_response=True,
    )
